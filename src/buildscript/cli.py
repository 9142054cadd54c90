"""Command line entry point."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Optional

import typer

from .config import EnvMode, GameVersion, GitBackend, load_environment, load_settings
from .engine import Engine
from .errors import BuildscriptError
from .target import registry
from .workspace import Workspace

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, no_args_is_help=True)


def _confirm_install(kind: str) -> bool:
    typer.echo(f"\nCould not find tool '{kind}'.\n", err=True)
    return typer.confirm("Install in $WORKSPACE/.cache?", default=False, err=True)


def _env_mode(isolate: bool, autoinstall: bool) -> EnvMode | None:
    if isolate:
        return EnvMode.ISOLATE
    if autoinstall:
        return EnvMode.AUTOINSTALL
    return None


@app.callback()
def main(
    ctx: typer.Context,
    root: Path = typer.Option(Path("."), "--root", help="Workspace root."),
    isolate: bool = typer.Option(False, "--isolate", help="Install every tool locally."),
    autoinstall: bool = typer.Option(False, "--autoinstall", help="Install missing tools without asking."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Build and run the workspace's targets."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    workspace = Workspace.at(root)
    load_environment(workspace.root)
    ctx.obj = {"workspace": workspace, "env_mode": _env_mode(isolate, autoinstall)}


@app.command()
def build(
    ctx: typer.Context,
    targets: Optional[List[str]] = typer.Argument(None, help="Targets, plus 'all' and 'run'."),
    mindustry: Optional[GameVersion] = typer.Option(None, "--mindustry", help="Game server version."),
    ssh: bool = typer.Option(False, "--ssh", help="Clone repositories over ssh."),
    stacktrace: bool = typer.Option(False, "--stacktrace", help="Pass --stacktrace to gradle."),
    ports_start: Optional[int] = typer.Option(None, "--ports-start", help="First port handed to services."),
    server_ip: Optional[str] = typer.Option(None, "--server-ip"),
    rabbitmq_url: Optional[str] = typer.Option(None, "--rabbitmq-url"),
) -> None:
    """Build targets in declaration order, and run them with 'run'."""
    if not targets:
        typer.echo(ctx.get_help(), err=True)
        raise typer.Exit(code=1)

    workspace: Workspace = ctx.obj["workspace"]
    try:
        settings = load_settings(
            workspace.root,
            env_mode=ctx.obj["env_mode"],
            game_version=mindustry,
            git_backend=GitBackend.SSH if ssh else None,
            java_stacktrace=True if stacktrace else None,
            ports_start=ports_start,
            server_ip=server_ip,
            rabbitmq_url=rabbitmq_url,
        )
        Engine(workspace, settings, confirm=_confirm_install).execute(targets)
    except BuildscriptError as exc:
        logger.error("%s", exc)
        raise typer.Exit(code=1) from exc


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def env(ctx: typer.Context) -> None:
    """Run a command (default: $SHELL) within the workspace environment."""
    workspace: Workspace = ctx.obj["workspace"]
    workspace.export()
    command = list(ctx.args) or [os.environ.get("SHELL", "sh")]
    try:
        code = subprocess.run(command, check=False).returncode
    except OSError as exc:
        logger.error("Could not run %s: %s", command[0], exc)
        raise typer.Exit(code=127) from exc
    raise typer.Exit(code=code)


@app.command("targets")
def list_targets() -> None:
    """List targets in the order they are always built."""
    for name, cls in registry.items():
        flags = cls.flags()
        notes = [n for n, on in (("local", flags.always_local), ("deprecated", flags.deprecated)) if on]
        deps = registry.dependencies(name)
        line = name
        if deps:
            line += f" <- {', '.join(deps)}"
        if notes:
            line += f" [{', '.join(notes)}]"
        typer.echo(line)
    typer.echo("\nSpecial targets:\n  all  - every target except deprecated ones\n  run  - run the built targets")
