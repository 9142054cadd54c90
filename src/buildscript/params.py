"""Phase contexts handed from initialize to build to run."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from types import MappingProxyType

from .config import MAX_PORT, Settings
from .errors import BuildError, RunError
from .workspace import Workspace

logger = logging.getLogger(__name__)


class Toolchain(StrEnum):
    """Build systems that receive generated workspace member lists."""

    NATIVE = "native"
    JVM = "jvm"


@dataclass
class Command:
    """A fully configured, not yet started command line."""

    program: str
    args: list[str] = field(default_factory=list)
    cwd: Path | None = None
    env: dict[str, str] = field(default_factory=dict)

    def arg(self, *args: str | Path) -> Command:
        self.args.extend(str(a) for a in args)
        return self

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]

    def shell_line(self) -> str:
        """Render as a single POSIX shell line including cwd and env."""
        parts: list[str] = []
        if self.cwd is not None:
            parts.append(f"cd {shlex.quote(str(self.cwd))} &&")
        parts.extend(f"{k}={shlex.quote(v)}" for k, v in self.env.items())
        parts.extend(shlex.quote(a) for a in self.argv)
        return " ".join(parts)

    def run(self, *, note: str | None = None) -> None:
        """Run to completion, raising BuildError on a non-zero exit."""
        logger.info("Running %s", note or shlex.join(self.argv))
        try:
            process = subprocess.run(
                self.argv,
                cwd=str(self.cwd) if self.cwd else None,
                env={**os.environ, **self.env},
                check=False,
            )
        except OSError as exc:
            raise BuildError(f"Could not run {self.program}: {exc}") from exc
        if process.returncode != 0:
            raise BuildError(f"{note or shlex.join(self.argv)} failed with exit code {process.returncode}")


class _Params:
    """State shared by every phase context.

    A context is consumed when the next phase's context is created from it;
    after that every mutator raises.
    """

    def __init__(
        self,
        workspace: Workspace,
        settings: Settings,
        *,
        env: dict[str, str] | None = None,
        path: list[Path] | None = None,
    ) -> None:
        self._workspace = workspace
        self._settings = settings
        self._env: dict[str, str] = env if env is not None else {}
        self._path: list[Path] = path if path is not None else []
        self._consumed = False

    @property
    def workspace(self) -> Workspace:
        return self._workspace

    @property
    def root(self) -> Path:
        return self._workspace.root

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def env(self) -> Mapping[str, str]:
        return MappingProxyType(self._env)

    @property
    def path(self) -> Sequence[Path]:
        return tuple(self._path)

    @property
    def consumed(self) -> bool:
        return self._consumed

    def _check_open(self) -> None:
        if self._consumed:
            raise RuntimeError(f"{type(self).__name__} was handed off to the next phase")

    def set_env(self, key: str, value: str | Path) -> None:
        self._check_open()
        self._env[key] = str(value)

    def add_path(self, *entries: Path | str) -> None:
        """Append entries to the executable search path."""
        self._check_open()
        self._path.extend(Path(e) for e in entries)

    def search_path(self) -> str:
        return os.pathsep.join(str(p) for p in self._path)

    def command(self, program: str | Path, *args: str | Path, cwd: Path | None = None) -> Command:
        """Create a Command carrying the accumulated environment and PATH.

        Pass absolute program paths; the program may not be on PATH.
        """
        env = dict(self._env)
        env["PATH"] = self.search_path()
        return Command(str(program), [str(a) for a in args], cwd=cwd, env=env)

    def _hand_off(self) -> tuple[dict[str, str], list[Path]]:
        self._check_open()
        self._consumed = True
        env, path = self._env, self._path
        self._env, self._path = {}, []
        return env, path


class InitParams(_Params):
    """Context for the initialize phase."""

    def __init__(self, workspace: Workspace, settings: Settings) -> None:
        super().__init__(workspace, settings)
        self._members: dict[Toolchain, list[str]] = {t: [] for t in Toolchain}

    def add_member(self, toolchain: Toolchain, name: str) -> None:
        """Record a source tree present in the workspace for a toolchain."""
        self._check_open()
        if name not in self._members[toolchain]:
            self._members[toolchain].append(name)

    def members(self, toolchain: Toolchain) -> tuple[str, ...]:
        return tuple(self._members[toolchain])


class BuildParams(_Params):
    """Context for the build phase."""

    def __init__(
        self,
        workspace: Workspace,
        settings: Settings,
        *,
        env: dict[str, str] | None = None,
        path: list[Path] | None = None,
        members: Mapping[Toolchain, tuple[str, ...]] | None = None,
    ) -> None:
        super().__init__(workspace, settings, env=env, path=path)
        self._members = dict(members or {})

    @classmethod
    def from_init(cls, params: InitParams) -> BuildParams:
        members = {t: params.members(t) for t in Toolchain}
        env, path = params._hand_off()
        return cls(params.workspace, params.settings, env=env, path=path, members=members)

    def members(self, toolchain: Toolchain) -> tuple[str, ...]:
        return self._members.get(toolchain, ())

    def gradle(self, *tasks: str) -> Command:
        """A gradle wrapper invocation from the workspace root."""
        cmd = self.command(self.root / ("gradlew.bat" if os.name == "nt" else "gradlew"), *tasks, cwd=self.root)
        if self.settings.java_stacktrace:
            cmd.arg("--stacktrace")
        return cmd


class RunParams(_Params):
    """Context for the run-init and run phases."""

    def __init__(
        self,
        workspace: Workspace,
        settings: Settings,
        *,
        env: dict[str, str] | None = None,
        path: list[Path] | None = None,
    ) -> None:
        super().__init__(workspace, settings, env=env, path=path)
        self._port = settings.ports_start

    @classmethod
    def from_build(cls, params: BuildParams) -> RunParams:
        env, path = params._hand_off()
        return cls(params.workspace, params.settings, env=env, path=path)

    def next_port(self) -> int:
        """Allocate the next port; ports are never handed out twice."""
        self._check_open()
        if self._port > MAX_PORT:
            raise RunError(f"Ran out of ports above {MAX_PORT}")
        port = self._port
        self._port += 1
        logger.debug("Allocated port %d", port)
        return port
