"""Workspace: on-disk layout of one checkout and its generated files."""

from __future__ import annotations

import functools
import json
import logging
import os
import shutil
from pathlib import Path
from typing import Any

import jinja2
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

WORKSPACE_VARS = ("WORKSPACE", "MINDURKA_WORKSPACE")


@functools.cache
def _templates() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.PackageLoader("buildscript", "templates"),
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
    )
    # JSON string escaping is a valid TOML basic string
    env.filters["quote"] = lambda value: json.dumps(str(value))
    return env


def render(template: str, **context: Any) -> str:
    """Render one of the package templates."""
    return _templates().get_template(template).render(**context)


def write_if_diff(path: Path, content: str) -> bool:
    """Write ``content`` unless the file already holds exactly that.

    Returns True if the file was written.
    """
    data = content.encode()
    try:
        if path.read_bytes() == data:
            logger.debug("Unchanged: %s", path)
            return False
    except FileNotFoundError:
        pass
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    logger.debug("Wrote %s", path)
    return True


class Workspace(BaseModel):
    """Directories used relative to the invocation root."""

    model_config = ConfigDict(frozen=True)

    root: Path

    @classmethod
    def at(cls, root: Path | str) -> Workspace:
        return cls(root=Path(root).resolve())

    @property
    def cache_dir(self) -> Path:
        return self.root / ".cache" / "tools"

    @property
    def bin_dir(self) -> Path:
        return self.root / ".bin"

    @property
    def build_dir(self) -> Path:
        return self.root / ".build"

    @property
    def run_dir(self) -> Path:
        return self.root / ".run"

    @property
    def shared_config(self) -> Path:
        return self.run_dir / "sharedConfig.toml"

    def tool_dir(self, name: str) -> Path:
        return self.cache_dir / name

    def export(self) -> None:
        """Export the root markers for downstream tooling."""
        for var in WORKSPACE_VARS:
            os.environ[var] = str(self.root)

    def prepare_build(self) -> None:
        """Clear transient build output."""
        shutil.rmtree(self.build_dir, ignore_errors=True)
        shutil.rmtree(self.bin_dir, ignore_errors=True)
        self.bin_dir.mkdir(parents=True)

    def prepare_run(self) -> None:
        """Start from an empty run directory."""
        if self.run_dir.exists():
            shutil.rmtree(self.run_dir)
        self.run_dir.mkdir(parents=True)

    def write_shared_config(self, *, server_ip: str, rabbitmq_url: str) -> Path:
        """Write the cross-service discovery file read by every game server."""
        content = render("sharedConfig.toml.j2", server_ip=server_ip, rabbitmq_url=rabbitmq_url)
        self.shared_config.parent.mkdir(parents=True, exist_ok=True)
        self.shared_config.write_text(content)
        logger.info("Wrote shared config: %s", self.shared_config)
        return self.shared_config
