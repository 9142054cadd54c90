"""Settings: invocation-wide configuration from the settings file, .env and CLI."""

from __future__ import annotations

import logging
import os
from enum import StrEnum
from pathlib import Path
from typing import Any

import dotenv
import hcl2
import jinja2
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

SETTINGS_FILE = "buildscript.hcl"

MAX_PORT = 65535

_RELEASES_URL = "https://github.com/Anuken/Mindustry/releases/download/{tag}/server-release.jar"
_HOTFIX_URL = "https://github.com/5GameMaker/MindustryHotfixv7/releases/download/v146.8/server-release.jar"


class EnvMode(StrEnum):
    """How tools are acquired."""

    # use host tools, ask before installing anything locally
    HOST = "host"
    # use host tools, install missing ones without asking
    AUTOINSTALL = "autoinstall"
    # install every tool in the workspace
    ISOLATE = "isolate"


class GitBackend(StrEnum):
    HTTPS = "https"
    SSH = "ssh"

    def repo_url(self, repo: str) -> str:
        if self is GitBackend.SSH:
            return f"git@github.com:{repo}"
        return f"https://github.com/{repo}"


class GameVersion(StrEnum):
    """Game server release the plugins are built against."""

    BLEEDING_EDGE = "be"
    V154 = "v154"
    V153 = "v153"
    V150 = "v150"
    V149 = "v149"
    V146 = "v146"

    @property
    def tag(self) -> str:
        """Version string used in the shared gradle settings."""
        if self is GameVersion.V146:
            return "v146.8"
        if self is GameVersion.BLEEDING_EDGE:
            return "v153"
        return self.value

    @property
    def arc_package(self) -> str:
        if self is GameVersion.V146:
            return "com.github.5GameMaker.ArcV7"
        return "com.github.Anuken.Arc"

    @property
    def game_package(self) -> str:
        if self is GameVersion.V146:
            return "com.github.5GameMaker.MindustryV7"
        return "com.github.Anuken.Mindustry"

    @property
    def server_jar(self) -> str:
        return f"server-{self.value}.jar"

    @property
    def download_url(self) -> str | None:
        """Release URL of the server jar; bleeding edge has no stable release."""
        if self is GameVersion.BLEEDING_EDGE:
            return None
        if self is GameVersion.V146:
            return _HOTFIX_URL
        return _RELEASES_URL.format(tag=self.value)


class Settings(BaseModel):
    """Configuration selected once per invocation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    game_version: GameVersion = GameVersion.V154
    git_backend: GitBackend = GitBackend.HTTPS
    env_mode: EnvMode = EnvMode.HOST
    ports_start: int = Field(4100, ge=1, le=MAX_PORT)
    server_ip: str = ""
    rabbitmq_url: str = ""
    java_stacktrace: bool = False

    @property
    def public_ip(self) -> str:
        return self.server_ip or "127.0.0.1"


def load_environment(root: Path) -> bool:
    """Load ``.env`` from the workspace root into the process environment."""
    env_file = root / ".env"
    loaded = dotenv.load_dotenv(env_file)
    if loaded:
        logger.debug("Loaded environment from %s", env_file)
    return loaded


def _file_settings(file: Path) -> dict[str, Any]:
    """Values from every ``settings`` block of the settings file.

    The file is a Jinja2 template over the process environment (``env``);
    later blocks override earlier ones.
    """
    try:
        template = jinja2.Template(file.read_text(), undefined=jinja2.StrictUndefined, keep_trailing_newline=True)
        rendered = template.render(env=dict(os.environ))
    except jinja2.TemplateError as exc:
        raise ConfigurationError(f"{file}: {exc}") from exc

    try:
        blocks = hcl2.loads(rendered).get("settings", [])
    except Exception as exc:
        # hcl2 surfaces lark parse errors without a common base class
        raise ConfigurationError(f"{file}: {exc}") from exc

    values: dict[str, Any] = {}
    for block in blocks:
        values.update(block)
    return values


def load_settings(root: Path, **overrides: Any) -> Settings:
    """Build Settings from ``buildscript.hcl`` (if present) and CLI overrides.

    Overrides that are None are ignored so unset flags keep file values.
    """
    file = root / SETTINGS_FILE
    values: dict[str, Any] = {}
    if file.is_file():
        logger.debug("Loading settings from %s", file)
        values = _file_settings(file)

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return Settings(**values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid settings: {exc}") from exc
