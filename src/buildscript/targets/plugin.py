"""Shared behaviour for plugins built from source trees inside the workspace."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import ClassVar, Self

from ..collection import TargetCollection
from ..enablement import Enablement
from ..params import BuildParams, Command, InitParams, RunParams, Toolchain
from ..target import Target
from ..tools import clone, symlink_file
from ..workspace import render
from .java import Java
from .mindustry import Mindustry
from .mprocs import MProcs
from .server_settings import encode_settings

logger = logging.getLogger(__name__)

SERVER_NAME = "Template Server"


class SourcePlugin(Target):
    """A plugin cloned into ``<root>/<name>`` and built with gradle.

    The plugin's own build copies its jar into ``.bin/<jar>``.
    """

    repo: ClassVar[str]
    jar: ClassVar[str]
    gradle_tasks: ClassVar[tuple[str, ...]]

    def __init__(self, source: Path, artifact: Path) -> None:
        self.source = source
        self.artifact = artifact

    @classmethod
    def _adopt(cls, params: InitParams) -> Self:
        params.add_member(Toolchain.JVM, cls.name)
        return cls(params.root / cls.name, params.workspace.bin_dir / cls.jar)

    @classmethod
    def initialize_host(cls, enabled: Enablement, deps, params: InitParams) -> Self | None:
        return None

    @classmethod
    def initialize_cached(cls, enabled: Enablement, deps, params: InitParams) -> Self | None:
        if not (params.root / cls.name).is_dir():
            return None
        return cls._adopt(params)

    @classmethod
    def initialize_local(cls, enabled: Enablement, deps, params: InitParams) -> Self:
        clone(params.settings.git_backend.repo_url(cls.repo), params.root / cls.name)
        return cls._adopt(params)

    def build(self, deps, params: BuildParams) -> None:
        params.gradle(*self.gradle_tasks).run(note=f"gradle {' '.join(self.gradle_tasks)}")


class GameServer(SourcePlugin):
    """A game-mode plugin that also runs as its own server alongside the core plugin."""

    gamemode: ClassVar[str | None] = None
    start_commands: ClassVar[str] = ""
    test_map: ClassVar[str | None] = "assets/testmap.msav"

    command: Command | None = None

    @classmethod
    def depends(cls, recipe) -> None:
        recipe.mark_dependency("java")
        recipe.mark_dependency("coreplugin")

    def run_init(self, deps: TargetCollection, params: RunParams) -> None:
        server_dir = params.workspace.run_dir / self.name
        config = server_dir / "config"
        (config / "mods").mkdir(parents=True, exist_ok=True)
        (config / "maps").mkdir(parents=True, exist_ok=True)

        bin_dir = params.workspace.bin_dir
        symlink_file(bin_dir / "CorePlugin.jar", config / "mods" / "CorePlugin.jar")
        symlink_file(self.artifact, config / "mods" / self.jar)
        if self.test_map is not None:
            shutil.copyfile(self.source / self.test_map, config / "maps" / Path(self.test_map).name)

        (config / "corePlugin.toml").write_text(
            render(
                "corePlugin.toml.j2",
                server_name=self.name,
                gamemode=self.gamemode,
                shared_config=params.workspace.shared_config,
            )
        )

        port = params.next_port()
        (config / "settings.bin").write_bytes(
            encode_settings({"name": SERVER_NAME, "port": port, "startCommands": self.start_commands})
        )
        logger.debug("%s listens on port %d", self.name, port)

        java = deps.require(Java).java
        server_jar = deps.require(Mindustry).path
        self.command = params.command(java, "-jar", server_jar, cwd=server_dir)

    def run(self, deps: TargetCollection, params: RunParams) -> None:
        if self.command is None:
            raise RuntimeError(f"{self.name} was not prepared")
        command, self.command = self.command, None
        deps.require(MProcs).register(command, self.name)
