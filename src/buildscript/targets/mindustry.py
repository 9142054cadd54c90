"""mindustry: the game server runtime every plugin is loaded into."""

from __future__ import annotations

from pathlib import Path

from ..enablement import Enablement
from ..errors import AcquisitionError
from ..params import BuildParams, InitParams
from ..target import Target, TargetFlags, target
from ..tools import download


@target("mindustry")
class Mindustry(Target):
    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    def flags(cls) -> TargetFlags:
        return TargetFlags(always_local=True)

    @classmethod
    def depends(cls, recipe) -> None:
        recipe.mark_dependency("java")

    @classmethod
    def initialize_host(cls, enabled: Enablement, deps, params: InitParams) -> Mindustry | None:
        return None

    @classmethod
    def initialize_cached(cls, enabled: Enablement, deps, params: InitParams) -> Mindustry | None:
        jar = params.workspace.tool_dir("mindustry") / params.settings.game_version.server_jar
        return cls(jar) if jar.is_file() else None

    @classmethod
    def initialize_local(cls, enabled: Enablement, deps, params: InitParams) -> Mindustry:
        version = params.settings.game_version
        url = version.download_url
        if url is None:
            raise AcquisitionError(f"No server release to download for {version}")
        jar = params.workspace.tool_dir("mindustry") / version.server_jar
        return cls(download(url, jar))

    def build(self, deps, params: BuildParams) -> None:
        params.set_env("MINDUSTRY_PATH", self.path)
