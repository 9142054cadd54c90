"""surrealdb: the database backing the core plugin."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from ..collection import TargetCollection
from ..enablement import Enablement
from ..errors import AcquisitionError
from ..params import BuildParams, InitParams, RunParams
from ..target import Target, TargetFlags, target
from ..tools import fetch_text, find_executable, is_executable
from .mprocs import MProcs

logger = logging.getLogger(__name__)

INSTALLER_URL = "https://install.surrealdb.com/"
USER = "admin"
PASSWORD = "password"


@target("surrealdb")
class SurrealDb(Target):
    def __init__(self, bin_dir: Path) -> None:
        self.bin_dir = bin_dir
        self.port: int | None = None

    @classmethod
    def flags(cls) -> TargetFlags:
        return TargetFlags(always_local=True)

    @classmethod
    def initialize_host(cls, enabled: Enablement, deps, params: InitParams) -> SurrealDb | None:
        surreal = find_executable("surreal")
        return cls(surreal.parent) if surreal else None

    @classmethod
    def initialize_cached(cls, enabled: Enablement, deps, params: InitParams) -> SurrealDb | None:
        tool_dir = params.workspace.tool_dir("surrealdb")
        return cls(tool_dir) if is_executable(tool_dir / "surreal") else None

    @classmethod
    def initialize_local(cls, enabled: Enablement, deps, params: InitParams) -> SurrealDb:
        tool_dir = params.workspace.tool_dir("surrealdb")
        tool_dir.mkdir(parents=True, exist_ok=True)
        script = fetch_text(INSTALLER_URL)
        try:
            process = subprocess.run(["sh", "-s", str(tool_dir)], input=script, text=True, check=False)
        except OSError as exc:
            raise AcquisitionError(f"Could not run the surrealdb installer: {exc}") from exc
        if process.returncode != 0:
            raise AcquisitionError(f"surrealdb installer exited with code {process.returncode}")
        return cls(tool_dir)

    def build(self, deps, params: BuildParams) -> None:
        # not compiled from source
        pass

    def run_init(self, deps, params: RunParams) -> None:
        self.port = params.next_port()
        params.set_env("SURREAL_USER", USER)
        params.set_env("SURREAL_PASS", PASSWORD)
        params.set_env("SURREAL_BIND", f"127.0.0.1:{self.port}")

    def run(self, deps: TargetCollection, params: RunParams) -> None:
        data = params.workspace.run_dir / "surrealdb"
        cmd = params.command(self.bin_dir / "surreal", "start", f"surrealkv://{data}")
        deps.require(MProcs).register(cmd, "surreal")
