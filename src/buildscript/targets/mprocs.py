"""mprocs: the terminal multiplexer that supervises service processes."""

from __future__ import annotations

import logging
import os
import subprocess
import time
from pathlib import Path

from ..enablement import Enablement
from ..errors import RunError
from ..params import BuildParams, Command, InitParams, RunParams
from ..target import Target, TargetFlags, target
from ..tools import download, extract_archive, find_executable, is_executable

logger = logging.getLogger(__name__)

VERSION = "0.7.3"
BASE_URL = f"https://github.com/pvolok/mprocs/releases/download/v{VERSION}/mprocs-{VERSION}"

# seconds to wait for mprocs after asking it to exit
STOP_TIMEOUT = 5


@target("mprocs")
class MProcs(Target):
    def __init__(self, mprocs: Path) -> None:
        self.mprocs = mprocs
        self.port: int | None = None
        self.process: subprocess.Popen | None = None

    @classmethod
    def flags(cls) -> TargetFlags:
        return TargetFlags(always_local=True)

    @classmethod
    def initialize_host(cls, enabled: Enablement, deps, params: InitParams) -> MProcs | None:
        found = find_executable("mprocs")
        return cls(found.resolve()) if found else None

    @classmethod
    def initialize_cached(cls, enabled: Enablement, deps, params: InitParams) -> MProcs | None:
        exe = params.workspace.tool_dir("mprocs") / "mprocs"
        return cls(exe) if is_executable(exe) else None

    @classmethod
    def initialize_local(cls, enabled: Enablement, deps, params: InitParams) -> MProcs:
        tool_dir = params.workspace.tool_dir("mprocs")
        archive = download(f"{BASE_URL}-linux-x86_64-musl.tar.gz", tool_dir / "archive.tar.gz")
        extract_archive(archive, tool_dir, 1)
        archive.unlink(missing_ok=True)
        return cls(tool_dir / "mprocs")

    def build(self, deps, params: BuildParams) -> None:
        # not compiled from source
        pass

    def _server(self) -> str:
        if self.port is None:
            raise RunError("mprocs is not running")
        return f"127.0.0.1:{self.port}"

    def run(self, deps, params: RunParams) -> None:
        self.port = params.next_port()
        cmd = params.command(self.mprocs, "--server", self._server())
        logger.info("Starting mprocs on %s", self._server())
        try:
            self.process = subprocess.Popen(cmd.argv, env={**os.environ, **cmd.env})
        except OSError as exc:
            raise RunError(f"Could not start mprocs: {exc}") from exc
        # give the control server a moment to bind
        time.sleep(0.01)

    def register(self, command: Command, name: str) -> None:
        """Add ``command`` as a new mprocs task called ``name``."""
        ctl = "{c: add-proc, cmd: %s, name: %s}" % (_yaml_str(command.shell_line()), _yaml_str(name))
        logger.info("Registering task '%s'", name)
        logger.debug("%s: %s", name, command.shell_line())
        try:
            process = subprocess.run(
                [str(self.mprocs), "--server", self._server(), "--ctl", ctl],
                check=False,
            )
        except OSError as exc:
            raise RunError(f"Could not reach mprocs: {exc}") from exc
        if process.returncode != 0:
            raise RunError(f"Failed starting task '{name}'")

    def wait(self) -> bool:
        """Wait for mprocs to exit. The process handle is released either way."""
        process, self.process = self.process, None
        if process is None:
            return True
        return process.wait() == 0

    def close(self) -> None:
        """Terminate mprocs if it is still running."""
        process, self.process = self.process, None
        if process is None or process.poll() is not None:
            return
        logger.info("Stopping mprocs")
        process.terminate()
        try:
            process.wait(timeout=STOP_TIMEOUT)
        except subprocess.TimeoutExpired:
            logger.warning("mprocs did not exit, killing it")
            process.kill()
            process.wait()


def _yaml_str(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
