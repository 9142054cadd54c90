"""coreutils: basic POSIX utilities, from the host or a busybox install."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

from ..enablement import Enablement
from ..errors import AcquisitionError
from ..params import BuildParams, InitParams
from ..target import Target, TargetFlags, target
from ..tools import download, find_executable, is_executable, symlink_file

logger = logging.getLogger(__name__)

BUSYBOX_URL = "https://busybox.net/downloads/binaries/1.35.0-x86_64-linux-musl/busybox"

# presence of these next to xargs is taken as a complete userland
PROBE = ("uname", "yes", "[", "cat", "touch")


def busybox_applets(listing: str) -> list[str]:
    """Parse the applet names from busybox's usage output."""
    lines = iter(line.strip() for line in listing.splitlines())
    for line in lines:
        if line.startswith("Currently defined functions"):
            break
    return [name.strip() for line in lines for name in line.split(",") if name.strip()]


@target("coreutils")
class CoreUtils(Target):
    def __init__(self, bin_dir: Path) -> None:
        self.bin_dir = bin_dir

    @classmethod
    def flags(cls) -> TargetFlags:
        return TargetFlags(always_local=False)

    @classmethod
    def initialize_host(cls, enabled: Enablement, deps, params: InitParams) -> CoreUtils | None:
        xargs = find_executable("xargs")
        if xargs is None:
            return None
        bin_dir = xargs.parent
        if not all(is_executable(bin_dir / name) for name in PROBE):
            logger.debug("Host coreutils in %s are incomplete", bin_dir)
            return None
        return cls(bin_dir)

    @classmethod
    def initialize_cached(cls, enabled: Enablement, deps, params: InitParams) -> CoreUtils | None:
        tool_dir = params.workspace.tool_dir("coreutils")
        # applets are linked last, so a partial install has none
        if not (is_executable(tool_dir / "busybox") and is_executable(tool_dir / "cat")):
            return None
        return cls(tool_dir)

    @classmethod
    def initialize_local(cls, enabled: Enablement, deps, params: InitParams) -> CoreUtils:
        tool_dir = params.workspace.tool_dir("coreutils")
        busybox = download(BUSYBOX_URL, tool_dir / "busybox")
        busybox.chmod(0o700)

        try:
            listing = subprocess.run(
                [str(busybox)],
                env={**os.environ, "LANG": "C"},
                capture_output=True,
                text=True,
                check=False,
            ).stdout
        except OSError as exc:
            raise AcquisitionError(f"Could not run busybox: {exc}") from exc

        for applet in busybox_applets(listing):
            symlink_file(busybox, tool_dir / applet)
        return cls(tool_dir)

    def build(self, deps, params: BuildParams) -> None:
        params.add_path(self.bin_dir)
