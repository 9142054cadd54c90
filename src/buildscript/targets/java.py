"""java: a JDK (17 or newer) for gradle and the game servers."""

from __future__ import annotations

import logging
import os
import re
import subprocess
from pathlib import Path

from ..enablement import Enablement
from ..params import BuildParams, InitParams
from ..target import Target, TargetFlags, target
from ..tools import download, extract_archive, is_executable

logger = logging.getLogger(__name__)

MIN_VERSION = 17
JVM_DIR = Path("/usr/lib/jvm")
URL = (
    "https://github.com/adoptium/temurin21-binaries/releases/download/jdk-21.0.7%2B6/"
    "OpenJDK21U-jdk_x64_linux_hotspot_21.0.7_6.tar.gz"
)

_SPEC_VERSION = re.compile(r"java\.specification\.version = (\d+)(?:\.(\d+))?")


def parse_version(output: str) -> int | None:
    """Extract the major version from ``java -XshowSettings:properties`` output."""
    match = _SPEC_VERSION.search(output)
    if match is None:
        return None
    major = int(match.group(1))
    # 1.8 style
    if major == 1 and match.group(2):
        return int(match.group(2))
    return major


def java_version(home: Path) -> int | None:
    """Return the major version of the JDK at ``home``, or None if unusable."""
    if not is_executable(home / "bin" / "javac"):
        return None
    try:
        out = subprocess.run(
            [str(home / "bin" / "java"), "-XshowSettings:properties", "-version"],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError:
        return None
    if out.returncode != 0:
        return None
    # settings are printed on stderr
    return parse_version(out.stderr + out.stdout)


def _usable(home: Path) -> bool:
    version = java_version(home)
    logger.debug("JDK at %s: version %s", home, version)
    return version is not None and version >= MIN_VERSION


@target("java")
class Java(Target):
    def __init__(self, home: Path) -> None:
        self.home = home
        logger.info("java: %s", home)

    @classmethod
    def flags(cls) -> TargetFlags:
        return TargetFlags(always_local=False)

    @classmethod
    def depends(cls, recipe) -> None:
        recipe.mark_dependency("coreutils")

    @classmethod
    def initialize_host(cls, enabled: Enablement, deps, params: InitParams) -> Java | None:
        java_home = os.environ.get("JAVA_HOME")
        if java_home and _usable(Path(java_home)):
            return cls(Path(java_home))

        if JVM_DIR.is_dir():
            for home in sorted(JVM_DIR.iterdir()):
                if _usable(home):
                    return cls(home)
        return None

    @classmethod
    def initialize_cached(cls, enabled: Enablement, deps, params: InitParams) -> Java | None:
        home = params.workspace.tool_dir("java")
        if is_executable(home / "bin" / "javac") and is_executable(home / "bin" / "java"):
            return cls(home)
        return None

    @classmethod
    def initialize_local(cls, enabled: Enablement, deps, params: InitParams) -> Java:
        home = params.workspace.tool_dir("java")
        archive = download(URL, home / "archive.tar.gz")
        extract_archive(archive, home, 1)
        archive.unlink(missing_ok=True)
        return cls(home)

    @property
    def java(self) -> Path:
        return self.home / "bin" / "java"

    def build(self, deps, params: BuildParams) -> None:
        params.set_env("JAVA_HOME", self.home)
        params.add_path(self.home / "bin")
