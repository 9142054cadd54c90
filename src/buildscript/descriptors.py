"""Build-system descriptor files regenerated on every invocation."""

from __future__ import annotations

import logging
from pathlib import Path

from .config import GameVersion
from .params import InitParams, Toolchain
from .workspace import render, write_if_diff

logger = logging.getLogger(__name__)

NATIVE_DESCRIPTOR = "Cargo.toml"
JVM_DESCRIPTOR = "settings.gradle"
JVM_SHARED_DESCRIPTOR = Path("buildscript") / "assets" / "shared.settings.gradle"

# always part of the native workspace
NATIVE_ROOT_MEMBER = "buildscript"


def render_native(members: tuple[str, ...]) -> str:
    return render("Cargo.toml.j2", members=[NATIVE_ROOT_MEMBER, *members])


def render_jvm(members: tuple[str, ...]) -> str:
    return render("settings.gradle.j2", members=members)


def render_jvm_shared(version: GameVersion) -> str:
    return render("shared.settings.gradle.j2", version=version)


def write_descriptors(params: InitParams) -> list[Path]:
    """Regenerate the descriptors from the members resolved during initialize.

    Files whose content would not change are left untouched. Returns the paths
    actually written.
    """
    root = params.root
    outputs = {
        root / JVM_SHARED_DESCRIPTOR: render_jvm_shared(params.settings.game_version),
        root / NATIVE_DESCRIPTOR: render_native(params.members(Toolchain.NATIVE)),
        root / JVM_DESCRIPTOR: render_jvm(params.members(Toolchain.JVM)),
    }
    written = [path for path, content in outputs.items() if write_if_diff(path, content)]
    if written:
        logger.info("Regenerated %s", ", ".join(p.name for p in written))
    return written
