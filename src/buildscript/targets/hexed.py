"""hexed: the Hexed game mode server."""

from __future__ import annotations

from ..target import TargetFlags, target
from .plugin import GameServer


@target("hexed")
class Hexed(GameServer):
    repo = "Darkdustry-Coders/HexedPlugin"
    jar = "Hexed.jar"
    gradle_tasks = (":hexed:build",)
    test_map = None

    @classmethod
    def flags(cls) -> TargetFlags:
        return TargetFlags(deprecated=True)
