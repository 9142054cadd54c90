"""hub: the lobby server players join first."""

from __future__ import annotations

from ..target import TargetFlags, target
from .plugin import GameServer


@target("hub")
class Hub(GameServer):
    repo = "Darkdustry-Coders/LightweightHub"
    jar = "LightweightHub.jar"
    gradle_tasks = (":hub:build",)
    gamemode = "hub"
    start_commands = "host Protohub survival"

    @classmethod
    def flags(cls) -> TargetFlags:
        return TargetFlags(deprecated=True)
