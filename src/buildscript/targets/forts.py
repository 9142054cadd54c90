"""forts: the Forts game mode server."""

from __future__ import annotations

from ..target import target
from .plugin import GameServer


@target("forts")
class Forts(GameServer):
    repo = "Darkdustry-Coders/Forts"
    jar = "Forts.jar"
    gradle_tasks = (":forts:build",)
    gamemode = "forts"
    start_commands = "host Forts_v1.5 attack"
