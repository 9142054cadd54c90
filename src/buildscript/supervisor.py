"""Process supervisor interface used by service targets."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .params import Command


@runtime_checkable
class ProcessSupervisor(Protocol):
    """A multiplexer that owns spawning and tearing down service processes."""

    def register(self, command: Command, name: str) -> None:
        """Hand over a configured command to be run as the task ``name``."""
        ...

    def wait(self) -> bool:
        """Block until the supervisor exits; return True on success."""
        ...
