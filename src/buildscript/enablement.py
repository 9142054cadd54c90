"""Enablement: how strongly a target kind is needed for one invocation."""

from __future__ import annotations

from enum import IntEnum


class Enablement(IntEnum):
    """Ordered tri-state: ``DISABLED < DEPENDENCY < BUILD``."""

    DISABLED = 0
    DEPENDENCY = 1
    BUILD = 2

    @property
    def enabled(self) -> bool:
        return self is not Enablement.DISABLED

    def merge(self, other: Enablement) -> Enablement:
        """Return the stronger of two marks; a mark never regresses."""
        return max(self, other)
