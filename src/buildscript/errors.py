"""Exception taxonomy for workspace assembly."""

from __future__ import annotations


class BuildscriptError(Exception):
    """Base class for every failure that aborts an invocation."""


class ConfigurationError(BuildscriptError):
    """Operator input is invalid; raised before any side effect."""


class AcquisitionError(BuildscriptError):
    """A tool or source tree could not be fetched, extracted or installed."""


class InstallDeclined(AcquisitionError):
    """The operator refused a local install."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"Local install of '{kind}' declined")
        self.kind = kind


class BuildError(BuildscriptError):
    """A compiler or toolchain reported failure."""


class RunError(BuildscriptError):
    """A supervised service or the supervisor itself failed."""
