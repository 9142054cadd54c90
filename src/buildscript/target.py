"""Target contract, static flags, and the target kind registry."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, ClassVar, Self

from pydantic import BaseModel, ConfigDict

from .enablement import Enablement
from .errors import ConfigurationError

if TYPE_CHECKING:
    from .collection import TargetCollection
    from .params import BuildParams, InitParams, RunParams
    from .recipe import Recipe

logger = logging.getLogger(__name__)


class TargetFlags(BaseModel):
    """Static metadata for a target kind.

    New flags may be added at any time; they must default to a value that
    leaves existing kinds unaffected, so kinds should only ever pass the
    flags they care about.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # must always be installed in the workspace; intended for plugins
    always_local: bool = True
    # excluded from "all"
    deprecated: bool = False


class Target(ABC):
    """Base class for all target kinds.

    The classmethods describe the kind and acquire an instance; the instance
    methods drive the build and run phases.
    """

    name: ClassVar[str] = ""

    @classmethod
    def flags(cls) -> TargetFlags:
        """Flags for this kind. Tools should always override this."""
        return TargetFlags()

    @classmethod
    def depends(cls, recipe: Recipe) -> None:
        """Mark the kinds this kind requires."""

    @classmethod
    @abstractmethod
    def initialize_host(
        cls, enabled: Enablement, deps: TargetCollection, params: InitParams
    ) -> Self | None:
        """Adopt a tool already present on the host."""

    @classmethod
    @abstractmethod
    def initialize_cached(
        cls, enabled: Enablement, deps: TargetCollection, params: InitParams
    ) -> Self | None:
        """Adopt an artifact already present in the workspace cache."""

    @classmethod
    @abstractmethod
    def initialize_local(
        cls, enabled: Enablement, deps: TargetCollection, params: InitParams
    ) -> Self:
        """Fetch, install or build into the workspace cache."""

    @abstractmethod
    def build(self, deps: TargetCollection, params: BuildParams) -> None:
        """Build the target and publish its location into the build context."""

    def run_init(self, deps: TargetCollection, params: RunParams) -> None:
        """Prepare configuration and the command to run. Must not spawn."""

    def run(self, deps: TargetCollection, params: RunParams) -> None:
        """Hand the prepared command over to the process supervisor."""

    def close(self) -> None:
        """Release resources owned by the instance, such as a child process."""


class _DependencyProbe:
    """Records the marks a kind's ``depends`` makes, without propagating."""

    def __init__(self) -> None:
        self.marked: list[str] = []

    def mark_build(self, kind: str) -> None:
        self.marked.append(kind)

    def mark_dependency(self, kind: str) -> None:
        self.marked.append(kind)


class Registry(Mapping[str, type[Target]]):
    """Ordered catalogue of target kinds.

    Registration order is declaration order, and every lifecycle phase walks
    kinds in that order.
    """

    def __init__(self) -> None:
        self._kinds: dict[str, type[Target]] = {}

    def register(self, name: str):
        """Register a Target class under ``name``."""

        def decorator(cls: type[Target]) -> type[Target]:
            if name in self._kinds:
                raise ValueError(f"Duplicate target kind: '{name}'")
            cls.name = name
            self._kinds[name] = cls
            logger.debug("Registered target '%s' -> %s", name, cls.__name__)
            return cls

        return decorator

    def __getitem__(self, name: str) -> type[Target]:
        return self._kinds[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._kinds)

    def __len__(self) -> int:
        return len(self._kinds)

    def lookup(self, name: str) -> type[Target]:
        """Return the class for ``name`` or raise a ConfigurationError."""
        try:
            return self._kinds[name]
        except KeyError:
            raise ConfigurationError(f"No target '{name}' defined") from None

    def flags(self, name: str) -> TargetFlags:
        return self.lookup(name).flags()

    def dependencies(self, name: str) -> list[str]:
        """Return the kinds ``name`` directly depends on, in declared order."""
        probe = _DependencyProbe()
        self.lookup(name).depends(probe)  # type: ignore[arg-type]
        return probe.marked

    def check_acyclic(self) -> None:
        """Raise ValueError if any kind transitively depends on itself."""
        done: set[str] = set()

        def visit(name: str, resolving: list[str]) -> None:
            if name in done:
                return
            if name in resolving:
                chain = " -> ".join([*resolving, name])
                raise ValueError(f"Circular dependency detected: {chain}")
            resolving.append(name)
            for dep in self.dependencies(name):
                visit(dep, resolving)
            resolving.pop()
            done.add(name)

        for name in self._kinds:
            visit(name, [])

    def __repr__(self) -> str:
        return f"Registry({', '.join(self._kinds)})"


registry = Registry()


def target(name: str):
    """Register a Target class in the default registry."""
    return registry.register(name)
