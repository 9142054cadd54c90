"""TargetCollection: the arena holding at most one instance per target kind."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, TypeVar, overload

from .target import Registry, Target, registry as default_registry

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Target)


class TargetCollection(Mapping[str, Target]):
    """Live target instances keyed by kind.

    ``split(kind)`` lends out one instance while handing its lifecycle method a
    view of every other instance. Views share the same arena, so an instance
    reached through a view is the very object the collection holds; the lent
    instance is simply absent from the arena until the split ends.
    """

    def __init__(
        self,
        registry: Registry | None = None,
        *,
        _slots: dict[str, Target] | None = None,
        _lent: set[str] | None = None,
    ) -> None:
        self._registry = registry if registry is not None else default_registry
        self._slots: dict[str, Target] = _slots if _slots is not None else {}
        self._lent: set[str] = _lent if _lent is not None else set()

    @property
    def registry(self) -> Registry:
        return self._registry

    def insert(self, kind: str, instance: Target) -> None:
        """Store the instance for ``kind``; a kind holds at most one instance."""
        cls = self._registry.lookup(kind)
        if not isinstance(instance, cls):
            raise TypeError(f"Instance for '{kind}' must be a {cls.__name__}, not {type(instance).__name__}")
        if kind in self._lent:
            raise RuntimeError(f"Target '{kind}' is currently lent out")
        if kind in self._slots:
            raise RuntimeError(f"Target '{kind}' already has a live instance")
        self._slots[kind] = instance

    def remove(self, kind: str) -> Target | None:
        """Drop the instance for ``kind``, returning it."""
        if kind in self._lent:
            raise RuntimeError(f"Target '{kind}' is currently lent out")
        return self._slots.pop(kind, None)

    @contextmanager
    def split(self, kind: str) -> Iterator[tuple[Target | None, TargetCollection]]:
        """Lend ``kind``'s instance (or None) alongside a view of the others."""
        self._registry.lookup(kind)
        if kind in self._lent:
            raise RuntimeError(f"Target '{kind}' is already lent out")

        instance = self._slots.pop(kind, None)
        self._lent.add(kind)
        view = TargetCollection(self._registry, _slots=self._slots, _lent=self._lent)
        try:
            yield instance, view
        finally:
            self._lent.discard(kind)
            if instance is not None:
                self._slots[kind] = instance

    @overload
    def get(self, kind: type[T]) -> T | None: ...
    @overload
    def get(self, kind: str) -> Target | None: ...
    @overload
    def get(self, kind: str, default: Any) -> Any: ...
    def get(self, kind: Any, default: Any = None) -> Any:
        if isinstance(kind, type):
            kind = kind.name
        return self._slots.get(kind, default)

    def require(self, kind: type[T]) -> T:
        """Return the live instance of a dependency kind, which must exist."""
        instance = self._slots.get(kind.name)
        if instance is None:
            raise LookupError(f"Target '{kind.name}' is not available")
        return instance  # type: ignore[return-value]

    def __getitem__(self, kind: str) -> Target:
        return self._slots[kind]

    def __contains__(self, kind: object) -> bool:
        return kind in self._slots

    def __iter__(self) -> Iterator[str]:
        """Iterate present kinds in declaration order."""
        return (kind for kind in self._registry if kind in self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    def __repr__(self) -> str:
        return f"TargetCollection({', '.join(self)})"
