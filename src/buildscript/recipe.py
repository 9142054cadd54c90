"""Recipe: the enablement of every target kind for one invocation."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping

from .enablement import Enablement
from .errors import ConfigurationError
from .target import Registry, registry as default_registry

logger = logging.getLogger(__name__)

ALL = "all"
RUN = "run"


class Recipe(Mapping[str, Enablement]):
    """Maps each registered kind to its enablement.

    Marks only ever strengthen. The first time a kind becomes enabled its
    declared dependencies are marked in turn, so the recipe is always closed
    under dependency propagation.
    """

    def __init__(self, registry: Registry | None = None) -> None:
        self._registry = registry if registry is not None else default_registry
        self._state: dict[str, Enablement] = dict.fromkeys(self._registry, Enablement.DISABLED)
        self._final = False
        self.run = False

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def final(self) -> bool:
        return self._final

    def _mark(self, kind: str, enablement: Enablement) -> None:
        if self._final:
            raise RuntimeError("Recipe is final; marks are only allowed before the lifecycle starts")
        cls = self._registry.lookup(kind)
        previous = self._state[kind]
        self._state[kind] = previous.merge(enablement)
        if previous is Enablement.DISABLED:
            logger.debug("Enabled '%s' as %s", kind, self._state[kind].name)
            cls.depends(self)

    def mark_build(self, kind: str) -> None:
        """Mark ``kind`` as a build goal."""
        self._mark(kind, Enablement.BUILD)

    def mark_dependency(self, kind: str) -> None:
        """Mark ``kind`` as needed by another kind."""
        self._mark(kind, Enablement.DEPENDENCY)

    def finalize(self) -> Recipe:
        self._final = True
        return self

    def enabled(self) -> list[str]:
        """Enabled kinds in declaration order."""
        return [kind for kind, state in self._state.items() if state.enabled]

    @classmethod
    def from_goals(
        cls,
        goals: Iterable[str],
        registry: Registry | None = None,
        *,
        supervisor: str | None = None,
    ) -> Recipe:
        """Build a recipe from operator-selected names.

        ``all`` selects every non-deprecated kind and ``run`` requests that
        services be started, which also selects the ``supervisor`` kind.
        Unknown names raise before anything is marked.
        """
        recipe = cls(registry)
        goals = list(goals)

        unknown = [g for g in goals if g not in (ALL, RUN) and g not in recipe.registry]
        if unknown:
            raise ConfigurationError(f"No target '{unknown[0]}' defined")

        for goal in goals:
            if goal == ALL:
                for kind, kind_cls in recipe.registry.items():
                    if not kind_cls.flags().deprecated:
                        recipe.mark_build(kind)
            elif goal == RUN:
                recipe.run = True
            else:
                recipe.mark_build(goal)

        if recipe.run:
            if supervisor is None:
                raise ConfigurationError("Running requires a process supervisor target")
            recipe.mark_build(supervisor)

        return recipe

    def __getitem__(self, kind: str) -> Enablement:
        return self._state[kind]

    def __iter__(self) -> Iterator[str]:
        return iter(self._state)

    def __len__(self) -> int:
        return len(self._state)

    def __repr__(self) -> str:
        enabled = ", ".join(f"{k}={v.name}" for k, v in self._state.items() if v.enabled)
        return f"Recipe({enabled})"
