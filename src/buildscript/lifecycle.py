"""Lifecycle: drives every enabled target through initialize, build, run-init and run."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum

from .collection import TargetCollection
from .config import EnvMode
from .errors import AcquisitionError, InstallDeclined
from .params import BuildParams, InitParams, RunParams
from .recipe import Recipe
from .target import Target

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


def decline(kind: str) -> bool:
    """Non-interactive policy that refuses every local install."""
    return False


class TargetState(StrEnum):
    UNBUILT = "unbuilt"
    INITIALIZED = "initialized"
    BUILT = "built"
    RUN_INITIALIZED = "run-initialized"
    RUNNING = "running"
    STOPPED = "stopped"


class Lifecycle:
    """Runs the four global passes in declaration order.

    Passes are not ordered by dependency: a target may only rely on state
    that targets declared before it have already published.
    """

    def __init__(
        self,
        recipe: Recipe,
        *,
        mode: EnvMode = EnvMode.HOST,
        confirm: Confirm = decline,
    ) -> None:
        self.recipe = recipe.finalize()
        self.registry = recipe.registry
        self.mode = mode
        self.confirm = confirm
        self.targets = TargetCollection(self.registry)
        self.states: dict[str, TargetState] = dict.fromkeys(self.registry, TargetState.UNBUILT)

    def initialize(self, kind: str, params: InitParams) -> Target:
        """Acquire one kind: host, then cache, then a local install."""
        cls = self.registry.lookup(kind)
        enabled = self.recipe[kind]

        with self.targets.split(kind) as (_, deps):
            instance: Target | None = None
            if self.mode is EnvMode.ISOLATE or cls.flags().always_local:
                logger.debug("Skipping host probe for '%s'", kind)
            else:
                instance = cls.initialize_host(enabled, deps, params)
                if instance is not None:
                    logger.info("Using host %s", kind)

            if instance is None:
                instance = cls.initialize_cached(enabled, deps, params)
                if instance is not None:
                    logger.info("Using cached %s", kind)

            if instance is None:
                if self.mode is EnvMode.HOST and not self.confirm(kind):
                    raise InstallDeclined(kind)
                logger.info("Installing %s into the workspace", kind)
                instance = cls.initialize_local(enabled, deps, params)
                if instance is None:
                    raise AcquisitionError(f"Could not install '{kind}'")

        self.targets.insert(kind, instance)
        self.states[kind] = TargetState.INITIALIZED
        return instance

    def init_all(self, params: InitParams) -> None:
        for kind in self.registry:
            if self.recipe[kind].enabled:
                self.initialize(kind, params)

    def _pass(
        self,
        expected: TargetState,
        state: TargetState,
        step: Callable[[Target, TargetCollection], None],
    ) -> None:
        for kind in self.registry:
            with self.targets.split(kind) as (instance, deps):
                if instance is None:
                    continue
                if self.states[kind] is not expected:
                    raise RuntimeError(f"Target '{kind}' is {self.states[kind]}, expected {expected}")
                step(instance, deps)
            self.states[kind] = state

    def build_all(self, params: BuildParams) -> None:
        def step(instance: Target, deps: TargetCollection) -> None:
            logger.info("Building %s", instance.name)
            instance.build(deps, params)

        self._pass(TargetState.INITIALIZED, TargetState.BUILT, step)

    def run_init_all(self, params: RunParams) -> None:
        def step(instance: Target, deps: TargetCollection) -> None:
            logger.debug("Preparing %s", instance.name)
            instance.run_init(deps, params)

        self._pass(TargetState.BUILT, TargetState.RUN_INITIALIZED, step)

    def run_all(self, params: RunParams) -> None:
        def step(instance: Target, deps: TargetCollection) -> None:
            logger.debug("Starting %s", instance.name)
            instance.run(deps, params)

        self._pass(TargetState.RUN_INITIALIZED, TargetState.RUNNING, step)

    def stop(self) -> None:
        """Close and drop every instance; running targets become stopped."""
        for kind in list(self.targets):
            instance = self.targets.remove(kind)
            if instance is not None:
                instance.close()
            if self.states[kind] is TargetState.RUNNING:
                self.states[kind] = TargetState.STOPPED
