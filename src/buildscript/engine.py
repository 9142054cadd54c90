"""Engine: assembles the whole local environment for one invocation."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence

from .config import EnvMode, Settings
from .descriptors import write_descriptors
from .errors import RunError
from .lifecycle import Confirm, Lifecycle, decline
from .params import BuildParams, InitParams, RunParams
from .recipe import Recipe
from .supervisor import ProcessSupervisor
from .target import Registry, registry as default_registry
from .targets import SUPERVISOR
from .targets.rabbitmq import RabbitMq
from .workspace import Workspace

logger = logging.getLogger(__name__)


class Engine:
    """Selects, acquires, builds and optionally runs targets.

    Every failure propagates; a partially assembled environment is never
    reported as a success.
    """

    def __init__(
        self,
        workspace: Workspace,
        settings: Settings,
        *,
        registry: Registry | None = None,
        supervisor: str = SUPERVISOR,
        confirm: Confirm = decline,
    ) -> None:
        self.workspace = workspace
        self.settings = settings
        self.registry = registry if registry is not None else default_registry
        self.supervisor = supervisor
        self.confirm = confirm

    def recipe(self, goals: Sequence[str]) -> Recipe:
        return Recipe.from_goals(goals, self.registry, supervisor=self.supervisor)

    def execute(self, goals: Sequence[str]) -> Lifecycle:
        """Run every phase for ``goals``; services are started if ``run`` is among them."""
        recipe = self.recipe(goals)
        logger.info("Targets: %s", ", ".join(recipe.enabled()) or "none")

        self.workspace.export()
        self.workspace.prepare_build()

        lifecycle = Lifecycle(recipe, mode=self.settings.env_mode, confirm=self.confirm)

        init = InitParams(self.workspace, self.settings)
        lifecycle.init_all(init)
        write_descriptors(init)

        build = BuildParams.from_init(init)
        lifecycle.build_all(build)

        if recipe.run:
            self._run(lifecycle, RunParams.from_build(build))
        return lifecycle

    def _run(self, lifecycle: Lifecycle, params: RunParams) -> None:
        if self.settings.env_mode is not EnvMode.ISOLATE:
            params.add_path(*(p for p in os.environ.get("PATH", "").split(os.pathsep) if p))

        self.workspace.prepare_run()
        # once anything is started, instances are closed on every exit path
        try:
            lifecycle.run_init_all(params)

            rabbitmq = lifecycle.targets.get(RabbitMq)
            if rabbitmq is not None:
                self.workspace.write_shared_config(
                    server_ip=self.settings.public_ip,
                    rabbitmq_url=self.settings.rabbitmq_url or rabbitmq.url(),
                )

            lifecycle.run_all(params)

            supervisor = lifecycle.targets.get(self.supervisor)
            if not isinstance(supervisor, ProcessSupervisor):
                raise RunError(f"Target '{self.supervisor}' is not a process supervisor")
            ok = supervisor.wait()
        finally:
            lifecycle.stop()
        if not ok:
            raise RunError(f"{self.supervisor} exited with a non-zero code")
