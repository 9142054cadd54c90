"""coreplugin: the plugin shared by every game server."""

from __future__ import annotations

from ..target import target
from .plugin import SourcePlugin


@target("coreplugin")
class CorePlugin(SourcePlugin):
    repo = "Darkdustry-Coders/CorePlugin"
    jar = "CorePlugin.jar"
    gradle_tasks = (":coreplugin:build", ":coreplugin:publishAllPublicationsToMavenRepository")

    @classmethod
    def depends(cls, recipe) -> None:
        recipe.mark_dependency("java")
        recipe.mark_dependency("surrealdb")
        recipe.mark_dependency("rabbitmq")
        recipe.mark_dependency("mindustry")
