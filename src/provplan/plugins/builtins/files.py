"""Built-in plugin contributing the JSON file repository loader."""

from __future__ import annotations

from provplan.infrastructure.repositories.base import RepositoryLoader
from provplan.infrastructure.repositories.files import JsonRepositoryLoader
from provplan.plugins.hookspecs import hookimpl


class FileRepositoriesPlugin:
    """Registers :class:`JsonRepositoryLoader` for ``file`` locations."""

    @hookimpl
    def register_repository_loaders(self) -> list[RepositoryLoader]:
        return [JsonRepositoryLoader()]
