"""Repository loaders and the scheme-keyed manager that dispatches to them."""

from provplan.infrastructure.repositories.base import RepositoryLoader
from provplan.infrastructure.repositories.files import JsonRepositoryLoader
from provplan.infrastructure.repositories.manager import RepositoryManager
from provplan.infrastructure.repositories.memory import InMemoryRepositoryLoader

__all__ = [
    "InMemoryRepositoryLoader",
    "JsonRepositoryLoader",
    "RepositoryLoader",
    "RepositoryManager",
]
