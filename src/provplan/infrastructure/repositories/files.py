"""JSON repository documents on the local filesystem.

A location is either a bare path or a ``file://`` URL. A directory is read
as the concatenation of its ``*.json`` documents in name order.
"""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from provplan.domain.errors import DocumentError, RepositoryUnreadableError
from provplan.domain.units import InstallableUnit
from provplan.infrastructure.documents import read_repository

logger = logging.getLogger(__name__)


def location_to_path(location: str) -> Path:
    """Filesystem path named by a bare path or ``file://`` URL."""
    parsed = urlparse(location)
    if parsed.scheme == "file":
        return Path(url2pathname(parsed.path))
    return Path(location)


class JsonRepositoryLoader:
    """Loads :class:`~provplan.infrastructure.documents.RepositoryDocument` files."""

    schemes: tuple[str, ...] = ("file",)

    def load(self, location: str) -> list[InstallableUnit]:
        path = location_to_path(location)
        if path.is_dir():
            files = sorted(path.glob("*.json"))
        elif path.is_file():
            files = [path]
        else:
            raise RepositoryUnreadableError(location, "no such file or directory")

        units: list[InstallableUnit] = []
        for file in files:
            try:
                units.extend(read_repository(file))
            except DocumentError as exc:
                raise RepositoryUnreadableError(location, str(exc)) from exc
        logger.debug("Read %d units from %d document(s) at %s", len(units), len(files), path)
        return units
