"""Exceptions shared across layers.

Most planning problems are reported as diagnostics, not raised. These
exceptions cover the fail-fast paths only.
"""

from __future__ import annotations


class ProvplanError(Exception):
    """Base class for provplan exceptions."""


class RepositoryUnreadableError(ProvplanError):
    """A repository location could not be loaded or enumerated."""

    def __init__(self, location: str, reason: str) -> None:
        super().__init__(f"{location}: {reason}")
        self.location = location
        self.reason = reason


class DocumentError(ProvplanError):
    """A unit or profile document is malformed."""
