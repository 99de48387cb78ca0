"""Pluggy hook specifications for provplan.

One setup-time hook lets plugins contribute repository loaders. One
observer hook is dispatched after every computed plan.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from provplan.infrastructure.repositories.base import RepositoryLoader

hookspec = pluggy.HookspecMarker("provplan")
hookimpl = pluggy.HookimplMarker("provplan")


class ProvplanHookSpec:
    """Hook specifications for the provplan plugin system."""

    @hookspec
    def register_repository_loaders(self) -> list[RepositoryLoader] | None:
        """Return loaders for additional repository location schemes."""

    @hookspec
    def post_plan(
        self,
        workflow: str,
        status: str,
        operations: list[dict[str, Any]],
        diagnostics: list[dict[str, Any]],
    ) -> None:
        """Called after a plan is computed. Observers only; the plan is final."""
