"""ProvisioningAgent — the single dependency injected into every service.

The agent owns the plugin manager, the repository manager built from the
plugins' loaders, the planner, and the event bus. Everything is created
lazily so ``--help`` never triggers plugin discovery.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from provplan.domain.units import Profile
from provplan.infrastructure.documents import read_profile
from provplan.infrastructure.repositories.files import location_to_path
from provplan.infrastructure.repositories.manager import (
    DEFAULT_SCHEME,
    RepositoryManager,
    scheme_of,
)
from provplan.infrastructure.repositories.memory import InMemoryRepositoryLoader
from provplan.resolution.gatherer import MergePolicy
from provplan.resolution.planner import Planner

if TYPE_CHECKING:
    from provplan.config.settings import ProvplanSettings
    from provplan.plugins.event_bus import EventBus
    from provplan.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

EMPTY_PROFILE_ID = "empty"


class ProvisioningAgent:
    """Wires configuration, plugins, repositories and the planner together.

    Constructed once at CLI startup from :class:`ProvplanSettings`.
    Services receive the agent via their :class:`BaseService` constructor.

    Parameters:
        settings: Resolved settings.
        memory: In-process repositories, addressable as ``memory:<name>``.
            A fresh empty loader is used when omitted.
    """

    def __init__(
        self,
        settings: ProvplanSettings,
        *,
        memory: InMemoryRepositoryLoader | None = None,
    ) -> None:
        self._settings = settings
        self._memory = memory or InMemoryRepositoryLoader()
        self._plugins: PluginManager | None = None
        self._repositories: RepositoryManager | None = None
        self._planner: Planner | None = None
        self._event_bus: EventBus | None = None

    @property
    def settings(self) -> ProvplanSettings:
        return self._settings

    @property
    def memory(self) -> InMemoryRepositoryLoader:
        return self._memory

    @property
    def plugins(self) -> PluginManager:
        """The plugin manager (discovered on first access)."""
        if self._plugins is None:
            from provplan.plugins.builtins.files import FileRepositoriesPlugin
            from provplan.plugins.manager import PluginManager

            pm = PluginManager()
            pm.register_plugin(FileRepositoriesPlugin(), name="files-builtin")
            if self._settings.plugins.enabled:
                pm.discover_and_load(
                    local_dir=self._settings.resolve_path(self._settings.plugins.local_dir)
                )
            self._plugins = pm
        return self._plugins

    @property
    def repositories(self) -> RepositoryManager:
        """Scheme-keyed loader registry with the configured default locations."""
        if self._repositories is None:
            manager = RepositoryManager([self._memory], self.default_locations())
            for loader in self.plugins.collect_repository_loaders():
                manager.register(loader)
            logger.debug("Repository schemes: %s", ", ".join(manager.schemes))
            self._repositories = manager
        return self._repositories

    @property
    def planner(self) -> Planner:
        if self._planner is None:
            cfg = self._settings.planner
            self._planner = Planner(
                self.repositories,
                merge_policy=MergePolicy(cfg.merge_policy),
                parallel_loads=cfg.parallel_loads,
                max_workers=cfg.max_workers,
            )
        return self._planner

    @property
    def event_bus(self) -> EventBus | None:
        """The post-plan event bus (None until :meth:`init_event_bus`)."""
        return self._event_bus

    def init_event_bus(self, *, sync: bool = False) -> None:
        """Create the event bus over the loaded plugins."""
        from provplan.plugins.event_bus import EventBus

        self._event_bus = EventBus(self.plugins, sync=sync)

    def close(self) -> int:
        """Flush pending events. Returns how many failed."""
        if self._event_bus is None:
            return 0
        failed = self._event_bus.drain()
        self._event_bus.shutdown()
        self._event_bus = None
        return failed

    # ------------------------------------------------------------------
    # Locations and profiles
    # ------------------------------------------------------------------

    def default_locations(self) -> list[str]:
        """Configured repository locations, relative paths anchored at the config root."""
        return [self.resolve_location(loc) for loc in self._settings.repositories.locations]

    def resolve_location(self, location: str) -> str:
        if scheme_of(location) != DEFAULT_SCHEME or location.startswith(f"{DEFAULT_SCHEME}:"):
            return location
        return str(self._settings.resolve_path(location))

    def load_profile(self, path: Path | str | None = None) -> Profile:
        """Read the profile document at *path* (or the configured default).

        With neither, the profile is empty. Raises DocumentError when the
        document is missing or malformed.
        """
        if path is None:
            configured = self._settings.profile.path
            if configured is None:
                return Profile(EMPTY_PROFILE_ID)
            return read_profile(self._settings.resolve_path(configured))
        return read_profile(location_to_path(str(path)))
