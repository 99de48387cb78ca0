"""Plugin discovery and loader collection.

Plugins come from three places, registered in this order:

1. built-ins the agent registers directly (the JSON file loader);
2. distributions exposing the ``provplan.plugins`` entry-point group;
3. single-file plugins in ``.provplan/plugins/`` next to ``provplan.toml``.

Order matters: when two plugins contribute a loader for the same
location scheme, the one registered later wins.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from collections.abc import Iterator
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING

import pluggy

from provplan.plugins.hookspecs import ProvplanHookSpec

if TYPE_CHECKING:
    from provplan.infrastructure.repositories.base import RepositoryLoader

PROJECT_NAME = "provplan"
ENTRY_POINT_GROUP = "provplan.plugins"
LOCAL_MODULE_PREFIX = "provplan_local_plugin_"

logger = logging.getLogger(__name__)


def is_plugin_class(obj: object) -> bool:
    """Whether *obj* is a class with at least one ``@hookimpl`` method."""
    if not inspect.isclass(obj):
        return False
    marker = f"{PROJECT_NAME}_impl"
    return any(
        getattr(member, marker, None) is not None
        for name, member in inspect.getmembers(obj, callable)
        if not name.startswith("_")
    )


def _import_file(path: Path) -> ModuleType | None:
    """Import *path* as a private module. None (logged) when it fails."""
    module_name = LOCAL_MODULE_PREFIX + path.stem
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        logger.warning("Not a loadable plugin file: %s", path)
        return None
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        sys.modules.pop(module_name, None)
        logger.warning("Failed to import local plugin %s", path, exc_info=True)
        return None
    return module


def _defined_plugin_classes(module: ModuleType) -> Iterator[type]:
    """Plugin classes defined in *module* itself (not imported into it)."""
    for _, obj in inspect.getmembers(module, is_plugin_class):
        if obj.__module__ == module.__name__:
            yield obj


class PluginManager:
    """A pluggy manager bound to the provplan hook specifications."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(ProvplanHookSpec)
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        """Whether :meth:`discover_and_load` has run."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        name = name or type(plugin).__name__
        self._pm.register(plugin, name=name)
        logger.debug("Registered plugin %s", name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        """Registered plugin names, oldest registration first."""
        return [name for name, plugin in self._pm.list_name_plugin() if plugin is not None]

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Load entry-point plugins, then single-file plugins from *local_dir*.

        A plugin that fails to import or instantiate is logged and skipped.
        Returns the names of all registered plugins.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._instantiate_registered_classes()
        if local_dir is not None and local_dir.is_dir():
            for path in sorted(local_dir.glob("*.py")):
                if not path.name.startswith("_"):
                    self._load_local(path)
        self._loaded = True
        return self.list_plugin_names()

    def collect_repository_loaders(self) -> list[RepositoryLoader]:
        """Loaders contributed through ``register_repository_loaders``.

        Contributions are taken plugin by plugin in registration order. A
        plugin whose hook raises or returns something other than a list of
        loaders is skipped with a warning; so is a loader that declares no
        schemes.
        """
        loaders: list[RepositoryLoader] = []
        for name, plugin in self._pm.list_name_plugin():
            hook = getattr(plugin, "register_repository_loaders", None)
            if hook is None:
                continue
            try:
                contributed = hook()
            except Exception:
                logger.warning("Plugin %s failed to register loaders", name, exc_info=True)
                continue
            if contributed is None:
                continue
            if not isinstance(contributed, list | tuple):
                logger.warning("Plugin %s returned %r instead of a loader list", name, contributed)
                continue
            for loader in contributed:
                if isinstance(getattr(loader, "schemes", None), tuple | list):
                    loaders.append(loader)
                else:
                    logger.warning("Plugin %s: loader %r declares no schemes", name, loader)
        return loaders

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load_local(self, path: Path) -> None:
        module = _import_file(path)
        if module is None:
            return
        for cls in _defined_plugin_classes(module):
            name = f"local:{path.stem}.{cls.__name__}"
            try:
                self.register_plugin(cls(), name=name)
            except Exception:
                logger.warning("Could not register %s from %s", cls.__name__, path, exc_info=True)

    def _instantiate_registered_classes(self) -> None:
        """Swap plugin classes registered by entry points for instances.

        An entry point may name a class rather than a module or object;
        hooks called on the class would have an unbound ``self``.
        """
        for plugin in self.get_plugins():
            if not is_plugin_class(plugin):
                continue
            name = self._pm.get_name(plugin) or plugin.__name__  # type: ignore[attr-defined]
            self._pm.unregister(plugin)
            try:
                instance = plugin()  # type: ignore[operator]
            except Exception:
                logger.warning("Could not instantiate entry-point plugin %s", name, exc_info=True)
                continue
            self._pm.register(instance, name=name)
