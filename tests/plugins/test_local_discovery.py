"""Tests for local directory plugin discovery in PluginManager."""

from __future__ import annotations

import sys
from collections.abc import Generator
from pathlib import Path

import pytest

from provplan.plugins.manager import PluginManager

# -- Plugin source code used in tests ------------------------------------------

_LOADER_PLUGIN_SRC = """\
import pluggy

hookimpl = pluggy.HookimplMarker("provplan")


class DirLoader:
    schemes = ("dir",)

    def load(self, location):
        return []


class LocalLoaderPlugin:
    \"\"\"Contributes a loader for dir: locations.\"\"\"

    @hookimpl
    def register_repository_loaders(self):
        return [DirLoader()]
"""

_OBSERVER_PLUGIN_SRC = """\
import pluggy

hookimpl = pluggy.HookimplMarker("provplan")

calls: list[dict] = []


class PlanObserver:
    @hookimpl
    def post_plan(self, workflow, status, operations, diagnostics):
        calls.append({"workflow": workflow, "status": status})
"""

_SYNTAX_ERROR_SRC = """\
def broken(
    # missing closing paren and colon
"""

_NO_HOOKS_SRC = """\
class PlainClass:
    \"\"\"A class with no hookimpl-decorated methods.\"\"\"
    def hello(self) -> str:
        return "world"
"""


@pytest.fixture(autouse=True)
def _drop_local_modules() -> Generator[None]:
    yield
    for name in [m for m in sys.modules if m.startswith("provplan_local_plugin_")]:
        del sys.modules[name]


def _plugin_dir(tmp_path: Path, **files: str) -> Path:
    local = tmp_path / ".provplan" / "plugins"
    local.mkdir(parents=True)
    for name, source in files.items():
        (local / f"{name}.py").write_text(source, encoding="utf-8")
    return local


class TestLocalDiscovery:
    def test_loads_loader_plugin(self, tmp_path: Path) -> None:
        local = _plugin_dir(tmp_path, dirloader=_LOADER_PLUGIN_SRC)
        pm = PluginManager()
        names = pm.discover_and_load(local_dir=local)
        assert names == ["local:dirloader.LocalLoaderPlugin"]
        assert [loader.schemes for loader in pm.collect_repository_loaders()] == [("dir",)]

    def test_observer_receives_events(self, tmp_path: Path) -> None:
        local = _plugin_dir(tmp_path, observer=_OBSERVER_PLUGIN_SRC)
        pm = PluginManager()
        pm.discover_and_load(local_dir=local)
        pm.hook.post_plan(workflow="uninstall", status="ok", operations=[], diagnostics=[])
        module = sys.modules["provplan_local_plugin_observer"]
        assert module.calls == [{"workflow": "uninstall", "status": "ok"}]

    def test_broken_plugin_skipped(self, tmp_path: Path) -> None:
        local = _plugin_dir(tmp_path, broken=_SYNTAX_ERROR_SRC, good=_LOADER_PLUGIN_SRC)
        pm = PluginManager()
        names = pm.discover_and_load(local_dir=local)
        assert names == ["local:good.LocalLoaderPlugin"]
        assert "provplan_local_plugin_broken" not in sys.modules

    def test_class_without_hooks_ignored(self, tmp_path: Path) -> None:
        local = _plugin_dir(tmp_path, plain=_NO_HOOKS_SRC)
        pm = PluginManager()
        assert pm.discover_and_load(local_dir=local) == []

    def test_underscore_files_skipped(self, tmp_path: Path) -> None:
        local = _plugin_dir(tmp_path, _private=_LOADER_PLUGIN_SRC)
        pm = PluginManager()
        assert pm.discover_and_load(local_dir=local) == []

    def test_missing_dir(self, tmp_path: Path) -> None:
        assert PluginManager().discover_and_load(local_dir=tmp_path / "absent") == []
