"""Shared pytest fixtures and test helpers for provplan tests."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator, Iterable
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from provplan.config.settings import ProvplanSettings
from provplan.domain.units import (
    PROP_MOCK,
    PROP_PROFILE_UNIT,
    InstallableUnit,
    Profile,
    RequiredCapability,
)
from provplan.infrastructure.agent import ProvisioningAgent
from provplan.infrastructure.repositories.memory import InMemoryRepositoryLoader
from provplan.services.telemetry import disable_telemetry


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's PROVPLAN_* environment out of every test."""
    monkeypatch.delenv("PROVPLAN_CONFIG", raising=False)
    monkeypatch.delenv("PROVPLAN_ROOT", raising=False)


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """CLI runs reconfigure the root logger and may enable telemetry; undo both."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    disable_telemetry()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ProvplanSettings:
    """Settings rooted at an empty temp directory, with plugins disabled."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PROVPLAN_PLUGINS__ENABLED", "false")
    return ProvplanSettings.from_cli(root=tmp_path)


@pytest.fixture
def memory() -> InMemoryRepositoryLoader:
    return InMemoryRepositoryLoader()


@pytest.fixture
def agent(
    settings: ProvplanSettings, memory: InMemoryRepositoryLoader
) -> Generator[ProvisioningAgent]:
    """Agent over in-memory repositories. Event bus is synchronous."""
    a = ProvisioningAgent(settings, memory=memory)
    a.init_event_bus(sync=True)
    try:
        yield a
    finally:
        a.close()


@pytest.fixture
def _isolated_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI finds no provplan.toml.

    Use via ``@pytest.mark.usefixtures("_isolated_root")`` on command test
    classes.
    """
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PROVPLAN_PLUGINS__ENABLED", "false")


# ---------------------------------------------------------------------------
# Shared test helpers (used across test modules)
# ---------------------------------------------------------------------------


def req(name: str, version_range: str = "", **kwargs: Any) -> RequiredCapability:
    """Requirement on unit *name* within *version_range*."""
    return RequiredCapability.unit(name, version_range, **kwargs)


def iu(
    unit_id: str,
    version: str = "1.0",
    *,
    requires: Iterable[RequiredCapability | str] = (),
    mock: bool = False,
    profile_unit: bool = False,
    **kwargs: Any,
) -> InstallableUnit:
    """Build a unit. Plain strings in *requires* mean "any version of that id"."""
    properties = dict(kwargs.pop("properties", {}))
    if mock:
        properties[PROP_MOCK] = "true"
    if profile_unit:
        properties[PROP_PROFILE_UNIT] = "true"
    requirements = tuple(req(r) if isinstance(r, str) else r for r in requires)
    return InstallableUnit(
        unit_id, version, requires=requirements, properties=properties, **kwargs
    )


def profile_of(*units: InstallableUnit, profile_id: str = "test") -> Profile:
    return Profile(profile_id, units)


def unit_doc(unit_id: str, version: str = "1.0", **fields: Any) -> dict[str, Any]:
    """JSON-ready unit document."""
    return {"id": unit_id, "version": version, **fields}


def write_repository(path: Path, *units: dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"units": list(units)}), encoding="utf-8")
    return path


def write_profile(path: Path, *units: dict[str, Any], profile_id: str = "test") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"profile_id": profile_id, "units": list(units)}), encoding="utf-8")
    return path
