"""Locating and reading provplan configuration.

Configuration lives in ``provplan.toml``, or in the ``[tool.provplan]``
table of a ``pyproject.toml``. The nearest directory (walking up from the
start directory, the way git looks for ``.git``) holding either one wins;
within a directory ``provplan.toml`` is preferred. ``PROVPLAN_CONFIG``
names a file explicitly and disables the walk.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from provplan.config.models import ProvplanConfig
from provplan.domain.errors import ProvplanError

CONFIG_FILENAME = "provplan.toml"
PYPROJECT_FILENAME = "pyproject.toml"
CONFIG_ENV_VAR = "PROVPLAN_CONFIG"


class ConfigError(ProvplanError):
    """The configuration file could not be parsed."""


def _parse(path: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ConfigError(msg) from exc
    except OSError as exc:
        msg = f"Cannot read {path}: {exc.strerror or exc}"
        raise ConfigError(msg) from exc


def _tool_table(data: dict[str, Any]) -> dict[str, Any] | None:
    table = data.get("tool", {}).get("provplan")
    return table if isinstance(table, dict) else None


def read_config_table(path: Path) -> dict[str, Any]:
    """The provplan settings held in *path*.

    For a ``pyproject.toml`` that is the ``[tool.provplan]`` table (empty
    when absent); for any other file the whole document. Raises
    ConfigError when the file is unreadable or not valid TOML.
    """
    data = _parse(path)
    if path.name == PYPROJECT_FILENAME:
        return _tool_table(data) or {}
    return data


def _pyproject_configures(path: Path) -> bool:
    try:
        return _tool_table(_parse(path)) is not None
    except ConfigError:
        return False


def find_config(start: Path | None = None) -> Path | None:
    """Config file for *start* (default: cwd), or None when there is none."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        pyproject = directory / PYPROJECT_FILENAME
        if pyproject.is_file() and _pyproject_configures(pyproject):
            return pyproject
    return None


def load_config(path: Path | None = None, cwd: Path | None = None) -> ProvplanConfig:
    """Validated configuration from *path* (or the one discovered from *cwd*).

    Defaults when no file is found.
    """
    path = path or find_config(cwd)
    if path is None:
        return ProvplanConfig()
    return ProvplanConfig.model_validate(read_config_table(path))
