"""ProvplanSettings: CLI flags, environment and config file in one object.

Precedence, highest first:

1. keyword arguments (the CLI flags click collected);
2. ``PROVPLAN_*`` environment variables, ``__`` between nested keys
   (``PROVPLAN_PLANNER__MERGE_POLICY=first_seen``);
3. the discovered config file (see :mod:`provplan.config.discovery`);
4. the section models' defaults.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from provplan.config.discovery import ConfigError, find_config, read_config_table
from provplan.config.models import (
    PlannerConfig,
    PluginsConfig,
    ProfileConfig,
    RepositoriesConfig,
)

__all__ = ["ConfigError", "ConfigFileSource", "ProvplanSettings"]


class ConfigFileSource(PydanticBaseSettingsSource):
    """Settings source over the provplan table of one config file."""

    def __init__(self, settings_cls: type[BaseSettings], path: Path | None) -> None:
        super().__init__(settings_cls)
        self._table = read_config_table(path) if path is not None and path.is_file() else {}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._table.get(field_name), field_name, field_name in self._table

    def __call__(self) -> dict[str, Any]:
        return dict(self._table)


# pydantic-settings builds sources inside the constructor, so the file in
# use reaches settings_customise_sources through this per-thread slot.
_pending = threading.local()


class ProvplanSettings(BaseSettings):
    """Everything a provplan run is configured with.

    Attributes:
        root: Directory that relative paths in the config file are anchored
            at (the config file's directory, else the working directory).
        config_path: The config file in use, or None.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "PROVPLAN_",
        "env_nested_delimiter": "__",
    }

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    sync: bool = False

    planner: PlannerConfig = Field(default_factory=PlannerConfig)
    repositories: RepositoriesConfig = Field(default_factory=RepositoriesConfig)
    profile: ProfileConfig = Field(default_factory=ProfileConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        path = getattr(_pending, "path", None)
        return init_settings, env_settings, ConfigFileSource(settings_cls, path)

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        **cli_flags: Any,
    ) -> ProvplanSettings:
        """Settings for one CLI invocation.

        *config_path* (``-c``) names the file outright; otherwise it is
        discovered from *root* or the working directory. Raises ConfigError
        for an unreadable file and pydantic's ValidationError for bad values.
        """
        path: Path | None
        if config_path:
            path = Path(config_path)
            if not path.is_file():
                msg = f"Config file not found: {config_path}"
                raise ConfigError(msg)
        else:
            path = find_config(root)

        if root is None:
            root = path.parent.resolve() if path is not None else Path.cwd()

        _pending.path = path
        try:
            return cls(root=root, config_path=path, **cli_flags)
        finally:
            _pending.path = None

    def resolve_path(self, value: str) -> Path:
        """*value* as a path, relative ones anchored at :attr:`root`."""
        p = Path(value).expanduser()
        return p if p.is_absolute() else self.root / p
