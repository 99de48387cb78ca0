"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, provplan.toml only contains
overrides. An empty file (or none at all) is a valid configuration.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class PlannerConfig(BaseModel):
    """[planner] section."""

    model_config = {"frozen": True}

    merge_policy: Literal["fidelity", "first_seen"] = "fidelity"
    parallel_loads: bool = False
    max_workers: int = Field(default=4, ge=1, le=64)


class RepositoriesConfig(BaseModel):
    """[repositories] section."""

    model_config = {"frozen": True}

    locations: list[str] = Field(default_factory=list)


class ProfileConfig(BaseModel):
    """[profile] section. ``path`` is the default profile document."""

    model_config = {"frozen": True}

    path: str | None = None


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    local_dir: str = ".provplan/plugins"


class ProvplanConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    planner: PlannerConfig = Field(default_factory=PlannerConfig)
    repositories: RepositoriesConfig = Field(default_factory=RepositoriesConfig)
    profile: ProfileConfig = Field(default_factory=ProfileConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
