"""Tests for ProvplanSettings — unified settings with TOML source."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from provplan.config.settings import ConfigError, ProvplanSettings


class TestProvplanSettingsDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        """With no TOML and no env vars, all fields use code defaults."""
        settings = ProvplanSettings.from_cli(root=tmp_path)
        assert settings.root == tmp_path
        assert settings.json_output is False
        assert settings.quiet is False
        assert settings.sync is False
        assert settings.planner.merge_policy == "fidelity"
        assert settings.repositories.locations == []
        assert settings.profile.path is None
        assert settings.plugins.enabled is True

    def test_frozen(self, tmp_path: Path) -> None:
        settings = ProvplanSettings.from_cli(root=tmp_path)
        with pytest.raises(ValidationError):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_loads_from_toml(self, tmp_path: Path) -> None:
        (tmp_path / "provplan.toml").write_text(
            '[planner]\nmerge_policy = "first_seen"\n[repositories]\nlocations = ["r.json"]\n'
        )
        settings = ProvplanSettings.from_cli(root=tmp_path)
        assert settings.planner.merge_policy == "first_seen"
        assert settings.repositories.locations == ["r.json"]
        assert settings.planner.parallel_loads is False  # default preserved
        assert settings.config_path == tmp_path / "provplan.toml"

    def test_walk_up_discovery_sets_root(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "provplan.toml").write_text("[planner]\nparallel_loads = true\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        settings = ProvplanSettings.from_cli()
        assert settings.planner.parallel_loads is True
        assert settings.root == tmp_path.resolve()

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "my.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text('[profile]\npath = "p.json"\n')
        settings = ProvplanSettings.from_cli(config_path=str(custom), root=tmp_path)
        assert settings.profile.path == "p.json"
        assert settings.config_path == custom

    def test_missing_explicit_config(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Config file not found"):
            ProvplanSettings.from_cli(config_path=str(tmp_path / "nope.toml"), root=tmp_path)

    def test_pyproject_tool_table(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[project]\nname = "x"\n[tool.provplan.planner]\nmerge_policy = "first_seen"\n'
        )
        settings = ProvplanSettings.from_cli(root=tmp_path)
        assert settings.planner.merge_policy == "first_seen"
        assert settings.config_path == tmp_path / "pyproject.toml"

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "provplan.toml").write_text("[planner\n")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            ProvplanSettings.from_cli(root=tmp_path)

    def test_invalid_value(self, tmp_path: Path) -> None:
        (tmp_path / "provplan.toml").write_text('[planner]\nmerge_policy = "random"\n')
        with pytest.raises(ValidationError):
            ProvplanSettings.from_cli(root=tmp_path)


class TestPriority:
    def test_cli_flags_override(self, tmp_path: Path) -> None:
        settings = ProvplanSettings.from_cli(
            root=tmp_path, json_output=True, quiet=True, verbose=True, sync=True
        )
        assert settings.json_output is True
        assert settings.quiet is True
        assert settings.verbose is True
        assert settings.sync is True

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "provplan.toml").write_text("[planner]\nmax_workers = 2\n")
        monkeypatch.setenv("PROVPLAN_PLANNER__MAX_WORKERS", "8")
        settings = ProvplanSettings.from_cli(root=tmp_path)
        assert settings.planner.max_workers == 8


class TestResolvePath:
    def test_relative_anchored_at_root(self, tmp_path: Path) -> None:
        settings = ProvplanSettings.from_cli(root=tmp_path)
        assert settings.resolve_path("repos") == tmp_path / "repos"

    def test_absolute_unchanged(self, tmp_path: Path) -> None:
        settings = ProvplanSettings.from_cli(root=tmp_path)
        assert settings.resolve_path("/srv/repos") == Path("/srv/repos")
