"""Tests for the root CLI group and its global flags."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from provplan import __version__
from provplan.cli import cli
from tests.conftest import unit_doc, write_repository


@pytest.mark.usefixtures("_isolated_root")
class TestRootGroup:
    def test_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("plan", "resolve", "updates"):
            assert command in result.output

    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_args_prints_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "Usage:" in result.output

    def test_unknown_command(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["frobnicate"])
        assert result.exit_code == 2

    @pytest.mark.parametrize("flag", ["-v", "--log-json", "--sync"])
    def test_global_flags_accepted(
        self, cli_runner: CliRunner, tmp_path: Path, flag: str
    ) -> None:
        repo = write_repository(tmp_path / "repo.json", unit_doc("A"))
        result = cli_runner.invoke(cli, [flag, "plan", "install", "A", "--repo", str(repo)])
        assert result.exit_code == 0, result.output
        assert "plan_install" in result.output

    def test_verbose_shows_telemetry(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        repo = write_repository(tmp_path / "repo.json", unit_doc("A"))
        result = cli_runner.invoke(cli, ["-v", "plan", "install", "A", "--repo", str(repo)])
        assert result.exit_code == 0, result.output
        assert "PlanService.install" in result.output
        assert "planner" in result.output


@pytest.mark.usefixtures("_isolated_root")
class TestConfigOption:
    def test_explicit_config(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        write_repository(tmp_path / "elsewhere" / "repo.json", unit_doc("A"))
        config = tmp_path / "elsewhere" / "custom.toml"
        config.write_text('[repositories]\nlocations = ["repo.json"]\n')
        result = cli_runner.invoke(cli, ["-c", str(config), "-q", "plan", "install", "A"])
        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["install A 1.0.0"]

    def test_invalid_toml(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "broken.toml"
        config.write_text("[planner\nmerge_policy = ")
        result = cli_runner.invoke(cli, ["-c", str(config), "resolve", "A"])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "Invalid TOML" in result.output

    def test_invalid_value(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "provplan.toml"
        config.write_text('[planner]\nmerge_policy = "whatever"\n')
        result = cli_runner.invoke(cli, ["resolve", "A"])
        assert result.exit_code == 1
        assert "merge_policy" in result.output
