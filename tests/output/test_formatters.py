"""Tests for output-mode dispatch and the Rich console factory."""

from __future__ import annotations

import json

from provplan.output.console import create_console, get_output, style_for_kind
from provplan.output.formatters import OutputSettings, format_result
from provplan.services.result import ServiceResult

_RESULT = ServiceResult(
    ok=True,
    op="plan_install",
    data={
        "workflow": "install",
        "count": 1,
        "status": "ok",
        "operations": [{"kind": "install", "to": {"id": "A", "version": "1.0.0"}}],
        "diagnostics": [],
    },
)


class TestFormatResult:
    def test_json_mode(self) -> None:
        output = format_result(_RESULT, settings=OutputSettings(json_output=True))
        parsed = json.loads(output)
        assert parsed["ok"] is True
        assert parsed["data"]["operations"][0]["kind"] == "install"
        assert "error" not in parsed
        assert "meta" not in parsed

    def test_quiet_mode(self) -> None:
        output = format_result(_RESULT, settings=OutputSettings(quiet=True))
        assert output == "install A 1.0.0"

    def test_default_is_rich(self) -> None:
        output = format_result(_RESULT)
        assert "OK" in output
        assert "plan_install" in output
        assert "install" in output

    def test_json_wins_over_quiet(self) -> None:
        output = format_result(_RESULT, settings=OutputSettings(json_output=True, quiet=True))
        assert json.loads(output)["op"] == "plan_install"


class TestConsole:
    def test_renders_to_buffer(self) -> None:
        console = create_console(no_color=True, width=40)
        console.print("hello")
        assert get_output(console) == "hello\n"

    def test_kind_styles(self) -> None:
        assert style_for_kind("install") == "plan.kind.install"
        assert style_for_kind("uninstall") == "plan.kind.uninstall"
        assert style_for_kind("other") == ""
