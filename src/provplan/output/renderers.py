"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.table import Table
from rich.text import Text

from provplan.output.console import create_console, get_output, style_for_kind

if TYPE_CHECKING:
    from rich.console import Console

    from provplan.services.result import ServiceResult

type _Renderer = Callable[..., None]


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal, which is
    the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _renderer_for(result.op)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal output for ``--quiet``: one line per operation or unit."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    d = result.data
    if result.op.startswith("plan_"):
        return "\n".join(_operation_line(op) for op in d.get("operations", []))
    if result.op == "resolve":
        return "\n".join(_unit_label(u) for u in d.get("closure", []))
    if result.op == "updates":
        return "\n".join(_unit_label(u) for u in d.get("updates", []))
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _unit_label(unit: dict[str, Any] | None) -> str:
    if not unit:
        return ""
    return f"{unit.get('id', '?')} {unit.get('version', '')}".rstrip()


def _operation_line(op: dict[str, Any]) -> str:
    kind = op.get("kind", "")
    if kind == "update":
        return f"update {_unit_label(op.get('from'))} -> {_unit_label(op.get('to'))}"
    if kind == "install":
        return f"install {_unit_label(op.get('to'))}"
    return f"{kind} {_unit_label(op.get('from'))}"


def _status_line(console: Console, result: ServiceResult, suffix: str = "") -> None:
    label = Text("OK", style="plan.ok")
    op = Text(f"  {result.op}", style="plan.op")
    console.print(label, op, Text(suffix, style="plan.key"), end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="plan.key")
    if isinstance(value, dict | list):
        v = Text(json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, sep="")


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(console: Console, span_data: dict[str, Any], indent: int = 4) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += f"  ({escape(', '.join(f'{k}={v}' for k, v in annotations.items()))})"
    outcome = span_data.get("outcome")
    if outcome and outcome != "ok":
        line += f"  [plan.error]{escape(str(outcome))}[/plan.error]"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _diagnostic_lines(console: Console, diagnostics: list[dict[str, Any]]) -> None:
    styles = {"error": "plan.error", "warning": "plan.warning", "cancel": "plan.error"}
    for diag in diagnostics:
        sev = str(diag.get("severity", "info"))
        style = styles.get(sev, "plan.key")
        code = escape(str(diag.get("code", "")))
        message = escape(str(diag.get("message", "")))
        console.print(f"  [{style}]{sev}[/{style}] {code}: {message}")


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    console.print(
        Text("ERROR", style="plan.error"),
        Text(f"  {result.op}", style="plan.op"),
        Text(f"{code} — "),
        Text(msg),
    )

    if verbose and err and err.detail:
        diagnostics = err.detail.get("diagnostics")
        if isinstance(diagnostics, list):
            _diagnostic_lines(console, diagnostics)
        for k, v in err.detail.items():
            if k != "diagnostics":
                console.print(Text(f"    {k}: {v}"))
    if verbose:
        _render_meta(console, result)


# ── Plan renderers ────────────────────────────────────────────────────


def _operations_table(operations: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Operation")
    table.add_column("Unit", style="plan.id")
    table.add_column("From", style="plan.version")
    table.add_column("To", style="plan.version")

    for i, op in enumerate(operations, start=1):
        kind = str(op.get("kind", ""))
        before = op.get("from") or {}
        after = op.get("to") or {}
        style = style_for_kind(kind)
        table.add_row(
            str(i),
            Text(kind, style=style),
            str(after.get("id") or before.get("id", "")),
            str(before.get("version", "")),
            str(after.get("version", "")),
        )
    return table


def _render_plan(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    operations = d.get("operations", [])
    _status_line(console, result, f"  status={d.get('status', '?')}")

    if operations:
        console.print(_operations_table(operations))
    else:
        console.print("  No operations.")

    # Warnings reach stderr separately; show the rest here.
    informational = [x for x in d.get("diagnostics", []) if x.get("severity") != "warning"]
    if informational:
        _diagnostic_lines(console, informational)
    if verbose:
        _render_meta(console, result)


def _render_resolve(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result, f"  {d.get('count', 0)} unit(s)")

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Unit", style="plan.id")
    table.add_column("Version", style="plan.version")
    table.add_column("Installed")
    for unit in d.get("closure", []):
        table.add_row(
            str(unit.get("id", "")),
            str(unit.get("version", "")),
            "yes" if unit.get("installed") else "",
        )
    console.print(table)

    unresolved = d.get("unresolved", [])
    if unresolved:
        header = f"\n  {len(unresolved)} unresolved requirement(s):"
        console.print(Text(header, style="plan.error"))
        for item in unresolved:
            requirement = escape(str(item.get("requirement", "")))
            console.print(f"  {escape(_unit_label(item))} requires {requirement}")
    if verbose:
        _render_meta(console, result)


def _render_updates(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "unit", _unit_label(d.get("unit")))
    updates = d.get("updates", [])
    if not updates:
        console.print("  No newer versions available.")
    for unit in updates:
        console.print(Text(f"  {unit.get('version', '')}", style="plan.version"))
    if verbose:
        _render_meta(console, result)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


_OP_RENDERERS: dict[str, _Renderer] = {
    "resolve": _render_resolve,
    "updates": _render_updates,
}


def _renderer_for(op: str) -> _Renderer:
    if op.startswith("plan_"):
        return _render_plan
    return _OP_RENDERERS.get(op, _render_generic)
