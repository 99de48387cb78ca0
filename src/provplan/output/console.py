"""Rich Console factory and theme for provplan output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments (tests,
pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

PLAN_THEME = Theme(
    {
        "plan.ok": "bold green",
        "plan.error": "bold red",
        "plan.warning": "bold yellow",
        "plan.op": "bold cyan",
        "plan.key": "dim",
        "plan.id": "bold blue",
        "plan.version": "magenta",
        "plan.kind.install": "green",
        "plan.kind.uninstall": "red",
        "plan.kind.update": "yellow",
    }
)

_KIND_STYLES: dict[str, str] = {
    "install": "plan.kind.install",
    "uninstall": "plan.kind.uninstall",
    "update": "plan.kind.update",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=PLAN_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_kind(kind: str) -> str:
    """Rich style name for an operand kind."""
    return _KIND_STYLES.get(kind, "")
