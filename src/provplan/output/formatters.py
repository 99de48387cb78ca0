"""Output-mode dispatch for ServiceResult.

The CLI renders ServiceResult for humans (Rich tables, colors) or machines
(``--json``). ``--quiet`` reduces human output to one line per operation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from provplan.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from provplan.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display according to *settings*."""
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2, exclude_none=True)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
