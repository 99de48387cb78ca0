"""structlog setup shared by the CLI and embedding callers.

Log lines go to stderr so stdout stays clean for plan output. The planning
core logs through stdlib ``logging``; those records pass through the same
processor chain as structlog events, so ``--log-json`` yields one JSON
object per line regardless of where the line came from.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from provplan.domain.units import InstallableUnit
from provplan.domain.versions import Version, VersionRange

# Loggers that stay at WARNING even with --verbose.
_QUIET_LOGGERS = ("pluggy",)


def stringify_domain_values(
    _logger: Any, _method: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Render units, versions and ranges as their short text form."""
    for key, value in event_dict.items():
        if isinstance(value, InstallableUnit | Version | VersionRange):
            event_dict[key] = str(value)
        elif isinstance(value, list | tuple) and value and isinstance(value[0], InstallableUnit):
            event_dict[key] = [str(v) for v in value]
    return event_dict


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        stringify_domain_values,
    ]


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Install the stderr handler and set provplan's log level.

    Args:
        verbose: DEBUG for ``provplan.*`` loggers; WARNING otherwise.
        log_json: JSON lines instead of the console renderer.
    """
    pre_chain = _pre_chain()
    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("provplan").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
