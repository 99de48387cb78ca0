"""Timing spans for service calls, shown by ``--verbose``.

Disabled by default: every entry point checks one ContextVar and returns.
When enabled, each ``@traced`` service call becomes a root span, the
``trace_span`` blocks inside it become children, and the finished tree
lands in ``ServiceResult.meta["telemetry"]`` together with the call's
outcome (``ok`` or the failure code, e.g. ``CANNOT_UNINSTALL``).
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from provplan.services.result import ServiceResult

log = structlog.get_logger("provplan.telemetry")

_enabled: ContextVar[bool] = ContextVar("provplan_telemetry", default=False)
_current_span: ContextVar[Span | None] = ContextVar("provplan_span", default=None)

_P = ParamSpec("_P")
_R = TypeVar("_R")


@dataclass
class Span:
    """One timed step of a service call."""

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)
    outcome: str | None = None
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    def end(self) -> None:
        self.end_time = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.outcome is not None:
            data["outcome"] = self.outcome
        if self.annotations:
            data["annotations"] = dict(self.annotations)
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@contextmanager
def trace_span(name: str, **annotations: Any) -> Generator[Span | None]:
    """Time a block as a child of the active span.

    Yields None when telemetry is off or no ``@traced`` call is running,
    so callers guard annotations with ``if span:``.
    """
    parent = _current_span.get() if _enabled.get() else None
    if parent is None:
        yield None
        return

    child = Span(name=name, parent=parent, annotations=dict(annotations))
    parent.children.append(child)
    token = _current_span.set(child)
    try:
        yield child
    finally:
        _close(child, token)


def _close(span: Span, token: Token[Span | None]) -> None:
    span.end()
    _current_span.reset(token)


def _outcome_of(result: ServiceResult) -> str:
    if result.ok:
        return "ok"
    return result.error.code if result.error else "error"


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Run a service method under a root span named after it.

    ServiceResult returns get the span tree in ``meta["telemetry"]``;
    anything else passes through untouched.
    """

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        span = Span(name=func.__qualname__)
        token = _current_span.set(span)
        try:
            result = func(*args, **kwargs)
        except Exception:
            span.outcome = "exception"
            raise
        finally:
            _close(span, token)
            if span.outcome is not None:
                _log_span(span)

        if not isinstance(result, ServiceResult):
            span.outcome = "ok"
            _log_span(span)
            return result
        span.outcome = _outcome_of(result)
        _log_span(span)
        meta = {**(result.meta or {}), "telemetry": span.to_dict()}
        return result.model_copy(update={"meta": meta})  # type: ignore[return-value]

    return wrapper


def _log_span(span: Span) -> None:
    log.debug(
        "span.complete",
        span_name=span.name,
        duration_ms=round(span.duration_ms, 2),
        outcome=span.outcome,
        children=len(span.children),
    )


def enable_telemetry() -> None:
    """Turn spans on for the current context (``--verbose``)."""
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)


def get_current_span() -> Span | None:
    """The innermost active span, or None when telemetry is off."""
    return _current_span.get() if _enabled.get() else None
