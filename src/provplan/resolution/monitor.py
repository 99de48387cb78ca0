"""Cooperative cancellation handles for planning calls.

Planning never preempts itself; it polls ``is_cancelled()`` between
repository loads and between expansion steps.
"""

from __future__ import annotations

import threading
from typing import Protocol, runtime_checkable


@runtime_checkable
class ProgressMonitor(Protocol):
    """Anything that can tell a planning call to stop early."""

    def is_cancelled(self) -> bool: ...


class NullMonitor:
    """A monitor that never cancels."""

    def is_cancelled(self) -> bool:
        return False


class CancellationToken:
    """Thread-safe cancellation flag shared between a caller and a planning call."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()


class PlanningCancelled(Exception):
    """Raised inside the planner to unwind a cancelled call.

    Never escapes :class:`~provplan.resolution.planner.Planner`; it is turned
    into a CANCELLED plan at the facade.
    """


def check_cancelled(monitor: ProgressMonitor) -> None:
    """Raise :class:`PlanningCancelled` if *monitor* has been cancelled."""
    if monitor.is_cancelled():
        raise PlanningCancelled
