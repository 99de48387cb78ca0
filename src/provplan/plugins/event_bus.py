"""Post-plan event dispatch via pluggy + ThreadPoolExecutor.

Events are fire-and-forget observers of finished plans. ``drain()`` is the
sync barrier used before the process exits.

INVARIANT: Plugin failures are warnings, never errors.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from provplan.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class EventBus:
    """Dispatches hook events synchronously or on a small thread pool.

    Parameters:
        plugin_manager: Loaded PluginManager for hook dispatch.
        sync: Force synchronous dispatch (useful for testing / ``--sync``).
        max_workers: ThreadPoolExecutor worker count.
    """

    def __init__(
        self,
        plugin_manager: PluginManager,
        *,
        sync: bool = False,
        max_workers: int = 2,
    ) -> None:
        self._pm = plugin_manager
        self._sync = sync
        self._executor: ThreadPoolExecutor | None = (
            None if sync else ThreadPoolExecutor(max_workers=max_workers)
        )
        self._futures: list[Future[bool]] = []

    @property
    def is_sync(self) -> bool:
        return self._sync

    def dispatch(self, hook_name: str, payload: dict[str, Any]) -> None:
        """Call *hook_name* with *payload* now (sync) or on the pool.

        Raises only in sync mode, so the caller can turn the failure into a
        warning on its result.
        """
        if self._executor is None:
            self._call(hook_name, payload)
            return
        self._futures.append(self._executor.submit(self._call_logged, hook_name, payload))

    def drain(self) -> int:
        """Wait for in-flight events. Returns how many of them failed."""
        failed = 0
        for future in self._futures:
            if not future.result():
                failed += 1
        self._futures.clear()
        return failed

    def shutdown(self) -> None:
        """Drain, then stop the worker pool."""
        self.drain()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _call(self, hook_name: str, payload: dict[str, Any]) -> None:
        hook_fn = getattr(self._pm.hook, hook_name, None)
        if hook_fn is None:
            return
        hook_fn(**payload)

    def _call_logged(self, hook_name: str, payload: dict[str, Any]) -> bool:
        try:
            self._call(hook_name, payload)
        except Exception:
            logger.warning("Hook %s failed", hook_name, exc_info=True)
            return False
        return True
