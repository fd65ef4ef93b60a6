"""
Debounced scan log persistence.

Every change to the diff log calls schedule(). A write happens only after
debounce_seconds without further changes; a change inside the window restarts
the timer. Writes for one key never overlap, and a write whose payload equals
the last acknowledged one is skipped.
"""

import asyncio
import json
from typing import Any, Callable, Optional
import structlog

from models.scan import DiffEntry
from services.scan_log_service import serialize_log

logger = structlog.get_logger(__name__)

SaveFn = Callable[[str, list[DiffEntry]], Any]


def snapshot(diffs: list[DiffEntry]) -> str:
    """Serialized payload used for change detection."""
    return json.dumps(serialize_log(diffs), sort_keys=True)


class ScanLogAutosaver:
    """
    Per-key debounced writer.

    Args:
        save: Blocking save function (key, diffs); runs in a worker thread
        debounce_seconds: Quiet period before a write
    """

    def __init__(self, save: SaveFn, debounce_seconds: float):
        self._save = save
        self.debounce_seconds = debounce_seconds
        self._last_saved: dict[str, str] = {}
        self._latest: dict[str, list[DiffEntry]] = {}
        self._pending: dict[str, asyncio.Task] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._in_flight = 0
        self._closed = False
        self.last_error: Optional[str] = None

    @property
    def saving(self) -> bool:
        """True while a write is running."""
        return self._in_flight > 0

    def has_pending(self, key: str) -> bool:
        return key in self._pending

    def mark_saved(self, key: str, diffs: list[DiffEntry]) -> None:
        """Record diffs as already persisted (e.g. just loaded)."""
        self._last_saved[key] = snapshot(diffs)
        self._latest[key] = list(diffs)

    def schedule(self, key: str, diffs: list[DiffEntry]) -> bool:
        """
        Request a write of diffs for key.

        Must be called from the event loop.

        Returns:
            True if a write was scheduled, False if nothing changed
        """
        if self._closed:
            return False

        self._latest[key] = list(diffs)
        self._cancel_pending(key)

        # A running write may be about to replace the acknowledged payload
        lock = self._locks.get(key)
        write_running = lock is not None and lock.locked()
        if snapshot(diffs) == self._last_saved.get(key) and not write_running:
            return False

        loop = asyncio.get_running_loop()
        self._pending[key] = loop.create_task(self._run(key))
        return True

    async def flush(self) -> None:
        """Write pending changes now and wait for running writes."""
        keys = list(self._pending)
        for key in keys:
            self._cancel_pending(key)
        for key in keys:
            await self._write(key)
        for lock in list(self._locks.values()):
            async with lock:
                pass

    def close(self) -> None:
        """
        Stop all activity.

        Pending timers are cancelled; a write already running finishes but
        its result is not recorded.
        """
        self._closed = True
        for key in list(self._pending):
            self._cancel_pending(key)
        logger.debug("autosaver_closed")

    def _cancel_pending(self, key: str) -> None:
        task = self._pending.pop(key, None)
        if task is not None:
            task.cancel()

    async def _run(self, key: str) -> None:
        await asyncio.sleep(self.debounce_seconds)
        # Past the quiet period the write can no longer be cancelled
        if self._pending.get(key) is asyncio.current_task():
            del self._pending[key]
        await self._write(key)

    async def _write(self, key: str) -> None:
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            if self._closed:
                return

            diffs = self._latest.get(key, [])
            payload = snapshot(diffs)
            if payload == self._last_saved.get(key):
                logger.debug("scan_log_unchanged", key=key)
                return

            self._in_flight += 1
            try:
                await asyncio.to_thread(self._save, key, diffs)
            except Exception as e:
                self.last_error = str(e)
                logger.warning(
                    "scan_log_save_failed",
                    key=key,
                    error=str(e),
                    error_type=type(e).__name__
                )
                return
            finally:
                self._in_flight -= 1

            if self._closed:
                return
            self._last_saved[key] = payload
            self.last_error = None
