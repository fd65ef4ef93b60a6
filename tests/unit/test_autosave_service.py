"""
Unit tests for the debounced scan log autosaver.

Each test drives its own event loop with asyncio.run.
"""

import asyncio
import threading
import time

from services.autosave_service import ScanLogAutosaver, snapshot
from tests.factories import DiffEntryFactory

KEY = "default/counts.csv"


class RecordingSave:
    """Blocking save function that records every call."""

    def __init__(self, delay: float = 0.0, fail_times: int = 0):
        self.delay = delay
        self.fail_times = fail_times
        self.calls: list[tuple[str, list]] = []
        self._lock = threading.Lock()

    def __call__(self, key, diffs):
        time.sleep(self.delay)
        with self._lock:
            if self.fail_times > 0:
                self.fail_times -= 1
                raise ConnectionError("store unavailable")
            self.calls.append((key, list(diffs)))


class TestSnapshot:
    """Tests for snapshot."""

    def test_equal_for_equal_logs(self):
        entries = DiffEntryFactory.create_batch(2)

        assert snapshot(entries) == snapshot([e.model_copy() for e in entries])

    def test_differs_when_entry_changes(self):
        entry = DiffEntryFactory.create(actual=3)

        assert snapshot([entry]) != snapshot([entry.model_copy(update={"actual": 4})])


class TestDebounce:
    """Rapid edits collapse into one write."""

    def test_burst_writes_once_with_final_payload(self):
        save = RecordingSave()
        edits = [DiffEntryFactory.create_batch(n) for n in range(1, 6)]

        async def scenario():
            saver = ScanLogAutosaver(save, debounce_seconds=0.05)
            for diffs in edits:
                saver.schedule(KEY, diffs)
                await asyncio.sleep(0.005)
            assert saver.has_pending(KEY)
            await asyncio.sleep(0.3)
            return saver

        saver = asyncio.run(scenario())

        assert len(save.calls) == 1
        assert save.calls[0] == (KEY, edits[-1])
        assert not saver.has_pending(KEY)

    def test_unchanged_payload_not_scheduled(self):
        save = RecordingSave()
        diffs = DiffEntryFactory.create_batch(2)

        async def scenario():
            saver = ScanLogAutosaver(save, debounce_seconds=0.01)
            saver.mark_saved(KEY, diffs)
            scheduled = saver.schedule(KEY, list(diffs))
            await asyncio.sleep(0.1)
            return scheduled

        assert asyncio.run(scenario()) is False
        assert save.calls == []

    def test_revert_to_saved_payload_cancels_write(self):
        save = RecordingSave()
        saved = DiffEntryFactory.create_batch(1)
        edited = saved + DiffEntryFactory.create_batch(1)

        async def scenario():
            saver = ScanLogAutosaver(save, debounce_seconds=0.05)
            saver.mark_saved(KEY, saved)
            saver.schedule(KEY, edited)
            saver.schedule(KEY, saved)
            await asyncio.sleep(0.2)

        asyncio.run(scenario())

        assert save.calls == []

    def test_keys_are_independent(self):
        save = RecordingSave()

        async def scenario():
            saver = ScanLogAutosaver(save, debounce_seconds=0.02)
            saver.schedule("a.csv", DiffEntryFactory.create_batch(1))
            saver.schedule("b.csv", DiffEntryFactory.create_batch(1))
            await asyncio.sleep(0.2)

        asyncio.run(scenario())

        assert sorted(key for key, _ in save.calls) == ["a.csv", "b.csv"]


class TestInFlight:
    """Behaviour while a write is running."""

    def test_identical_edit_during_write_is_not_rewritten(self):
        save = RecordingSave(delay=0.1)
        diffs = DiffEntryFactory.create_batch(2)

        async def scenario():
            saver = ScanLogAutosaver(save, debounce_seconds=0.01)
            saver.schedule(KEY, diffs)
            await asyncio.sleep(0.05)
            assert saver.saving
            saver.schedule(KEY, list(diffs))
            await asyncio.sleep(0.4)
            return saver

        saver = asyncio.run(scenario())

        assert len(save.calls) == 1
        assert not saver.saving

    def test_new_edit_during_write_is_written_after(self):
        save = RecordingSave(delay=0.1)
        first = DiffEntryFactory.create_batch(1)
        second = first + DiffEntryFactory.create_batch(1)

        async def scenario():
            saver = ScanLogAutosaver(save, debounce_seconds=0.01)
            saver.schedule(KEY, first)
            await asyncio.sleep(0.05)
            saver.schedule(KEY, second)
            await asyncio.sleep(0.5)

        asyncio.run(scenario())

        assert [diffs for _, diffs in save.calls] == [first, second]

    def test_failure_is_logged_and_next_write_proceeds(self):
        save = RecordingSave(fail_times=1)
        first = DiffEntryFactory.create_batch(1)
        second = first + DiffEntryFactory.create_batch(1)

        async def scenario():
            saver = ScanLogAutosaver(save, debounce_seconds=0.01)
            saver.schedule(KEY, first)
            await asyncio.sleep(0.1)
            error = saver.last_error
            saver.schedule(KEY, second)
            await asyncio.sleep(0.1)
            return error, saver

        error, saver = asyncio.run(scenario())

        assert error == "store unavailable"
        assert save.calls == [(KEY, second)]
        assert saver.last_error is None

    def test_failed_payload_is_retried_on_next_schedule(self):
        save = RecordingSave(fail_times=1)
        diffs = DiffEntryFactory.create_batch(1)

        async def scenario():
            saver = ScanLogAutosaver(save, debounce_seconds=0.01)
            saver.schedule(KEY, diffs)
            await asyncio.sleep(0.1)
            return saver.schedule(KEY, diffs)

        rescheduled = asyncio.run(scenario())

        assert rescheduled is True


class TestFlushAndClose:
    """Tests for flush and close."""

    def test_flush_writes_immediately(self):
        save = RecordingSave()
        diffs = DiffEntryFactory.create_batch(1)

        async def scenario():
            saver = ScanLogAutosaver(save, debounce_seconds=10)
            saver.schedule(KEY, diffs)
            await saver.flush()
            return saver

        saver = asyncio.run(scenario())

        assert save.calls == [(KEY, diffs)]
        assert not saver.has_pending(KEY)

    def test_flush_with_nothing_pending(self):
        save = RecordingSave()

        async def scenario():
            await ScanLogAutosaver(save, debounce_seconds=0.01).flush()

        asyncio.run(scenario())

        assert save.calls == []

    def test_close_cancels_pending(self):
        save = RecordingSave()

        async def scenario():
            saver = ScanLogAutosaver(save, debounce_seconds=0.05)
            saver.schedule(KEY, DiffEntryFactory.create_batch(1))
            saver.close()
            await asyncio.sleep(0.15)
            return saver

        saver = asyncio.run(scenario())

        assert save.calls == []
        assert not saver.has_pending(KEY)

    def test_schedule_after_close_is_ignored(self):
        save = RecordingSave()

        async def scenario():
            saver = ScanLogAutosaver(save, debounce_seconds=0.01)
            saver.close()
            scheduled = saver.schedule(KEY, DiffEntryFactory.create_batch(1))
            await asyncio.sleep(0.05)
            return scheduled

        assert asyncio.run(scenario()) is False
        assert save.calls == []
