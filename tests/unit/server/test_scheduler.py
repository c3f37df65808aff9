"""Tests for the periodic scan task."""

import asyncio

import pytest

from landing_exporter.server.scheduler import PeriodicScanTask


class TestPeriodicScanTask:
    """Tests for PeriodicScanTask initialization and properties."""

    def test_default_state(self):
        task = PeriodicScanTask(lambda: asyncio.sleep(0), interval_seconds=300)
        assert task.interval_seconds == 300
        assert task.is_running is False
        assert task.cycle_count == 0
        assert task.last_cycle_started is None
        assert task.consecutive_failures == 0

    @pytest.mark.parametrize("interval", [0, -1])
    def test_rejects_non_positive_interval(self, interval):
        with pytest.raises(ValueError, match="interval_seconds"):
            PeriodicScanTask(lambda: asyncio.sleep(0), interval_seconds=interval)

    def test_stop_sets_event(self):
        task = PeriodicScanTask(lambda: asyncio.sleep(0), interval_seconds=300)
        task.stop()
        assert task._stop_event.is_set()


@pytest.mark.asyncio
class TestPeriodicScanTaskAsync:
    """Async tests for PeriodicScanTask.run()."""

    async def test_first_cycle_runs_immediately(self):
        ran = asyncio.Event()

        async def cycle():
            ran.set()

        task = PeriodicScanTask(cycle, interval_seconds=3600)
        handle = asyncio.create_task(task.run())

        await asyncio.wait_for(ran.wait(), timeout=2.0)
        task.stop()
        await asyncio.wait_for(handle, timeout=2.0)

        assert task.cycle_count == 1
        assert task.last_cycle_completed is not None
        assert task.last_cycle_duration is not None
        assert task.is_running is False

    async def test_runs_repeatedly_on_interval(self):
        calls = 0

        async def cycle():
            nonlocal calls
            calls += 1
            if calls == 3:
                task.stop()

        task = PeriodicScanTask(cycle, interval_seconds=0.01)
        await asyncio.wait_for(task.run(), timeout=2.0)

        assert calls == 3
        assert task.cycle_count == 3

    async def test_failures_are_counted_and_reset(self):
        outcomes = [RuntimeError("a"), RuntimeError("b"), None]

        async def cycle():
            outcome = outcomes.pop(0)
            if outcome is not None:
                raise outcome
            task.stop()

        task = PeriodicScanTask(cycle, interval_seconds=0.01)
        await asyncio.wait_for(task.run(), timeout=2.0)

        assert task.cycle_count == 3
        assert task.consecutive_failures == 0

    async def test_failure_streak_is_exposed(self):
        async def cycle():
            task.stop()
            raise RuntimeError("boom")

        task = PeriodicScanTask(cycle, interval_seconds=0.01)
        await asyncio.wait_for(task.run(), timeout=2.0)

        assert task.consecutive_failures == 1
        assert task.last_cycle_completed is None
