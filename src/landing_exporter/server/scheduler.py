"""Periodic scan task for the daemon.

Runs a full discovery pass right after startup and then every
``scan_interval_minutes``. Stop requests are only observed while waiting
between cycles; a cycle in progress always runs to completion.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

CycleFn = Callable[[], Awaitable[object]]


class PeriodicScanTask:
    """Background task that runs scan cycles on an interval.

    Usage:
        task = PeriodicScanTask(manager.discover_and_scan_all, interval_seconds=300)
        handle = asyncio.create_task(task.run())
        # ... later ...
        task.stop()
        await handle
    """

    def __init__(self, run_cycle: CycleFn, interval_seconds: float) -> None:
        """Initialize the periodic task.

        Args:
            run_cycle: Coroutine function running one full scan cycle.
            interval_seconds: Seconds to wait between the end of one cycle
                and the start of the next.
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.interval_seconds = interval_seconds
        self._run_cycle = run_cycle
        self._stop_event = asyncio.Event()
        self._running = False
        self._cycle_count = 0
        self._last_cycle_started: datetime | None = None
        self._last_cycle_completed: datetime | None = None
        self._last_cycle_duration: float | None = None
        self._consecutive_failures = 0

    async def run(self) -> None:
        """Run the scan loop until stop() is called."""
        if self._running:
            logger.warning("Periodic scan task already running")
            return

        self._running = True
        logger.info(
            "Periodic scan task started (interval %.0f seconds)", self.interval_seconds
        )

        try:
            while not self._stop_event.is_set():
                await self._run_once()

                try:
                    await asyncio.wait_for(
                        self._stop_event.wait(),
                        timeout=self.interval_seconds,
                    )
                    break
                except asyncio.TimeoutError:
                    pass  # Normal case - interval elapsed
        finally:
            self._running = False
            logger.info("Periodic scan task stopped")

    async def _run_once(self) -> None:
        self._last_cycle_started = datetime.now(timezone.utc)
        started = time.monotonic()
        logger.info("Starting scan cycle %d", self._cycle_count + 1)
        try:
            await self._run_cycle()
        except Exception:
            self._consecutive_failures += 1
            logger.exception(
                "Scan cycle failed (%d consecutive failures)", self._consecutive_failures
            )
        else:
            self._consecutive_failures = 0
            self._last_cycle_completed = datetime.now(timezone.utc)
        finally:
            self._cycle_count += 1
            self._last_cycle_duration = time.monotonic() - started
            logger.info(
                "Scan cycle %d finished in %.1f seconds",
                self._cycle_count,
                self._last_cycle_duration,
            )

    def stop(self) -> None:
        """Signal the task to stop after the current cycle."""
        self._stop_event.set()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    @property
    def last_cycle_started(self) -> datetime | None:
        return self._last_cycle_started

    @property
    def last_cycle_completed(self) -> datetime | None:
        """Completion time of the last cycle that did not raise."""
        return self._last_cycle_completed

    @property
    def last_cycle_duration(self) -> float | None:
        return self._last_cycle_duration

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures
