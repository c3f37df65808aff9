"""HTTP application for daemon mode.

This module provides the aiohttp Application serving /metrics, /health
and the on-demand scan API, and owns the periodic scan task.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from aiohttp import web

from landing_exporter import __version__
from landing_exporter.metrics.sink import CONTENT_TYPE_LATEST
from landing_exporter.server.api import setup_api_routes
from landing_exporter.server.scheduler import PeriodicScanTask

if TYPE_CHECKING:
    from landing_exporter.metrics.sink import PrometheusGaugeSink
    from landing_exporter.scanner.orchestrator import ScanManager
    from landing_exporter.server.lifecycle import DaemonLifecycle

logger = logging.getLogger(__name__)


@dataclass
class HealthStatus:
    """Health check response payload."""

    status: str
    """Overall status: 'healthy', 'degraded' or 'unhealthy'."""

    uptime_seconds: float
    version: str
    shutting_down: bool = False
    shutdown_deadline: str | None = None
    """UTC time after which in-flight HTTP requests are dropped."""

    scan_cycles: int = 0
    """Number of periodic scan cycles run so far."""

    last_cycle_started: str | None = None
    last_cycle_completed: str | None = None
    consecutive_cycle_failures: int = 0
    background_scans: int = 0
    """On-demand scans still running."""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


def create_app(
    scan_manager: ScanManager,
    sink: PrometheusGaugeSink,
    *,
    scan_interval_seconds: float | None = None,
    lifecycle: DaemonLifecycle | None = None,
) -> web.Application:
    """Create the aiohttp application.

    Args:
        scan_manager: Manager used by the scan API and the periodic task.
        sink: Gauge sink rendered by /metrics.
        scan_interval_seconds: Interval of the periodic scan task. None
            disables the task (on-demand scans only).
        lifecycle: Daemon lifecycle; may also be set later as
            ``app["lifecycle"]``.
    """
    app = web.Application()
    app["scan_manager"] = scan_manager
    app["sink"] = sink
    app["lifecycle"] = lifecycle
    app["scan_interval_seconds"] = scan_interval_seconds
    app["scan_task"] = None
    app["scan_task_handle"] = None

    app.router.add_get("/health", health_handler)
    app.router.add_get("/metrics", metrics_handler)
    setup_api_routes(app)

    app.on_startup.append(_start_scan_task)
    app.on_cleanup.append(_stop_scan_task)
    app.on_cleanup.append(_wait_for_background_scans)

    return app


async def _start_scan_task(app: web.Application) -> None:
    """Start the periodic scan task."""
    interval = app["scan_interval_seconds"]
    if interval is None:
        logger.info("Periodic scanning disabled")
        return

    manager: ScanManager = app["scan_manager"]
    task = PeriodicScanTask(manager.discover_and_scan_all, interval_seconds=interval)
    app["scan_task"] = task
    app["scan_task_handle"] = asyncio.create_task(task.run())
    logger.debug("Started periodic scan task")


async def _stop_scan_task(app: web.Application) -> None:
    """Stop the periodic scan task once its current cycle has finished."""
    task: PeriodicScanTask | None = app.get("scan_task")
    task_handle: asyncio.Task | None = app.get("scan_task_handle")

    if task:
        task.stop()

    if task_handle and not task_handle.done():
        logger.info("Waiting for the running scan cycle to finish")
        await task_handle

    logger.debug("Stopped periodic scan task")


async def _wait_for_background_scans(app: web.Application) -> None:
    manager: ScanManager = app["scan_manager"]
    if manager.background_scan_count:
        logger.info(
            "Waiting for %d on-demand scans to finish", manager.background_scan_count
        )
        await manager.wait_for_background_scans()


async def health_handler(request: web.Request) -> web.Response:
    """Handle GET /health requests.

    Returns 200 while healthy, 503 while shutting down or after three
    consecutive failed scan cycles.
    """
    lifecycle: DaemonLifecycle | None = request.app.get("lifecycle")
    task: PeriodicScanTask | None = request.app.get("scan_task")
    manager: ScanManager = request.app["scan_manager"]

    shutting_down = lifecycle.is_shutting_down if lifecycle else False
    uptime = lifecycle.uptime_seconds if lifecycle else 0.0
    failures = task.consecutive_failures if task else 0

    if shutting_down:
        status = "unhealthy"
    elif failures >= 3:
        status = "degraded"
    else:
        status = "healthy"

    health = HealthStatus(
        status=status,
        uptime_seconds=round(uptime, 1),
        version=__version__,
        shutting_down=shutting_down,
        shutdown_deadline=_isoformat(
            lifecycle.shutdown_state.timeout_deadline if lifecycle else None
        ),
        scan_cycles=task.cycle_count if task else 0,
        last_cycle_started=_isoformat(task.last_cycle_started if task else None),
        last_cycle_completed=_isoformat(task.last_cycle_completed if task else None),
        consecutive_cycle_failures=failures,
        background_scans=manager.background_scan_count,
    )

    http_status = 200 if status == "healthy" else 503
    return web.json_response(health.to_dict(), status=http_status)


async def metrics_handler(request: web.Request) -> web.Response:
    """Handle GET /metrics with the Prometheus text exposition format."""
    sink: PrometheusGaugeSink = request.app["sink"]
    body = sink.render()
    return web.Response(body=body, headers={"Content-Type": CONTENT_TYPE_LATEST})


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
