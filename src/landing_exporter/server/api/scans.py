"""On-demand scan endpoints.

Each endpoint validates that the tenant's directory exists, detaches the
scan and answers immediately with 202. Scan results show up in /metrics
once the scan finishes.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from aiohttp import web

from landing_exporter.scanner.models import ZombieType
from landing_exporter.server.api.errors import NOT_FOUND, SHUTTING_DOWN, api_error

if TYPE_CHECKING:
    from landing_exporter.scanner.orchestrator import ScanManager

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def shutdown_check(handler: Handler) -> Handler:
    """Decorator that returns 503 if the server is shutting down."""

    async def wrapper(request: web.Request) -> web.StreamResponse:
        lifecycle = request.app.get("lifecycle")
        if lifecycle and lifecycle.is_shutting_down:
            return api_error(
                "Service is shutting down", code=SHUTTING_DOWN, status=503
            )
        return await handler(request)

    return wrapper


def _manager(request: web.Request) -> ScanManager:
    return request.app["scan_manager"]


def _queued(message: str) -> web.Response:
    return web.json_response({"message": message}, status=202)


@shutdown_check
async def scan_all_handler(request: web.Request) -> web.Response:
    """Handle POST /api/scan/all/{tenant}."""
    tenant = request.match_info["tenant"]
    result = await _manager(request).queue_all_scans(tenant)
    if not result.any_scan_queued:
        return api_error(
            f"No scans could be queued for tenant '{tenant}'",
            code=NOT_FOUND,
            status=404,
            details=result.to_dict(),
        )
    return web.json_response(result.to_dict(), status=202)


@shutdown_check
async def scan_failures_handler(request: web.Request) -> web.Response:
    """Handle POST /api/scan/failures/{tenant}."""
    tenant = request.match_info["tenant"]
    if not await _manager(request).queue_failure_scan(tenant):
        return api_error(
            f"Failed directory for tenant '{tenant}' not found",
            code=NOT_FOUND,
            status=404,
        )
    return _queued(f"Failure scan for '{tenant}' queued.")


def _zombie_handler(zombie_type: ZombieType) -> Handler:
    @shutdown_check
    async def handler(request: web.Request) -> web.Response:
        tenant = request.match_info["tenant"]
        if not await _manager(request).queue_zombie_scan(tenant, zombie_type):
            return api_error(
                f"Landing directory for tenant '{tenant}' not found",
                code=NOT_FOUND,
                status=404,
            )
        return _queued(f"{zombie_type.value} zombie scan for '{tenant}' queued.")

    return handler


scan_observed_zombies_handler = _zombie_handler(ZombieType.OBSERVED)
scan_non_observed_zombies_handler = _zombie_handler(ZombieType.NON_OBSERVED)


@shutdown_check
async def scan_transcoded_handler(request: web.Request) -> web.Response:
    """Handle POST /api/scan/transcoded/{tenant}."""
    tenant = request.match_info["tenant"]
    if not await _manager(request).queue_transcoded_scan(tenant):
        return api_error(
            f"Transcoded directory for tenant '{tenant}' not found",
            code=NOT_FOUND,
            status=404,
        )
    return _queued(f"Transcoded scan for '{tenant}' queued.")


def get_scan_routes() -> list[tuple[str, str, Handler]]:
    """Return (method, path, handler) tuples for the scan API."""
    return [
        ("POST", "/api/scan/all/{tenant}", scan_all_handler),
        ("POST", "/api/scan/failures/{tenant}", scan_failures_handler),
        ("POST", "/api/scan/zombies/observed/{tenant}", scan_observed_zombies_handler),
        (
            "POST",
            "/api/scan/zombies/non-observed/{tenant}",
            scan_non_observed_zombies_handler,
        ),
        ("POST", "/api/scan/transcoded/{tenant}", scan_transcoded_handler),
    ]


def setup_scan_routes(app: web.Application) -> None:
    """Register scan API routes with the application."""
    for method, path, handler in get_scan_routes():
        app.router.add_route(method, path, handler)
