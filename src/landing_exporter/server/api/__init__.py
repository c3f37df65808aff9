"""JSON API routes for the exporter.

- scans.py: on-demand scan triggers (``POST /api/scan/...``)
- errors.py: shared error response shape
"""

from aiohttp import web

from landing_exporter.server.api.scans import setup_scan_routes

__all__ = [
    "setup_api_routes",
]


def setup_api_routes(app: web.Application) -> None:
    """Register all API routes with the application."""
    setup_scan_routes(app)
