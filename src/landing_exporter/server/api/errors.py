"""Standardized API error response helper.

All error responses share one shape:
- ``error``: Human-readable error message
- ``code``: Machine-readable error code string
- ``details`` (optional): Additional context for the error

Usage:
    from landing_exporter.server.api.errors import api_error, NOT_FOUND

    return api_error("Tenant not found", code=NOT_FOUND, status=404)
"""

from __future__ import annotations

from typing import Any

from aiohttp import web

NOT_FOUND = "NOT_FOUND"
SHUTTING_DOWN = "SHUTTING_DOWN"


def api_error(
    message: str,
    *,
    code: str,
    status: int = 400,
    details: Any = None,
) -> web.Response:
    """Create a standardized JSON error response.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (use constants from this module).
        status: HTTP status code (default 400).
        details: Optional additional context (string, list, or dict).
    """
    body: dict[str, Any] = {"error": message, "code": code}
    if details is not None:
        body["details"] = details
    return web.json_response(body, status=status)
