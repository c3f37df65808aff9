"""Structured logging for the landing exporter.

Provides configurable logging with JSON format support and file rotation.
Log records carry the tenant and scan category of the scan that emitted them.
"""

from landing_exporter.logging.config import configure_logging
from landing_exporter.logging.context import (
    ScanContextFilter,
    clear_scan_context,
    get_scan_context,
    scan_context,
    set_scan_context,
)
from landing_exporter.logging.handlers import JSONFormatter

__all__ = [
    "JSONFormatter",
    "ScanContextFilter",
    "clear_scan_context",
    "configure_logging",
    "get_scan_context",
    "scan_context",
    "set_scan_context",
]
