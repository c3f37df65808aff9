"""Scan context for structured logging.

Tenant and scan category are carried in contextvars so that every log
record emitted while a scan runs (including from classification tasks
spawned inside it) is tagged with the scan it belongs to.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_tenant: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "tenant", default=None
)
_scan_category: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "scan_category", default=None
)


def set_scan_context(tenant: str, scan_category: str | None = None) -> None:
    """Set the current scan context.

    Args:
        tenant: Tenant being scanned (e.g. "Acme").
        scan_category: Category label (e.g. "failures", "zombies").
    """
    _tenant.set(tenant)
    _scan_category.set(scan_category)


def clear_scan_context() -> None:
    """Clear the current scan context."""
    _tenant.set(None)
    _scan_category.set(None)


def get_scan_context() -> tuple[str | None, str | None]:
    """Return ``(tenant, scan_category)``, either may be None."""
    return _tenant.get(), _scan_category.get()


@contextmanager
def scan_context(
    tenant: str, scan_category: str | None = None
) -> Generator[None, None, None]:
    """Context manager for a scan's logging context.

    Restores the previous context on exit, so scans may nest.

    Example:
        with scan_context("Acme", "failures"):
            logger.info("Scanning")  # logged as "[Acme/failures] Scanning"
    """
    old_tenant = _tenant.get()
    old_category = _scan_category.get()
    try:
        set_scan_context(tenant, scan_category)
        yield
    finally:
        _tenant.set(old_tenant)
        _scan_category.set(old_category)


class ScanContextFilter(logging.Filter):
    """Logging filter that injects scan context into log records.

    Adds ``tenant`` and ``scan_category`` attributes for JSON output and a
    compact ``scan_tag`` such as ``[Acme/failures] `` for text output.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        tenant, scan_category = get_scan_context()

        record.tenant = tenant
        record.scan_category = scan_category

        if tenant:
            if scan_category:
                record.scan_tag = f"[{tenant}/{scan_category}] "
            else:
                record.scan_tag = f"[{tenant}] "
        else:
            record.scan_tag = ""

        return True  # Never filter out records
