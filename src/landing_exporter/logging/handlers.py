"""JSON log formatter for the exporter.

Writes one JSON object per line for log shippers. Records emitted while a
scan runs carry ``tenant`` and ``category`` as top-level keys, so logs can
be filtered per tenant without digging into nested context.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord has, plus the ones Formatter.format() adds
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

# Set by ScanContextFilter; rendered as top-level keys instead
_SCAN_ATTRS = frozenset({"tenant", "scan_category", "scan_tag"})


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Keys:
    - timestamp: ISO-8601 UTC time of the record
    - level, logger, message
    - tenant, category: present while a scan context is set
    - context: any other ``extra`` attributes
    - exception / stack: formatted traceback or stack, when present
    """

    def format(self, record: logging.LogRecord) -> str:
        record_time = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_entry: dict[str, Any] = {
            "timestamp": record_time.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        tenant = getattr(record, "tenant", None)
        if tenant:
            log_entry["tenant"] = tenant
            category = getattr(record, "scan_category", None)
            if category:
                log_entry["category"] = category

        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
            and key not in _SCAN_ATTRS
            and not key.startswith("_")
        }
        if context:
            log_entry["context"] = context

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_entry["stack"] = self.formatStack(record.stack_info)

        return json.dumps(log_entry, default=str, ensure_ascii=False)
