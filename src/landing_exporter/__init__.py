"""Landing directory exporter.

Scans per-tenant landing directories for failures, zombie folders and
transcoded backlogs, and publishes the findings as Prometheus gauges and
JSON snapshots.
"""

__version__ = "0.1.0"
