"""HTTP server for daemon mode: /metrics, /health and the scan API."""

from landing_exporter.server.app import create_app
from landing_exporter.server.lifecycle import DaemonLifecycle, ShutdownState
from landing_exporter.server.scheduler import PeriodicScanTask

__all__ = [
    "DaemonLifecycle",
    "PeriodicScanTask",
    "ShutdownState",
    "create_app",
]
