"""Daemon lifecycle management.

This module provides classes for managing daemon startup, running state
and graceful shutdown coordination.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone


@dataclass
class ShutdownState:
    """Tracks shutdown progress for graceful termination."""

    initiated: datetime | None = None
    """UTC timestamp when shutdown was initiated, None if not shutting down."""

    timeout_deadline: datetime | None = None
    """UTC timestamp after which in-flight HTTP requests are dropped."""

    @property
    def is_shutting_down(self) -> bool:
        return self.initiated is not None


@dataclass
class DaemonLifecycle:
    """Manages daemon startup and shutdown state.

    Shared by the HTTP handlers (health, shutdown checks) and the serve
    command. Signal handlers call :meth:`initiate_shutdown`.
    """

    shutdown_timeout: float = 30.0
    """Seconds in-flight HTTP requests get to finish on shutdown."""

    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    """UTC timestamp when daemon started."""

    shutdown_state: ShutdownState = field(default_factory=ShutdownState)

    @property
    def uptime_seconds(self) -> float:
        """Returns seconds since daemon startup."""
        return (datetime.now(timezone.utc) - self.start_time).total_seconds()

    @property
    def is_shutting_down(self) -> bool:
        return self.shutdown_state.is_shutting_down

    def initiate_shutdown(self) -> None:
        """Begin graceful shutdown. Idempotent."""
        if self.shutdown_state.initiated is not None:
            return

        now = datetime.now(timezone.utc)
        self.shutdown_state.initiated = now
        self.shutdown_state.timeout_deadline = now + timedelta(
            seconds=self.shutdown_timeout
        )
