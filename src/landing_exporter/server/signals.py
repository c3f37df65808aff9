"""Signal handler setup for daemon mode.

SIGTERM (from systemd or Kubernetes) and SIGINT (Ctrl+C) both start a
graceful shutdown.
"""

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from landing_exporter.server.lifecycle import DaemonLifecycle

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def setup_signal_handlers(
    loop: asyncio.AbstractEventLoop,
    lifecycle: "DaemonLifecycle",
    shutdown_event: asyncio.Event,
) -> None:
    """Register SIGTERM/SIGINT handlers that initiate graceful shutdown.

    Args:
        loop: The asyncio event loop to register handlers on.
        lifecycle: DaemonLifecycle instance for shutdown coordination.
        shutdown_event: Event to signal when shutdown is initiated.
    """

    def handle_shutdown_signal(sig: signal.Signals) -> None:
        logger.info("Received %s, initiating graceful shutdown", sig.name)
        lifecycle.initiate_shutdown()
        shutdown_event.set()

    for sig in SHUTDOWN_SIGNALS:
        try:
            loop.add_signal_handler(sig, handle_shutdown_signal, sig)
            logger.debug("Registered handler for %s", sig.name)
        except (ValueError, RuntimeError, NotImplementedError) as e:
            # ValueError: not in main thread
            # RuntimeError: event loop not running
            # NotImplementedError: platform without loop signal support
            logger.warning("Failed to register handler for %s: %s", sig.name, e)


def remove_signal_handlers(loop: asyncio.AbstractEventLoop) -> None:
    """Remove signal handlers during cleanup."""
    for sig in SHUTDOWN_SIGNALS:
        try:
            loop.remove_signal_handler(sig)
            logger.debug("Removed handler for %s", sig.name)
        except (ValueError, RuntimeError, NotImplementedError):
            pass  # Handler may not have been registered
