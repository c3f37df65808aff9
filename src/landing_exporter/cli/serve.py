"""CLI serve command for daemon mode.

This module provides the ``landing-exporter serve`` command, which runs the
HTTP server (/metrics, /health, scan API) together with the periodic scan
task until SIGTERM or SIGINT.
"""

from __future__ import annotations

import asyncio
import errno
import logging
import os
import sys
from pathlib import Path

import click

from landing_exporter.cli import configure_command_logging
from landing_exporter.cli.exit_codes import ExitCode
from landing_exporter.cli.wiring import build_scan_manager, load_config_or_exit
from landing_exporter.config.models import ExporterConfig

logger = logging.getLogger(__name__)


async def run_server(config: ExporterConfig) -> int:
    """Run the daemon server.

    Args:
        config: Effective configuration.

    Returns:
        Exit code (0 for clean shutdown, non-zero for errors).
    """
    from aiohttp import web

    from landing_exporter.server.app import create_app
    from landing_exporter.server.lifecycle import DaemonLifecycle
    from landing_exporter.server.signals import (
        remove_signal_handlers,
        setup_signal_handlers,
    )

    bind = config.server.bind
    port = config.server.port

    lifecycle = DaemonLifecycle(shutdown_timeout=config.server.shutdown_timeout)
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    setup_signal_handlers(loop, lifecycle, shutdown_event)

    manager, sink = build_scan_manager(config)
    app = create_app(
        manager,
        sink,
        scan_interval_seconds=config.scanner.scan_interval_minutes * 60,
        lifecycle=lifecycle,
    )

    runner = web.AppRunner(app, shutdown_timeout=config.server.shutdown_timeout)
    await runner.setup()
    try:
        site = web.TCPSite(runner, bind, port)
        await site.start()
        logger.info(
            "Landing exporter started on http://%s:%d (PID %d)", bind, port, os.getpid()
        )
        logger.info("Metrics endpoint: http://%s:%d/metrics", bind, port)
        logger.info("Press Ctrl+C or send SIGTERM to stop")

        await shutdown_event.wait()
        logger.info(
            "Shutdown initiated, giving requests up to %.1fs to finish",
            config.server.shutdown_timeout,
        )
    except OSError as e:
        if e.errno == errno.EADDRINUSE:
            logger.error("Port %d is already in use", port)
        elif e.errno == errno.EADDRNOTAVAIL:
            logger.error("Cannot bind to address %s", bind)
        else:
            logger.error("Server error: %s", e)
        return ExitCode.GENERAL_ERROR
    finally:
        remove_signal_handlers(loop)
        await runner.cleanup()
        logger.info("Landing exporter stopped")

    return ExitCode.SUCCESS


@click.command("serve")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to configuration file (default: ~/.landing-exporter/config.toml).",
)
@click.option(
    "--root",
    "root_path",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Landing root to scan (overrides [scanner] root_path).",
)
@click.option(
    "--env",
    type=click.Choice(["dev", "int", "prod"], case_sensitive=False),
    default=None,
    help="Environment to scan (overrides [scanner] env).",
)
@click.option(
    "--bind",
    type=str,
    default=None,
    help="Address to bind to (default: 127.0.0.1).",
)
@click.option(
    "--port",
    "-p",
    type=click.IntRange(1, 65535),
    default=None,
    help="Port to bind to (default: 9464).",
)
@click.pass_context
def serve_command(
    ctx: click.Context,
    config_path: Path | None,
    root_path: Path | None,
    env: str | None,
    bind: str | None,
    port: int | None,
) -> None:
    """Run the exporter as a long-lived service.

    Serves Prometheus metrics at /metrics, a health check at /health and
    on-demand scan triggers under /api/scan/. A full scan of every tenant
    runs at startup and then every scan_interval_minutes.

    Configuration precedence (highest to lowest):
      1. CLI flags (--root, --env, --bind, --port)
      2. Environment variables (LANDING_EXPORTER_*)
      3. Config file (--config or ~/.landing-exporter/config.toml)
      4. Default values

    \b
    Examples:
        landing-exporter serve --root /data/landing --env prod
        landing-exporter serve --bind 0.0.0.0 --port 9464
        landing-exporter --log-json serve --config /etc/landing-exporter.toml
    """
    configure_command_logging(ctx, config_path, include_stderr=True)

    config = load_config_or_exit(
        config_path, root_path=root_path, env=env, bind=bind, port=port
    )

    logger.info(
        "Starting landing exporter (root=%s, env=%s, bind=%s, port=%d)",
        config.scanner.root_path,
        config.scanner.env,
        config.server.bind,
        config.server.port,
    )

    try:
        exit_code = asyncio.run(run_server(config))
    except KeyboardInterrupt:
        logger.info("Interrupted before server started")
        sys.exit(ExitCode.INTERRUPTED)
    sys.exit(exit_code)
