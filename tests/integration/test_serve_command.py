"""Integration tests for the daemon server."""

from __future__ import annotations

import asyncio
import socket
from pathlib import Path
from unittest.mock import patch

import aiohttp
import pytest

from landing_exporter.cli.serve import run_server
from landing_exporter.config.models import ExporterConfig, ScannerConfig, ServerConfig

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


def find_free_port() -> int:
    """Find a free port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        s.listen(1)
        return s.getsockname()[1]


def _config(root: Path, port: int) -> ExporterConfig:
    return ExporterConfig(
        scanner=ScannerConfig(root_path=root),
        server=ServerConfig(bind="127.0.0.1", port=port, shutdown_timeout=5.0),
    )


async def test_server_serves_metrics_until_shutdown(landing_tree: Path):
    port = find_free_port()
    responses: dict[str, tuple[int, str]] = {}

    async def exercise(shutdown_event: asyncio.Event) -> None:
        base = f"http://127.0.0.1:{port}"
        try:
            async with aiohttp.ClientSession() as session:
                status, body = 0, ""
                for _ in range(100):
                    try:
                        async with session.get(f"{base}/metrics") as resp:
                            status, body = resp.status, await resp.text()
                    except aiohttp.ClientConnectionError:
                        pass  # site not listening yet
                    if "total_failures{" in body:
                        break
                    await asyncio.sleep(0.05)
                responses["metrics"] = (status, body)
                async with session.get(f"{base}/health") as resp:
                    responses["health"] = (resp.status, await resp.text())
                async with session.post(f"{base}/api/scan/all/acme") as resp:
                    responses["scan"] = (resp.status, await resp.text())
        finally:
            shutdown_event.set()

    clients: list[asyncio.Task] = []

    def fake_setup(loop, lifecycle, shutdown_event):
        clients.append(loop.create_task(exercise(shutdown_event)))

    with patch("landing_exporter.server.signals.setup_signal_handlers", fake_setup):
        exit_code = await asyncio.wait_for(
            run_server(_config(landing_tree, port)), timeout=30
        )

    await asyncio.gather(*clients)
    assert exit_code == 0
    assert responses["metrics"][0] == 200
    assert "total_failures{" in responses["metrics"][1]
    assert responses["health"][0] == 200
    assert responses["scan"][0] == 202


async def test_port_in_use_returns_error(landing_tree: Path):
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
        blocker.bind(("127.0.0.1", 0))
        blocker.listen(1)
        port = blocker.getsockname()[1]

        with patch("landing_exporter.server.signals.setup_signal_handlers"):
            exit_code = await run_server(_config(landing_tree, port))

    assert exit_code == 1
