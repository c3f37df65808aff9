"""Tests for the scan and serve commands."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from landing_exporter.cli import main


@pytest.fixture(autouse=True)
def _no_logging_setup():
    """Keep CLI invocations from reconfiguring the root logger."""
    with (
        patch("landing_exporter.cli.scan.configure_command_logging"),
        patch("landing_exporter.cli.serve.configure_command_logging"),
    ):
        yield


def _invoke(*args: str):
    return CliRunner().invoke(main, list(args), catch_exceptions=False)


def test_version():
    result = _invoke("--version")
    assert result.exit_code == 0
    assert "0.1.0" in result.output


class TestScanCommand:
    """Tests for ``landing-exporter scan``."""

    def test_scan_all_tenants(self, landing_tree: Path):
        result = _invoke("scan", "--root", str(landing_tree), "--env", "prod")

        assert result.exit_code == 0
        assert f"Scanned 1 tenant(s) under {landing_tree}" in result.output
        assert "total_failures{" in result.output

    def test_scan_one_tenant_json(self, landing_tree: Path):
        result = _invoke("scan", "--root", str(landing_tree), "--tenant", "acme", "--json")

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["status"] == "completed"
        assert payload["tenant"] == "acme"
        assert payload["failure_scan_queued"] is True
        assert "Transcoded scan: Completed." in payload["messages"]
        assert "total_transcoded_folders{" in payload["metrics"]

    def test_unknown_tenant(self, landing_tree: Path):
        result = _invoke("scan", "--root", str(landing_tree), "--tenant", "nobody")
        assert result.exit_code == 20
        assert "No directories found for tenant 'nobody'" in result.output

    def test_missing_root(self, tmp_path: Path):
        result = _invoke("scan", "--root", str(tmp_path / "missing"))
        assert result.exit_code == 20
        assert "Landing root does not exist" in result.output

    def test_invalid_config_file(self, tmp_path: Path):
        config = tmp_path / "config.toml"
        config.write_text("[scanner\n", encoding="utf-8")

        result = _invoke("scan", "--config", str(config))

        assert result.exit_code == 11
        assert "Invalid configuration" in result.output

    def test_config_file_root_is_used(self, landing_tree: Path, tmp_path: Path):
        config = tmp_path / "config.toml"
        config.write_text(
            f'[scanner]\nroot_path = "{landing_tree}"\nenv = "dev"\n', encoding="utf-8"
        )

        result = _invoke("scan", "--config", str(config), "--json")

        assert result.exit_code == 0
        assert json.loads(result.output)["tenants_scanned"] == 1


class TestServeCommand:
    """Tests for ``landing-exporter serve`` argument handling."""

    def test_overrides_reach_server(self, landing_tree: Path):
        run_server = AsyncMock(return_value=0)
        with patch("landing_exporter.cli.serve.run_server", run_server):
            result = _invoke(
                "serve",
                "--root",
                str(landing_tree),
                "--bind",
                "0.0.0.0",
                "--port",
                "9100",
            )

        assert result.exit_code == 0
        config = run_server.await_args.args[0]
        assert config.scanner.root_path == landing_tree
        assert config.server.bind == "0.0.0.0"
        assert config.server.port == 9100

    def test_server_error_exit_code(self, landing_tree: Path):
        with patch(
            "landing_exporter.cli.serve.run_server", AsyncMock(return_value=1)
        ):
            result = _invoke("serve", "--root", str(landing_tree))
        assert result.exit_code == 1

    def test_missing_root_fails_fast(self, tmp_path: Path):
        run_server = AsyncMock(return_value=0)
        with patch("landing_exporter.cli.serve.run_server", run_server):
            result = _invoke("serve", "--root", str(tmp_path / "missing"))

        assert result.exit_code == 20
        run_server.assert_not_awaited()

    def test_port_out_of_range_rejected(self, landing_tree: Path):
        result = CliRunner().invoke(
            main, ["serve", "--root", str(landing_tree), "--port", "70000"]
        )
        assert result.exit_code == 2
