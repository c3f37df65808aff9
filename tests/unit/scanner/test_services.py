"""Tests for the per-category scan services."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from landing_exporter.config.models import ScannerConfig
from landing_exporter.metrics import (
    TOTAL_FAILURES,
    TOTAL_TRANSCODED,
    TOTAL_ZOMBIES,
    MetricPublisher,
    PrometheusGaugeSink,
    PublishedSeriesStore,
)
from landing_exporter.scanner.filesystem import LocalFileSystem
from landing_exporter.scanner.models import ScanTarget, ZombieType
from landing_exporter.scanner.services import (
    FailureScanService,
    TranscodedScanService,
    ZombieScanService,
)
from landing_exporter.scanner.snapshot import (
    ALL_REASONS_FILENAME,
    RECENT_REASONS_FILENAME,
)
from landing_exporter.scanner.traversal import TraversalEngine


@pytest.fixture
def sink() -> PrometheusGaugeSink:
    return PrometheusGaugeSink()


@pytest.fixture
def stack(landing_tree: Path, sink):
    """Return (fs, config, engine, publisher) for the landing tree."""
    config = ScannerConfig(root_path=landing_tree)
    fs = LocalFileSystem()
    engine = TraversalEngine(fs, config)
    publisher = MetricPublisher(sink, PublishedSeriesStore(), config)
    return fs, config, engine, publisher


def _target(root: Path, path: Path) -> ScanTarget:
    return ScanTarget(tenant="Acme", env="prod", root_dir=root, path=path)


@pytest.mark.asyncio
class TestFailureScanService:
    """Tests for FailureScanService."""

    async def test_counts_publishes_and_snapshots(self, landing_tree, stack, sink) -> None:
        failed_root = landing_tree / "Failed"
        scan_path = failed_root / "acme-landing-dir-prod"

        report = await FailureScanService(*stack).scan(_target(failed_root, scan_path))

        assert report is not None
        assert report.total_count == 2
        assert report.recent_count == 1

        base = (str(failed_root), "Acme", "prod")
        assert sink.get_value(TOTAL_FAILURES.name, base + ("false",)) == 2
        assert sink.get_value(TOTAL_FAILURES.name, base + ("true",)) == 1

        all_reasons = json.loads((scan_path / ALL_REASONS_FILENAME).read_text())
        recent_reasons = json.loads((scan_path / RECENT_REASONS_FILENAME).read_text())
        assert sorted(Path(p).name for p in all_reasons) == ["job-1", "job-2"]
        assert [Path(p).name for p in recent_reasons] == ["job-2"]
        recent_entry = next(iter(recent_reasons.values()))
        assert recent_entry["reason"] == "timeout"
        assert recent_entry["image"].endswith("scan.png")

    async def test_aborted_scan_does_not_publish(self, landing_tree, stack) -> None:
        fs, config, _, _ = stack
        engine = MagicMock()
        engine.traverse = AsyncMock(side_effect=RuntimeError("boom"))
        publisher = MagicMock()
        scan_path = landing_tree / "Failed" / "acme-landing-dir-prod"

        result = await FailureScanService(fs, config, engine, publisher).scan(
            _target(landing_tree / "Failed", scan_path)
        )

        assert result is None
        publisher.publish_report.assert_not_called()
        assert not (scan_path / ALL_REASONS_FILENAME).exists()

    async def test_snapshot_write_error_aborts_scan(self, landing_tree, stack) -> None:
        fs, config, engine, _ = stack
        publisher = MagicMock()
        scan_path = landing_tree / "Failed" / "acme-landing-dir-prod"

        with patch(
            "landing_exporter.scanner.snapshot._JsonObjectStream.write",
            side_effect=OSError("disk full"),
        ):
            result = await FailureScanService(fs, config, engine, publisher).scan(
                _target(landing_tree / "Failed", scan_path)
            )

        assert result is None
        publisher.publish_report.assert_not_called()
        assert not (scan_path / ALL_REASONS_FILENAME).exists()
        assert not list(scan_path.glob("*.tmp"))


@pytest.mark.asyncio
class TestZombieScanService:
    """Tests for ZombieScanService."""

    @pytest.mark.parametrize("zombie_type", list(ZombieType))
    async def test_finds_one_zombie_of_each_type(
        self, landing_tree, stack, sink, zombie_type
    ) -> None:
        scan_path = landing_tree / "acme-landing-dir-prod"

        report = await ZombieScanService(*stack).scan(
            _target(landing_tree, scan_path), zombie_type
        )

        assert report is not None
        assert report.total_count == 1
        labels = (str(landing_tree), "Acme", "prod", "false", zombie_type.value)
        assert sink.get_value(TOTAL_ZOMBIES.name, labels) == 1

    async def test_aborted_scan_returns_none(self, landing_tree, stack) -> None:
        fs, config, _, _ = stack
        engine = MagicMock()
        engine.traverse = AsyncMock(side_effect=RuntimeError("boom"))
        publisher = MagicMock()

        result = await ZombieScanService(fs, config, engine, publisher).scan(
            _target(landing_tree, landing_tree / "acme-landing-dir-prod"),
            ZombieType.OBSERVED,
        )

        assert result is None
        publisher.publish_report.assert_not_called()


@pytest.mark.asyncio
class TestTranscodedScanService:
    """Tests for TranscodedScanService."""

    async def test_counts_folders_with_files(self, landing_tree, stack, sink) -> None:
        result = await TranscodedScanService(*stack).scan(
            _target(landing_tree, landing_tree / "acme-transcoded")
        )

        assert result == (1, 1)
        labels = (str(landing_tree), "Acme", "prod", "false")
        assert sink.get_value(TOTAL_TRANSCODED.name, labels) == 1

    async def test_missing_directory_publishes_zero(self, landing_tree, stack, sink) -> None:
        result = await TranscodedScanService(*stack).scan(
            _target(landing_tree, landing_tree / "missing-transcoded")
        )

        assert result == (0, 0)
        labels = (str(landing_tree), "Acme", "prod", "true")
        assert sink.get_value(TOTAL_TRANSCODED.name, labels) == 0
