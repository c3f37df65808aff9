"""Assembly of the scan stack shared by ``serve`` and ``scan``."""

from __future__ import annotations

from pathlib import Path

from landing_exporter.cli.exit_codes import ExitCode
from landing_exporter.cli.output import error_exit
from landing_exporter.config import ExporterConfig, get_config, validate_config
from landing_exporter.metrics import (
    MetricPublisher,
    PrometheusGaugeSink,
    PublishedSeriesStore,
)
from landing_exporter.scanner import ScanManager


def load_config_or_exit(
    config_path: Path | None,
    *,
    root_path: Path | None = None,
    env: str | None = None,
    bind: str | None = None,
    port: int | None = None,
    json_errors: bool = False,
) -> ExporterConfig:
    """Load configuration, exiting with CONFIG_ERROR or TARGET_NOT_FOUND."""
    try:
        config = get_config(
            config_path=config_path,
            root_path=root_path,
            env=env,
            bind=bind,
            port=port,
            strict=config_path is not None,
        )
    except (ValueError, OSError) as e:
        error_exit(f"Invalid configuration: {e}", ExitCode.CONFIG_ERROR, json_errors)

    errors = validate_config(config)
    if errors:
        error_exit("; ".join(errors), ExitCode.TARGET_NOT_FOUND, json_errors)
    return config


def build_scan_manager(
    config: ExporterConfig,
) -> tuple[ScanManager, PrometheusGaugeSink]:
    """Create the sink, publisher and scan manager for a configuration."""
    sink = PrometheusGaugeSink()
    publisher = MetricPublisher(sink, PublishedSeriesStore(), config.scanner)
    return ScanManager(config.scanner, publisher), sink
