"""Configuration builder with explicit layering.

This module provides ConfigBuilder for building ExporterConfig by composing
multiple configuration sources with explicit precedence handling.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from landing_exporter.config.env import EnvReader
from landing_exporter.config.models import (
    ExporterConfig,
    LoggingConfig,
    ScannerConfig,
    ServerConfig,
)

logger = logging.getLogger(__name__)


@dataclass
class ConfigSource:
    """Configuration values from a single source.

    None values indicate "not specified in this source" and will not
    override values from lower-precedence sources.
    """

    # Scanner config
    root_path: Path | None = None
    env: str | None = None
    max_items: int | None = None
    max_depth: int | None = None
    recent_window_hours: int | None = None
    max_concurrent_directory_scans: int | None = None
    max_parallel_tenant_scans: int | None = None
    grouped_tenants: list[str] | None = None
    supported_image_extensions: list[str] | None = None
    zombie_threshold_minutes: int | None = None
    zombie_thresholds: dict[str, int] | None = None
    scan_interval_minutes: int | None = None
    progress_log_threshold: int | None = None
    max_reason_file_bytes: int | None = None

    # Server config
    server_bind: str | None = None
    server_port: int | None = None
    server_shutdown_timeout: float | None = None

    # Logging config
    logging_level: str | None = None
    logging_file: Path | None = None
    logging_format: str | None = None
    logging_include_stderr: bool | None = None
    logging_max_bytes: int | None = None
    logging_backup_count: int | None = None


_SCANNER_FIELDS = (
    "root_path",
    "env",
    "max_items",
    "max_depth",
    "recent_window_hours",
    "max_concurrent_directory_scans",
    "max_parallel_tenant_scans",
    "grouped_tenants",
    "supported_image_extensions",
    "zombie_threshold_minutes",
    "scan_interval_minutes",
    "progress_log_threshold",
    "max_reason_file_bytes",
)


class ConfigBuilder:
    """Builds ExporterConfig by layering ConfigSources with precedence.

    Later sources override earlier ones (for non-None values). Zombie
    threshold overrides merge per tenant instead of replacing the table.

    Example:
        builder = ConfigBuilder()
        builder.apply(source_from_file(file_config))
        builder.apply(source_from_env(reader))
        builder.apply(cli_source)
        config = builder.build()
    """

    # Fields with special handling (merge instead of override)
    _SPECIAL_FIELDS = frozenset({"zombie_thresholds"})

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._zombie_thresholds: dict[str, int] = {}

    def apply(self, source: ConfigSource) -> None:
        """Apply configuration source, overriding existing values.

        Args:
            source: Configuration source to apply.
        """
        for field_obj in fields(source):
            if field_obj.name in self._SPECIAL_FIELDS:
                continue
            value = getattr(source, field_obj.name)
            if value is not None:
                self._values[field_obj.name] = value

        if source.zombie_thresholds:
            # Later sources win per tenant, matched case-insensitively
            for tenant, minutes in source.zombie_thresholds.items():
                for existing in list(self._zombie_thresholds):
                    if existing.casefold() == tenant.casefold():
                        del self._zombie_thresholds[existing]
                self._zombie_thresholds[tenant] = minutes

    def build(self) -> ExporterConfig:
        """Build the final ExporterConfig with defaults for unset values.

        Raises:
            ValueError: If a merged value fails section validation.
        """
        scanner_kwargs = {
            name: self._values[name] for name in _SCANNER_FIELDS if name in self._values
        }
        scanner = ScannerConfig(
            **scanner_kwargs, zombie_thresholds=dict(self._zombie_thresholds)
        )

        server_defaults = ServerConfig()
        server = ServerConfig(
            bind=self._values.get("server_bind", server_defaults.bind),
            port=self._values.get("server_port", server_defaults.port),
            shutdown_timeout=self._values.get(
                "server_shutdown_timeout", server_defaults.shutdown_timeout
            ),
        )

        logging_defaults = LoggingConfig()
        logging_config = LoggingConfig(
            level=self._values.get("logging_level", logging_defaults.level),
            file=self._values.get("logging_file", logging_defaults.file),
            format=self._values.get("logging_format", logging_defaults.format),
            include_stderr=self._values.get(
                "logging_include_stderr", logging_defaults.include_stderr
            ),
            max_bytes=self._values.get("logging_max_bytes", logging_defaults.max_bytes),
            backup_count=self._values.get(
                "logging_backup_count", logging_defaults.backup_count
            ),
        )

        return ExporterConfig(scanner=scanner, server=server, logging=logging_config)


def _parse_thresholds(raw: list[str] | None) -> dict[str, int] | None:
    """Parse ``tenant:minutes`` pairs from an environment list."""
    if raw is None:
        return None
    thresholds: dict[str, int] = {}
    for item in raw:
        tenant, sep, minutes = item.partition(":")
        if not sep or not tenant.strip():
            logger.warning("Ignoring malformed zombie threshold entry: %s", item)
            continue
        try:
            thresholds[tenant.strip()] = int(minutes)
        except ValueError:
            logger.warning("Ignoring malformed zombie threshold entry: %s", item)
    return thresholds


def source_from_file(file_config: dict[str, Any]) -> ConfigSource:
    """Create a ConfigSource from a parsed TOML document.

    Args:
        file_config: Parsed config file contents.

    Returns:
        ConfigSource with the values the file specifies.
    """
    scanner = file_config.get("scanner", {})
    server = file_config.get("server", {})
    logging_section = file_config.get("logging", {})

    root_path = scanner.get("root_path")
    log_file = logging_section.get("file")
    thresholds = scanner.get("zombie_thresholds")

    return ConfigSource(
        root_path=Path(root_path).expanduser() if root_path else None,
        env=scanner.get("env"),
        max_items=scanner.get("max_items"),
        max_depth=scanner.get("max_depth"),
        recent_window_hours=scanner.get("recent_window_hours"),
        max_concurrent_directory_scans=scanner.get("max_concurrent_directory_scans"),
        max_parallel_tenant_scans=scanner.get("max_parallel_tenant_scans"),
        grouped_tenants=scanner.get("grouped_tenants"),
        supported_image_extensions=scanner.get("supported_image_extensions"),
        zombie_threshold_minutes=scanner.get("zombie_threshold_minutes"),
        zombie_thresholds=(
            {str(k): int(v) for k, v in thresholds.items()} if thresholds else None
        ),
        scan_interval_minutes=scanner.get("scan_interval_minutes"),
        progress_log_threshold=scanner.get("progress_log_threshold"),
        max_reason_file_bytes=scanner.get("max_reason_file_bytes"),
        server_bind=server.get("bind"),
        server_port=server.get("port"),
        server_shutdown_timeout=server.get("shutdown_timeout"),
        logging_level=logging_section.get("level"),
        logging_file=Path(log_file).expanduser() if log_file else None,
        logging_format=logging_section.get("format"),
        logging_include_stderr=logging_section.get("include_stderr"),
        logging_max_bytes=logging_section.get("max_bytes"),
        logging_backup_count=logging_section.get("backup_count"),
    )


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Create a ConfigSource from ``LANDING_EXPORTER_*`` environment variables.

    Args:
        reader: Environment reader (injectable for tests).
    """
    return ConfigSource(
        root_path=reader.get_path("ROOT_PATH"),
        env=reader.get_str("ENV"),
        max_items=reader.get_int("MAX_ITEMS"),
        max_depth=reader.get_int("MAX_DEPTH"),
        recent_window_hours=reader.get_int("RECENT_WINDOW_HOURS"),
        max_concurrent_directory_scans=reader.get_int("MAX_CONCURRENT_DIRECTORY_SCANS"),
        max_parallel_tenant_scans=reader.get_int("MAX_PARALLEL_TENANT_SCANS"),
        grouped_tenants=reader.get_list("GROUPED_TENANTS"),
        supported_image_extensions=reader.get_list("SUPPORTED_IMAGE_EXTENSIONS"),
        zombie_threshold_minutes=reader.get_int("ZOMBIE_THRESHOLD_MINUTES"),
        zombie_thresholds=_parse_thresholds(reader.get_list("ZOMBIE_THRESHOLDS")),
        scan_interval_minutes=reader.get_int("SCAN_INTERVAL_MINUTES"),
        progress_log_threshold=reader.get_int("PROGRESS_LOG_THRESHOLD"),
        max_reason_file_bytes=reader.get_int("MAX_REASON_FILE_BYTES"),
        server_bind=reader.get_str("SERVER_BIND"),
        server_port=reader.get_int("SERVER_PORT"),
        server_shutdown_timeout=reader.get_float("SERVER_SHUTDOWN_TIMEOUT"),
        logging_level=reader.get_str("LOG_LEVEL"),
        logging_file=reader.get_path("LOG_FILE"),
        logging_format=reader.get_str("LOG_FORMAT"),
        logging_include_stderr=reader.get_bool("LOG_INCLUDE_STDERR"),
    )
