"""Logging configuration factory.

Builds LoggingConfig instances with CLI overrides applied to the
configured base.
"""

from __future__ import annotations

from pathlib import Path

from landing_exporter.config.models import LoggingConfig


def build_logging_config(
    base: LoggingConfig,
    *,
    level: str | None = None,
    file: Path | None = None,
    format: str | None = None,
    include_stderr: bool | None = None,
) -> LoggingConfig:
    """Build LoggingConfig by merging base config with CLI overrides.

    Args:
        base: Base logging configuration (typically from config file).
        level: Override log level (debug, info, warning, error).
        file: Override log file path.
        format: Override log format (text, json).
        include_stderr: Override stderr inclusion.

    Returns:
        New LoggingConfig. Invalid values raise ValueError via
        LoggingConfig.__post_init__.
    """
    return LoggingConfig(
        level=level if level is not None else base.level,
        file=file if file is not None else base.file,
        format=format if format is not None else base.format,
        include_stderr=(
            include_stderr if include_stderr is not None else base.include_stderr
        ),
        max_bytes=base.max_bytes,
        backup_count=base.backup_count,
    )


def configure_logging_from_cli(
    *,
    config_path: Path | None = None,
    level: str | None = None,
    file: Path | None = None,
    format: str | None = None,
    include_stderr: bool | None = None,
) -> None:
    """Load config, apply CLI overrides and configure logging."""
    from landing_exporter.config import get_config
    from landing_exporter.logging import configure_logging

    config = get_config(config_path=config_path)
    final_config = build_logging_config(
        config.logging,
        level=level,
        file=file,
        format=format,
        include_stderr=include_stderr,
    )
    configure_logging(final_config)
