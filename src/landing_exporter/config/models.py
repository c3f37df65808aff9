"""Configuration data models.

This module defines dataclasses for exporter configuration options.
"""

from dataclasses import dataclass, field
from pathlib import Path

VALID_ENVS = frozenset({"dev", "int", "prod"})

DEFAULT_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".bmp")

# Reason files larger than this are skipped to bound memory.
DEFAULT_MAX_REASON_FILE_BYTES = 1024 * 1024


@dataclass
class ScannerConfig:
    """Configuration for landing directory scans."""

    root_path: Path = Path("/data/landing")
    """Shared landing root holding the ``<tenant>-landing-dir-<env>`` folders."""

    env: str = "prod"
    """Environment whose tenant directories are scanned."""

    max_items: int = 10_000
    """Soft cap on matches per traversal; in-flight work may exceed it."""

    max_depth: int = 3
    """Traversal depth for grouped tenants. Flat tenants stop at depth 1."""

    recent_window_hours: int = 24
    """Matches newer than this many hours are also counted as recent."""

    max_concurrent_directory_scans: int = 16
    """Classification slots per traversal."""

    max_parallel_tenant_scans: int = 4
    """Tenants scanned at the same time during a discovery pass."""

    grouped_tenants: list[str] = field(default_factory=list)
    """Tenants whose first-level folders are reported as group folders."""

    supported_image_extensions: list[str] = field(
        default_factory=lambda: list(DEFAULT_IMAGE_EXTENSIONS)
    )

    zombie_threshold_minutes: int = 60
    """Default zombie age threshold."""

    zombie_thresholds: dict[str, int] = field(default_factory=dict)
    """Per-tenant zombie age thresholds (tenant names compared case-insensitively)."""

    scan_interval_minutes: int = 5
    progress_log_threshold: int = 1000
    max_reason_file_bytes: int = DEFAULT_MAX_REASON_FILE_BYTES

    def __post_init__(self) -> None:
        """Validate configuration."""
        self.root_path = Path(self.root_path).expanduser().absolute()
        if self.env.casefold() not in VALID_ENVS:
            raise ValueError(f"env must be one of {sorted(VALID_ENVS)}, got {self.env}")
        for name in (
            "max_items",
            "max_depth",
            "recent_window_hours",
            "max_concurrent_directory_scans",
            "max_parallel_tenant_scans",
            "scan_interval_minutes",
            "progress_log_threshold",
            "max_reason_file_bytes",
        ):
            value = getattr(self, name)
            if value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")
        if self.zombie_threshold_minutes < 0:
            raise ValueError(
                "zombie_threshold_minutes must be >= 0, "
                f"got {self.zombie_threshold_minutes}"
            )
        for tenant, minutes in self.zombie_thresholds.items():
            if minutes < 0:
                raise ValueError(
                    f"zombie threshold for {tenant} must be >= 0, got {minutes}"
                )

    def is_grouped(self, tenant: str) -> bool:
        """Return True if the tenant is configured for group folder reporting."""
        folded = tenant.casefold()
        return any(name.casefold() == folded for name in self.grouped_tenants)

    def max_depth_for(self, tenant: str) -> int:
        """Traversal depth bound for a tenant."""
        return self.max_depth if self.is_grouped(tenant) else 1

    def zombie_threshold_for(self, tenant: str) -> int:
        """Zombie age threshold in minutes, honouring per-tenant overrides."""
        folded = tenant.casefold()
        for name, minutes in self.zombie_thresholds.items():
            if name.casefold() == folded:
                return minutes
        return self.zombie_threshold_minutes


@dataclass
class ServerConfig:
    """Configuration for the HTTP server started by ``landing-exporter serve``."""

    bind: str = "127.0.0.1"
    """Network address to bind to. Default localhost for security."""

    port: int = 9464
    """Port serving /metrics, /health and the scan API."""

    shutdown_timeout: float = 30.0
    """Seconds in-flight HTTP requests get to finish on shutdown."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not 1 <= self.port <= 65535:
            raise ValueError(f"port must be 1-65535, got {self.port}")
        if self.shutdown_timeout <= 0:
            raise ValueError(
                f"shutdown_timeout must be positive, got {self.shutdown_timeout}"
            )


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


@dataclass
class ExporterConfig:
    """Main configuration container. Aggregates all configuration sections."""

    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
