"""Configuration management for the landing exporter.

Configuration is loaded with precedence handling:
1. CLI flags (highest priority)
2. Environment variables (LANDING_EXPORTER_*)
3. Config file (~/.landing-exporter/config.toml)
4. Default values (lowest priority)
"""

from landing_exporter.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from landing_exporter.config.env import EnvReader
from landing_exporter.config.loader import (
    clear_config_cache,
    get_config,
    get_default_config_path,
    load_config_file,
    validate_config,
)
from landing_exporter.config.logging_factory import (
    build_logging_config,
    configure_logging_from_cli,
)
from landing_exporter.config.models import (
    VALID_ENVS,
    ExporterConfig,
    LoggingConfig,
    ScannerConfig,
    ServerConfig,
)

__all__ = [
    # Models
    "VALID_ENVS",
    "ExporterConfig",
    "LoggingConfig",
    "ScannerConfig",
    "ServerConfig",
    # Loader
    "clear_config_cache",
    "get_config",
    "get_default_config_path",
    "load_config_file",
    "validate_config",
    # Layering
    "EnvReader",
    "ConfigBuilder",
    "ConfigSource",
    "source_from_env",
    "source_from_file",
    "build_logging_config",
    "configure_logging_from_cli",
]
