"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (passed directly to functions)
2. Environment variables (LANDING_EXPORTER_*)
3. Config file (~/.landing-exporter/config.toml)
4. Default values

Environment variables:
- LANDING_EXPORTER_CONFIG_PATH: Path to config file (overrides default location)
- LANDING_EXPORTER_ROOT_PATH: Landing root to scan
- LANDING_EXPORTER_ENV: Environment to scan (dev, int, prod)
- LANDING_EXPORTER_GROUPED_TENANTS: Comma-separated grouped tenants
- LANDING_EXPORTER_ZOMBIE_THRESHOLDS: Comma-separated tenant:minutes pairs
- LANDING_EXPORTER_SERVER_PORT: HTTP port for /metrics and the scan API
- LANDING_EXPORTER_LOG_LEVEL / LOG_FILE / LOG_FORMAT / LOG_INCLUDE_STDERR: Logging overrides
"""

from __future__ import annotations

import logging
import os
import threading
import tomllib
from pathlib import Path
from typing import Any

from landing_exporter.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from landing_exporter.config.env import EnvReader
from landing_exporter.config.models import ExporterConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".landing-exporter"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

# path -> (parsed dict, mtime)
_config_cache: dict[Path, tuple[dict[str, Any], float]] = {}
_config_cache_lock = threading.Lock()


def get_default_config_path() -> Path:
    """Get the config file path, honouring LANDING_EXPORTER_CONFIG_PATH."""
    env_path = os.environ.get("LANDING_EXPORTER_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_FILE


def load_toml_file(path: Path, *, strict: bool = False) -> dict[str, Any]:
    """Load and parse a TOML file.

    Args:
        path: Path to the TOML file.
        strict: If True, propagate parse and read errors.

    Returns:
        Parsed dictionary. Empty dict if the file doesn't exist, or if it
        cannot be parsed and strict is False.

    Raises:
        tomllib.TOMLDecodeError: When strict=True and the file is invalid.
    """
    if not path.exists():
        logger.debug("Config file not found: %s", path)
        return {}

    try:
        with path.open("rb") as fh:
            config = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as e:
        if strict:
            raise
        logger.warning("Failed to load config file %s: %s", path, e)
        return {}

    logger.debug("Loaded config from %s", path)
    return config


def load_config_file(path: Path | None = None, *, strict: bool = False) -> dict[str, Any]:
    """Load configuration from TOML file.

    Results are cached with mtime-based invalidation, so an edited file is
    picked up on the next call.

    Args:
        path: Path to config file. If None, uses default location.
        strict: If True, raise on parse failures.
    """
    if path is None:
        path = get_default_config_path()

    try:
        current_mtime = path.stat().st_mtime
    except FileNotFoundError:
        current_mtime = 0.0

    with _config_cache_lock:
        cached = _config_cache.get(path)
        if cached is not None and cached[1] == current_mtime:
            return cached[0]

        result = load_toml_file(path, strict=strict)
        _config_cache[path] = (result, current_mtime)
        return result


def clear_config_cache() -> None:
    """Clear the config file cache. Primarily useful for testing."""
    with _config_cache_lock:
        _config_cache.clear()


def get_config(
    config_path: Path | None = None,
    # CLI overrides (highest precedence)
    root_path: Path | None = None,
    env: str | None = None,
    bind: str | None = None,
    port: int | None = None,
    # Optional dependency injection for testing
    env_reader: EnvReader | None = None,
    *,
    strict: bool = False,
) -> ExporterConfig:
    """Get exporter configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides LANDING_EXPORTER_CONFIG_PATH).
        root_path: CLI override for the landing root.
        env: CLI override for the scanned environment.
        bind: CLI override for the server bind address.
        port: CLI override for the server port.
        env_reader: Optional EnvReader for testing (uses os.environ if None).
        strict: If True, raise on config file parse failures.

    Returns:
        ExporterConfig with merged configuration.

    Raises:
        ValueError: If the merged configuration is invalid.
    """
    reader = env_reader or EnvReader()

    file_config = load_config_file(config_path, strict=strict)

    cli_source = ConfigSource(
        root_path=root_path,
        env=env,
        server_bind=bind,
        server_port=port,
    )

    # file < env < cli
    builder = ConfigBuilder()
    builder.apply(source_from_file(file_config))
    builder.apply(source_from_env(reader))
    builder.apply(cli_source)
    return builder.build()


def validate_config(config: ExporterConfig) -> list[str]:
    """Validate cross-field and filesystem constraints.

    Returns:
        List of error strings. Empty list means configuration is usable.
    """
    errors: list[str] = []

    if not config.scanner.root_path.is_dir():
        errors.append(f"Landing root does not exist: {config.scanner.root_path}")

    for tenant in config.scanner.zombie_thresholds:
        if not tenant.strip():
            errors.append("Zombie threshold override has an empty tenant name")

    return errors
