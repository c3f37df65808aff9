"""Environment variable reader with dependency injection support.

Reads ``LANDING_EXPORTER_*`` variables with type conversion. Tests inject
a plain mapping instead of touching ``os.environ``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

ENV_PREFIX = "LANDING_EXPORTER_"


class EnvReader:
    """Environment variable reader with type conversion and validation.

    Variable names are given without the ``LANDING_EXPORTER_`` prefix.
    Invalid values are logged and treated as unset.

    Example:
        reader = EnvReader(env={"LANDING_EXPORTER_SERVER_PORT": "9000"})
        reader.get_int("SERVER_PORT")  # 9000
    """

    def __init__(
        self, env: Mapping[str, str] | None = None, prefix: str = ENV_PREFIX
    ) -> None:
        """Initialize the environment reader.

        Args:
            env: Optional mapping to use instead of os.environ.
            prefix: Prefix prepended to every variable name.
        """
        self._env: Mapping[str, str] = env if env is not None else os.environ
        self._prefix = prefix

    def _raw(self, var: str) -> str | None:
        return self._env.get(f"{self._prefix}{var}")

    def get_str(self, var: str, default: str | None = None) -> str | None:
        """Get a string value, or default if not set."""
        value = self._raw(var)
        if value is None:
            return default
        return value

    def get_int(self, var: str, default: int | None = None) -> int | None:
        """Get an integer value.

        Returns:
            Parsed integer, or default if not set or not an integer.
        """
        value = self._raw(var)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid integer value for %s%s: %s", self._prefix, var, value)
            return default

    def get_float(self, var: str, default: float | None = None) -> float | None:
        """Get a float value, or default if not set or invalid."""
        value = self._raw(var)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            logger.warning("Invalid float value for %s%s: %s", self._prefix, var, value)
            return default

    def get_bool(self, var: str, default: bool | None = None) -> bool | None:
        """Get a boolean value.

        "true", "1", "yes" and "on" (any case) are true; any other
        non-empty value is false.
        """
        value = self._raw(var)
        if value is None:
            return default
        return value.lower() in ("true", "1", "yes", "on")

    def get_path(self, var: str, default: Path | None = None) -> Path | None:
        """Get a path value with tilde expansion."""
        value = self._raw(var)
        if value is None:
            return default
        return Path(value).expanduser()

    def get_list(
        self, var: str, separator: str = ",", default: list[str] | None = None
    ) -> list[str] | None:
        """Get a separator-delimited list of strings.

        Empty items are dropped. Returns default when the variable is unset.
        """
        value = self._raw(var)
        if value is None:
            return default
        return [part.strip() for part in value.split(separator) if part.strip()]
