"""Centralized exit codes for all CLI commands.

Exit code ranges:
    0: Success
    1-9: General errors
    10-19: Validation errors (config, input)
    20-29: Target errors
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for landing-exporter commands."""

    SUCCESS = 0

    # General errors (1-9)
    GENERAL_ERROR = 1
    INTERRUPTED = 2

    # Validation errors (10-19)
    CONFIG_ERROR = 11

    # Target errors (20-29)
    TARGET_NOT_FOUND = 20
