"""Centralized exit codes for all CLI commands."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for shelfscan CLI commands."""

    SUCCESS = 0
    TARGET_NOT_FOUND = 1
    PROBE_FAILED = 2
    CONFIG_ERROR = 3
