"""Typed access to SHELFSCAN_* environment variables.

The process environment is only read through an EnvReader, and tests hand
one a plain dict so os.environ stays untouched.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

_TRUTHY = frozenset({"true", "1", "yes", "on"})


class EnvReader:
    """Reads typed settings from an environment mapping.

    Every getter returns ``default`` when the variable is absent, so the
    result can feed a ConfigSource directly: None means "not set here".

    Example:
        reader = EnvReader(env={"SHELFSCAN_PROBE_TIMEOUT_MS": "9000"})
        reader.get_int("SHELFSCAN_PROBE_TIMEOUT_MS", 30000)  # 9000
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = os.environ if env is None else env

    def _raw(self, var: str) -> str | None:
        return self._env.get(var)

    def get_str(self, var: str, default: str | None = None) -> str | None:
        """Return the variable verbatim; an empty value counts as set."""
        raw = self._raw(var)
        return default if raw is None else raw

    def get_int(self, var: str, default: int | None = None) -> int | None:
        """Return the variable as an int; an unparseable value is logged
        and ``default`` is returned instead."""
        raw = self._raw(var)
        if raw is None:
            return default
        try:
            return int(raw.strip())
        except ValueError:
            logger.warning("Invalid integer value for %s: %r (ignored)", var, raw)
            return default

    def get_bool(self, var: str, default: bool | None = None) -> bool | None:
        """Return the variable as a flag; only true/1/yes/on enable it."""
        raw = self._raw(var)
        if raw is None:
            return default
        return raw.strip().casefold() in _TRUTHY

    def get_path(self, var: str, default: Path | None = None) -> Path | None:
        """Return the variable as a user-expanded Path; empty means unset."""
        raw = self._raw(var)
        return Path(raw).expanduser() if raw else default
