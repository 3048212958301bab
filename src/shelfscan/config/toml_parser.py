"""TOML loading for the config file."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)


class TomlParseError(ValueError):
    """Raised when a config file exists but is not valid TOML."""


def parse_toml(content: str) -> dict[str, Any]:
    """Parse TOML content into a dictionary.

    Raises:
        TomlParseError: If the content is not valid TOML.
    """
    try:
        return tomllib.loads(content)
    except tomllib.TOMLDecodeError as e:
        raise TomlParseError(str(e)) from e


def load_toml_file(path: Path, *, strict: bool = False) -> dict[str, Any]:
    """Load and parse a TOML file.

    Args:
        path: Path to the TOML file.
        strict: If True, raise on unreadable or invalid files instead of
            returning an empty dict.

    Returns:
        Parsed dictionary. Empty dict if the file doesn't exist (or, when
        not strict, cannot be parsed).

    Raises:
        TomlParseError: When strict=True and the file cannot be parsed.
    """
    if not path.exists():
        logger.debug("TOML file not found: %s", path)
        return {}

    try:
        config = parse_toml(path.read_text(encoding="utf-8"))
    except (OSError, TomlParseError) as e:
        if strict:
            raise TomlParseError(f"Cannot load {path}: {e}") from e
        logger.warning("Failed to load TOML file %s: %s", path, e)
        return {}

    logger.debug("Loaded TOML config from %s", path)
    return config
