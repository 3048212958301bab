"""Resolve the effective ShelfScanConfig.

Layers, lowest to highest: built-in defaults, the TOML file
(~/.shelfscan/config.toml or $SHELFSCAN_CONFIG_PATH), SHELFSCAN_*
environment variables, then explicit keyword overrides from the CLI.

Recognized environment variables:

    SHELFSCAN_CONFIG_PATH            alternate config file
    SHELFSCAN_FFPROBE_PATH           ffprobe executable
    SHELFSCAN_CACHE_ENABLED          probe cache on/off
    SHELFSCAN_CACHE_MAX_ENTRIES      probe cache capacity
    SHELFSCAN_CACHE_TTL_SECONDS      probe cache idle expiry
    SHELFSCAN_PROBE_MODE             minimal | full
    SHELFSCAN_PROBE_TIMEOUT_MS       budget for all attempts of one probe
    SHELFSCAN_PROBE_RETRY_ATTEMPTS
    SHELFSCAN_PROBE_RETRY_BASE_DELAY_MS
    SHELFSCAN_PARTIAL_READ_ENABLED
    SHELFSCAN_PARTIAL_READ_MAX_BYTES
    SHELFSCAN_SCRATCH_DIR
    SHELFSCAN_CONSISTENCY_POLICY     strict | tolerant
    SHELFSCAN_IGNORE_FILE_METADATA   older spelling of the tolerant policy
    SHELFSCAN_PROBE_BATCH_SIZE       concurrency hint for the scan driver
    SHELFSCAN_LOG_LEVEL, SHELFSCAN_LOG_FILE, SHELFSCAN_LOG_FORMAT
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from shelfscan.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from shelfscan.config.env import EnvReader
from shelfscan.config.models import ConfigError, ShelfScanConfig
from shelfscan.config.toml_parser import TomlParseError, load_toml_file

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".shelfscan"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

# path -> (mtime when read, parsed contents); mtime 0.0 stands for "missing"
_parsed_files: dict[Path, tuple[float, dict]] = {}
_parsed_files_lock = threading.Lock()


def get_default_config_path(env_reader: EnvReader | None = None) -> Path:
    """Return $SHELFSCAN_CONFIG_PATH if set, else ~/.shelfscan/config.toml."""
    reader = env_reader or EnvReader()
    return reader.get_path("SHELFSCAN_CONFIG_PATH", DEFAULT_CONFIG_FILE)


def _mtime(path: Path) -> float:
    try:
        return path.stat().st_mtime
    except FileNotFoundError:
        return 0.0


def load_config_file(path: Path, *, strict: bool = False) -> dict:
    """Parse a TOML config file, reusing the last parse while it is unchanged.

    A missing file yields ``{}``. With ``strict`` a malformed file raises
    TomlParseError; otherwise it is logged and treated as empty.
    """
    mtime = _mtime(path)
    with _parsed_files_lock:
        hit = _parsed_files.get(path)
        if hit is not None and hit[0] == mtime:
            return hit[1]
        parsed = load_toml_file(path, strict=strict)
        _parsed_files[path] = (mtime, parsed)
        return parsed


def clear_config_cache() -> None:
    """Forget every parsed config file so the next load reads from disk."""
    with _parsed_files_lock:
        _parsed_files.clear()


def get_config(
    config_path: Path | None = None,
    env_reader: EnvReader | None = None,
    *,
    strict: bool = False,
    ffprobe_path: str | None = None,
    probe_mode: str | None = None,
    partial_read_enabled: bool | None = None,
    cache_enabled: bool | None = None,
    logging_level: str | None = None,
    logging_file: Path | None = None,
    logging_format: str | None = None,
) -> ShelfScanConfig:
    """Merge defaults, config file, environment and overrides.

    Args:
        config_path: Config file to read instead of the default location.
        env_reader: Environment to read (os.environ when omitted).
        strict: Turn an unparseable config file into ConfigError rather
            than silently using defaults.
        ffprobe_path, probe_mode, partial_read_enabled, cache_enabled,
        logging_level, logging_file, logging_format: Command-line
            overrides; None leaves the lower layers in charge.

    Raises:
        ConfigError: A merged value is invalid, or the file is unparseable
            under ``strict``.
    """
    reader = env_reader or EnvReader()
    path = config_path or get_default_config_path(reader)
    try:
        file_values = load_config_file(path, strict=strict)
    except TomlParseError as e:
        raise ConfigError(str(e)) from e

    overrides = ConfigSource(
        ffprobe_path=ffprobe_path,
        probe_mode=probe_mode,
        partial_read_enabled=partial_read_enabled,
        cache_enabled=cache_enabled,
        logging_level=logging_level,
        logging_file=logging_file,
        logging_format=logging_format,
    )

    builder = ConfigBuilder()
    for source, name in (
        (source_from_file(file_values), "file"),
        (source_from_env(reader), "env"),
        (overrides, "cli"),
    ):
        builder.apply(source, source_name=name)
    return builder.build()
