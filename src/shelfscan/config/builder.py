"""Configuration builder with explicit layering.

ConfigBuilder composes ShelfScanConfig from several ConfigSources; later
sources override earlier ones for every value they actually set.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from shelfscan.config.env import EnvReader
from shelfscan.config.models import (
    CacheConfig,
    ConfigError,
    LoggingConfig,
    ProbeConfig,
    ScanConfig,
    ShelfScanConfig,
    parse_consistency_policy,
    parse_probe_mode,
)


@dataclass
class ConfigSource:
    """Configuration values from a single source.

    None values indicate "not specified in this source" and will not
    override values from lower-precedence sources.
    """

    # Cache
    cache_enabled: bool | None = None
    cache_max_entries: int | None = None
    cache_ttl_seconds: int | None = None

    # Probe
    ffprobe_path: str | None = None
    probe_mode: str | None = None
    probe_timeout_ms: int | None = None
    probe_retry_attempts: int | None = None
    probe_retry_base_delay_ms: int | None = None
    probe_analyze_duration_us: int | None = None
    probe_size_bytes: int | None = None
    partial_read_enabled: bool | None = None
    partial_read_max_bytes: int | None = None
    scratch_dir: Path | None = None
    scratch_max_age_seconds: int | None = None

    # Scan
    consistency_policy: str | None = None
    probe_batch_size: int | None = None

    # Logging
    logging_level: str | None = None
    logging_file: Path | None = None
    logging_format: str | None = None
    logging_include_stderr: bool | None = None
    logging_max_bytes: int | None = None
    logging_backup_count: int | None = None


class ConfigBuilder:
    """Builds ShelfScanConfig by layering ConfigSources with precedence.

    Example:
        builder = ConfigBuilder()
        builder.apply(source_from_file(file_config), source_name="file")
        builder.apply(source_from_env(reader), source_name="env")
        builder.apply(cli_source, source_name="cli")
        config = builder.build()
    """

    def __init__(self) -> None:
        """Initialize the builder with no values set."""
        self._values: dict[str, Any] = {}
        self._origins: dict[str, str] = {}

    def apply(self, source: ConfigSource, source_name: str = "unknown") -> None:
        """Apply configuration source, overriding existing values.

        Args:
            source: Configuration source to apply.
            source_name: Label recorded for each value this source sets.
        """
        for field_obj in fields(source):
            value = getattr(source, field_obj.name)
            if value is not None:
                self._values[field_obj.name] = value
                self._origins[field_obj.name] = source_name

    def origin(self, key: str) -> str:
        """Return which source set a value ("default" if none did)."""
        return self._origins.get(key, "default")

    def _get(self, key: str, default: Any) -> Any:
        return self._values.get(key, default)

    def _get_int(self, key: str, default: int) -> int:
        value = self._values.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(
                f"{key} must be an integer, got {value!r} (from {self.origin(key)})"
            )
        return value

    def _get_bool(self, key: str, default: bool) -> bool:
        value = self._values.get(key, default)
        if not isinstance(value, bool):
            raise ConfigError(
                f"{key} must be true or false, got {value!r} "
                f"(from {self.origin(key)})"
            )
        return value

    def build(self) -> ShelfScanConfig:
        """Build the final ShelfScanConfig with defaults for unset values.

        Raises:
            ConfigError: If any value has the wrong type or is out of range.
        """
        cache_defaults = CacheConfig()
        cache = CacheConfig(
            enabled=self._get_bool("cache_enabled", cache_defaults.enabled),
            max_entries=self._get_int("cache_max_entries", cache_defaults.max_entries),
            ttl_seconds=self._get_int("cache_ttl_seconds", cache_defaults.ttl_seconds),
        )

        probe_defaults = ProbeConfig()
        probe = ProbeConfig(
            ffprobe_path=str(self._get("ffprobe_path", probe_defaults.ffprobe_path)),
            mode=parse_probe_mode(self._get("probe_mode", probe_defaults.mode)),
            timeout_ms=self._get_int("probe_timeout_ms", probe_defaults.timeout_ms),
            retry_attempts=self._get_int(
                "probe_retry_attempts", probe_defaults.retry_attempts
            ),
            retry_base_delay_ms=self._get_int(
                "probe_retry_base_delay_ms", probe_defaults.retry_base_delay_ms
            ),
            analyze_duration_us=self._get_int(
                "probe_analyze_duration_us", probe_defaults.analyze_duration_us
            ),
            probe_size_bytes=self._get_int(
                "probe_size_bytes", probe_defaults.probe_size_bytes
            ),
            partial_read_enabled=self._get_bool(
                "partial_read_enabled", probe_defaults.partial_read_enabled
            ),
            partial_read_max_bytes=self._get_int(
                "partial_read_max_bytes", probe_defaults.partial_read_max_bytes
            ),
            scratch_dir=self._get("scratch_dir", None),
            scratch_max_age_seconds=self._get_int(
                "scratch_max_age_seconds", probe_defaults.scratch_max_age_seconds
            ),
        )

        scan_defaults = ScanConfig()
        scan = ScanConfig(
            consistency_policy=parse_consistency_policy(
                self._get("consistency_policy", scan_defaults.consistency_policy)
            ),
            batch_size=self._get_int("probe_batch_size", scan_defaults.batch_size),
        )

        logging_defaults = LoggingConfig()
        logging_config = LoggingConfig(
            level=str(self._get("logging_level", logging_defaults.level)),
            file=self._get("logging_file", None),
            format=str(self._get("logging_format", logging_defaults.format)),
            include_stderr=self._get_bool(
                "logging_include_stderr", logging_defaults.include_stderr
            ),
            max_bytes=self._get_int("logging_max_bytes", logging_defaults.max_bytes),
            backup_count=self._get_int(
                "logging_backup_count", logging_defaults.backup_count
            ),
        )

        return ShelfScanConfig(
            cache=cache, probe=probe, scan=scan, logging=logging_config
        )


def _optional_path(value: Any) -> Path | None:
    return Path(str(value)).expanduser() if value else None


def source_from_file(file_config: dict[str, Any]) -> ConfigSource:
    """Create ConfigSource from parsed TOML config file.

    Args:
        file_config: Parsed configuration dictionary from TOML file.

    Returns:
        ConfigSource with values from the config file.
    """
    cache = file_config.get("cache", {})
    probe = file_config.get("probe", {})
    scan = file_config.get("scan", {})
    logging_conf = file_config.get("logging", {})

    return ConfigSource(
        # Cache
        cache_enabled=cache.get("enabled"),
        cache_max_entries=cache.get("max_entries"),
        cache_ttl_seconds=cache.get("ttl_seconds"),
        # Probe
        ffprobe_path=probe.get("ffprobe_path"),
        probe_mode=probe.get("mode"),
        probe_timeout_ms=probe.get("timeout_ms"),
        probe_retry_attempts=probe.get("retry_attempts"),
        probe_retry_base_delay_ms=probe.get("retry_base_delay_ms"),
        probe_analyze_duration_us=probe.get("analyze_duration_us"),
        probe_size_bytes=probe.get("probe_size_bytes"),
        partial_read_enabled=probe.get("partial_read_enabled"),
        partial_read_max_bytes=probe.get("partial_read_max_bytes"),
        scratch_dir=_optional_path(probe.get("scratch_dir")),
        scratch_max_age_seconds=probe.get("scratch_max_age_seconds"),
        # Scan
        consistency_policy=scan.get("consistency_policy"),
        probe_batch_size=scan.get("batch_size"),
        # Logging
        logging_level=logging_conf.get("level"),
        logging_file=_optional_path(logging_conf.get("file")),
        logging_format=logging_conf.get("format"),
        logging_include_stderr=logging_conf.get("include_stderr"),
        logging_max_bytes=logging_conf.get("max_bytes"),
        logging_backup_count=logging_conf.get("backup_count"),
    )


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Create ConfigSource from environment variables.

    SHELFSCAN_IGNORE_FILE_METADATA=true selects the tolerant policy unless
    SHELFSCAN_CONSISTENCY_POLICY names one explicitly.

    Args:
        reader: EnvReader instance for reading environment variables.

    Returns:
        ConfigSource with values from environment variables.
    """
    policy = reader.get_str("SHELFSCAN_CONSISTENCY_POLICY")
    if policy is None and reader.get_bool("SHELFSCAN_IGNORE_FILE_METADATA", False):
        policy = "tolerant"

    return ConfigSource(
        # Cache
        cache_enabled=reader.get_bool("SHELFSCAN_CACHE_ENABLED"),
        cache_max_entries=reader.get_int("SHELFSCAN_CACHE_MAX_ENTRIES"),
        cache_ttl_seconds=reader.get_int("SHELFSCAN_CACHE_TTL_SECONDS"),
        # Probe
        ffprobe_path=reader.get_str("SHELFSCAN_FFPROBE_PATH"),
        probe_mode=reader.get_str("SHELFSCAN_PROBE_MODE"),
        probe_timeout_ms=reader.get_int("SHELFSCAN_PROBE_TIMEOUT_MS"),
        probe_retry_attempts=reader.get_int("SHELFSCAN_PROBE_RETRY_ATTEMPTS"),
        probe_retry_base_delay_ms=reader.get_int(
            "SHELFSCAN_PROBE_RETRY_BASE_DELAY_MS"
        ),
        probe_analyze_duration_us=None,  # No env var
        probe_size_bytes=None,  # No env var
        partial_read_enabled=reader.get_bool("SHELFSCAN_PARTIAL_READ_ENABLED"),
        partial_read_max_bytes=reader.get_int("SHELFSCAN_PARTIAL_READ_MAX_BYTES"),
        scratch_dir=reader.get_path("SHELFSCAN_SCRATCH_DIR"),
        scratch_max_age_seconds=None,  # No env var
        # Scan
        consistency_policy=policy,
        probe_batch_size=reader.get_int("SHELFSCAN_PROBE_BATCH_SIZE"),
        # Logging
        logging_level=reader.get_str("SHELFSCAN_LOG_LEVEL"),
        logging_file=reader.get_path("SHELFSCAN_LOG_FILE"),
        logging_format=reader.get_str("SHELFSCAN_LOG_FORMAT"),
        logging_include_stderr=None,
        logging_max_bytes=None,
        logging_backup_count=None,
    )
