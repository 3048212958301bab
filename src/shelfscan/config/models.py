"""Configuration data models.

This module defines dataclasses for shelfscan configuration options. A
ShelfScanConfig is built once at startup and passed to each component's
constructor; components never read the environment themselves.
"""

from dataclasses import dataclass, field
from pathlib import Path

from shelfscan.domain import ConsistencyPolicy, ProbeMode

_VALID_LOG_LEVELS = frozenset({"debug", "info", "warning", "error"})
_VALID_LOG_FORMATS = frozenset({"text", "json"})


class ConfigError(ValueError):
    """Raised when a configuration value cannot be used."""


def parse_probe_mode(value: str | ProbeMode, key: str = "probe_mode") -> ProbeMode:
    """Parse a probe mode name ("minimal" or "full")."""
    if isinstance(value, ProbeMode):
        return value
    try:
        return ProbeMode(value.strip().casefold())
    except ValueError:
        valid = ", ".join(m.value for m in ProbeMode)
        raise ConfigError(f"{key} must be one of: {valid}; got {value!r}") from None


def parse_consistency_policy(
    value: str | ConsistencyPolicy, key: str = "consistency_policy"
) -> ConsistencyPolicy:
    """Parse a consistency policy name ("strict" or "tolerant")."""
    if isinstance(value, ConsistencyPolicy):
        return value
    try:
        return ConsistencyPolicy(value.strip().casefold())
    except ValueError:
        valid = ", ".join(p.value for p in ConsistencyPolicy)
        raise ConfigError(f"{key} must be one of: {valid}; got {value!r}") from None


@dataclass(frozen=True)
class CacheConfig:
    """Configuration for the in-memory probe cache."""

    enabled: bool = True

    # Entries kept before least-recently-used eviction
    max_entries: int = 10000

    # Seconds an entry survives without being touched (0 = no expiry)
    ttl_seconds: int = 24 * 60 * 60

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.max_entries < 1:
            raise ConfigError(f"max_entries must be >= 1, got {self.max_entries}")
        if self.ttl_seconds < 0:
            raise ConfigError(f"ttl_seconds must be >= 0, got {self.ttl_seconds}")


@dataclass(frozen=True)
class ProbeConfig:
    """Configuration for ffprobe invocation."""

    ffprobe_path: str = "ffprobe"
    mode: ProbeMode = ProbeMode.MINIMAL

    timeout_ms: int = 30000
    """Overall budget for all attempts of one probe, in milliseconds."""

    retry_attempts: int = 3
    retry_base_delay_ms: int = 500
    """Attempt N failing waits N * retry_base_delay_ms before the next one."""

    # Limits passed to ffprobe in MINIMAL mode
    analyze_duration_us: int = 5_000_000
    probe_size_bytes: int = 5_000_000

    partial_read_enabled: bool = True
    partial_read_max_bytes: int = 5 * 1024 * 1024

    scratch_dir: Path | None = None
    """Where partial-read copies go (None = <system temp>/shelfscan-probe)."""

    scratch_max_age_seconds: int = 60 * 60

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.ffprobe_path:
            raise ConfigError("ffprobe_path must not be empty")
        if self.timeout_ms < 1:
            raise ConfigError(f"timeout_ms must be >= 1, got {self.timeout_ms}")
        if self.retry_attempts < 1:
            raise ConfigError(
                f"retry_attempts must be >= 1, got {self.retry_attempts}"
            )
        if self.retry_base_delay_ms < 0:
            raise ConfigError(
                f"retry_base_delay_ms must be >= 0, got {self.retry_base_delay_ms}"
            )
        if self.analyze_duration_us < 1 or self.probe_size_bytes < 32:
            raise ConfigError(
                "analyze_duration_us must be >= 1 and probe_size_bytes >= 32"
            )
        if self.partial_read_max_bytes < 1:
            raise ConfigError(
                f"partial_read_max_bytes must be >= 1, got "
                f"{self.partial_read_max_bytes}"
            )
        if self.scratch_max_age_seconds < 0:
            raise ConfigError("scratch_max_age_seconds must be >= 0")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    @property
    def retry_base_delay_seconds(self) -> float:
        return self.retry_base_delay_ms / 1000


@dataclass(frozen=True)
class ScanConfig:
    """Configuration consumed by scan reconciliation and the scan driver."""

    consistency_policy: ConsistencyPolicy = ConsistencyPolicy.STRICT

    # Files probed concurrently; read by the external scan driver only
    batch_size: int = 8

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.batch_size < 1:
            raise ConfigError(f"batch_size must be >= 1, got {self.batch_size}")


@dataclass(frozen=True)
class LoggingConfig:
    """Configuration for logging output."""

    level: str = "info"
    file: Path | None = None
    format: str = "text"
    include_stderr: bool = True
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 3

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.level.casefold() not in _VALID_LOG_LEVELS:
            raise ConfigError(
                f"level must be one of {sorted(_VALID_LOG_LEVELS)}, got {self.level}"
            )
        if self.format.casefold() not in _VALID_LOG_FORMATS:
            raise ConfigError(
                f"format must be one of {sorted(_VALID_LOG_FORMATS)}, "
                f"got {self.format}"
            )
        if self.max_bytes < 0 or self.backup_count < 0:
            raise ConfigError("max_bytes and backup_count must be >= 0")


@dataclass(frozen=True)
class ShelfScanConfig:
    """Complete, resolved shelfscan configuration."""

    cache: CacheConfig = field(default_factory=CacheConfig)
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> dict:
        """Return the configuration as TOML-shaped nested dicts."""
        return {
            "cache": {
                "enabled": self.cache.enabled,
                "max_entries": self.cache.max_entries,
                "ttl_seconds": self.cache.ttl_seconds,
            },
            "probe": {
                "ffprobe_path": self.probe.ffprobe_path,
                "mode": self.probe.mode.value,
                "timeout_ms": self.probe.timeout_ms,
                "retry_attempts": self.probe.retry_attempts,
                "retry_base_delay_ms": self.probe.retry_base_delay_ms,
                "analyze_duration_us": self.probe.analyze_duration_us,
                "probe_size_bytes": self.probe.probe_size_bytes,
                "partial_read_enabled": self.probe.partial_read_enabled,
                "partial_read_max_bytes": self.probe.partial_read_max_bytes,
                "scratch_dir": (
                    str(self.probe.scratch_dir) if self.probe.scratch_dir else None
                ),
                "scratch_max_age_seconds": self.probe.scratch_max_age_seconds,
            },
            "scan": {
                "consistency_policy": self.scan.consistency_policy.value,
                "batch_size": self.scan.batch_size,
            },
            "logging": {
                "level": self.logging.level,
                "file": str(self.logging.file) if self.logging.file else None,
                "format": self.logging.format,
                "include_stderr": self.logging.include_stderr,
                "max_bytes": self.logging.max_bytes,
                "backup_count": self.logging.backup_count,
            },
        }
