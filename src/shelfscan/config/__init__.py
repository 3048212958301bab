"""Configuration package for shelfscan.

This package provides configuration management:
- models: Configuration dataclasses (ShelfScanConfig, ProbeConfig, etc.)
- env: EnvReader for typed environment variable access
- builder: ConfigBuilder and ConfigSource for layered configuration
- loader: get_config() and config file loading
- toml_parser: TOML parsing

Usage:
    from shelfscan.config import get_config
    config = get_config()
"""

from shelfscan.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from shelfscan.config.env import EnvReader
from shelfscan.config.loader import (
    DEFAULT_CONFIG_DIR,
    DEFAULT_CONFIG_FILE,
    clear_config_cache,
    get_config,
    get_default_config_path,
    load_config_file,
)
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
from shelfscan.config.toml_parser import TomlParseError, load_toml_file, parse_toml

__all__ = [
    # Models
    "CacheConfig",
    "ConfigError",
    "LoggingConfig",
    "ProbeConfig",
    "ScanConfig",
    "ShelfScanConfig",
    "parse_consistency_policy",
    "parse_probe_mode",
    # Env
    "EnvReader",
    # Builder
    "ConfigBuilder",
    "ConfigSource",
    "source_from_env",
    "source_from_file",
    # Loader
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_CONFIG_FILE",
    "clear_config_cache",
    "get_config",
    "get_default_config_path",
    "load_config_file",
    # TOML
    "TomlParseError",
    "load_toml_file",
    "parse_toml",
]
