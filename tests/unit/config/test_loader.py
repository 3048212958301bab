"""Tests for config loader module."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from shelfscan.config.env import EnvReader
from shelfscan.config.loader import (
    DEFAULT_CONFIG_FILE,
    clear_config_cache,
    get_config,
    get_default_config_path,
    load_config_file,
)
from shelfscan.config.models import ConfigError
from shelfscan.domain import ConsistencyPolicy, ProbeMode


@pytest.fixture(autouse=True)
def fresh_config_cache():
    """Clear the config file cache around each test."""
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(
        "[probe]\n"
        'mode = "full"\n'
        "timeout_ms = 9000\n"
        "\n"
        "[scan]\n"
        'consistency_policy = "tolerant"\n'
    )
    return path


class TestGetDefaultConfigPath:
    """Tests for get_default_config_path function."""

    def test_returns_default_when_env_not_set(self) -> None:
        """Should return default path when SHELFSCAN_CONFIG_PATH not set."""
        result = get_default_config_path(EnvReader(env={}))
        assert result == DEFAULT_CONFIG_FILE
        assert result == Path.home() / ".shelfscan" / "config.toml"

    def test_returns_env_path_when_set(self) -> None:
        """Should return env path when SHELFSCAN_CONFIG_PATH is set."""
        reader = EnvReader(env={"SHELFSCAN_CONFIG_PATH": "/custom/config.toml"})
        assert get_default_config_path(reader) == Path("/custom/config.toml")


class TestLoadConfigFile:
    """Tests for load_config_file function."""

    def test_caches_until_mtime_changes(self, config_file: Path) -> None:
        """Should reuse the parsed file until it is modified."""
        first = load_config_file(config_file)
        assert load_config_file(config_file) is first

        config_file.write_text('[probe]\nmode = "minimal"\n')
        stat = config_file.stat()
        os.utime(config_file, (stat.st_atime, stat.st_mtime + 10))

        assert load_config_file(config_file)["probe"]["mode"] == "minimal"


class TestGetConfig:
    """Tests for get_config function."""

    def test_defaults_without_file_or_env(self, tmp_path: Path) -> None:
        """Should fall back to defaults when nothing is configured."""
        config = get_config(tmp_path / "missing.toml", EnvReader(env={}))

        assert config.probe.mode is ProbeMode.MINIMAL
        assert config.scan.consistency_policy is ConsistencyPolicy.STRICT

    def test_reads_file(self, config_file: Path) -> None:
        config = get_config(config_file, EnvReader(env={}))

        assert config.probe.mode is ProbeMode.FULL
        assert config.probe.timeout_ms == 9000
        assert config.scan.consistency_policy is ConsistencyPolicy.TOLERANT

    def test_env_overrides_file(self, config_file: Path) -> None:
        reader = EnvReader(env={"SHELFSCAN_PROBE_TIMEOUT_MS": "1500"})

        config = get_config(config_file, reader)

        assert config.probe.timeout_ms == 1500
        assert config.probe.mode is ProbeMode.FULL

    def test_cli_overrides_env(self, config_file: Path) -> None:
        reader = EnvReader(env={"SHELFSCAN_PROBE_MODE": "full"})

        config = get_config(config_file, reader, probe_mode="minimal")

        assert config.probe.mode is ProbeMode.MINIMAL

    def test_config_path_from_env(self, config_file: Path) -> None:
        """Should find the file through SHELFSCAN_CONFIG_PATH."""
        reader = EnvReader(env={"SHELFSCAN_CONFIG_PATH": str(config_file)})

        assert get_config(env_reader=reader).probe.timeout_ms == 9000

    def test_invalid_value_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("[cache]\nmax_entries = 0\n")

        with pytest.raises(ConfigError, match="max_entries"):
            get_config(path, EnvReader(env={}))

    def test_broken_file_strict(self, tmp_path: Path) -> None:
        """Should raise ConfigError for an unparseable file when strict."""
        path = tmp_path / "config.toml"
        path.write_text("[probe\n")

        with pytest.raises(ConfigError):
            get_config(path, EnvReader(env={}), strict=True)

    def test_broken_file_lenient(self, tmp_path: Path) -> None:
        """Should ignore an unparseable file when not strict."""
        path = tmp_path / "config.toml"
        path.write_text("[probe\n")

        config = get_config(path, EnvReader(env={}))

        assert config.probe.mode is ProbeMode.MINIMAL
