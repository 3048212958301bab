"""Shared test fixtures for shelfscan."""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from shelfscan.domain import Chapter, MediaProbeData, StreamInfo

FFPROBE_FIXTURES_DIR = Path(__file__).parent / "fixtures" / "ffprobe"


def load_ffprobe_fixture(name: str) -> str:
    """Load an ffprobe JSON fixture by name, as ffprobe would print it.

    Args:
        name: Name of the fixture file (without .json extension).

    Returns:
        The fixture's JSON text.
    """
    return (FFPROBE_FIXTURES_DIR / f"{name}.json").read_text()


@pytest.fixture
def ffprobe_fixtures_dir() -> Path:
    """Return the path to the ffprobe fixtures directory."""
    return FFPROBE_FIXTURES_DIR


@pytest.fixture
def ffprobe_json():
    """Return a loader for ffprobe fixture text by name."""
    return load_ffprobe_fixture


@pytest.fixture
def sample_probe_data() -> MediaProbeData:
    """Return a small, fully populated MediaProbeData."""
    return MediaProbeData(
        format="mov,mp4,m4a,3gp,3g2,mj2",
        duration_seconds=3600.5,
        size_bytes=57608000,
        bit_rate=128000,
        audio_stream=StreamInfo(
            codec="aac",
            sample_rate=44100,
            channels=2,
            channel_layout="stereo",
            bit_rate=125588,
            time_base="1/44100",
            language="eng",
        ),
        chapters=(
            Chapter(index=0, start_seconds=0.0, end_seconds=1800.0, title="One"),
            Chapter(index=1, start_seconds=1800.0, end_seconds=3600.5, title="Two"),
        ),
        tags={"tagTitle": "The Book", "tagArtist": "Jane Author"},
        embedded_cover_present=True,
    )


@pytest.fixture
def media_file(tmp_path: Path) -> Path:
    """Create a 3 MiB file with deterministic, position-dependent content."""
    path = tmp_path / "The Book.m4b"
    block = bytes(range(256)) * 4096  # 1 MiB
    path.write_bytes(block * 3)
    return path


class FakeClock:
    """Manually advanced clock for TTL and retry timing tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        """Sleep replacement that only advances the clock."""
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    """Return a FakeClock starting at t=1000."""
    return FakeClock()


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    """Restore root logger handlers and level after a test reconfigures them."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
