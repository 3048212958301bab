"""Domain models for probe results.

All models here are frozen. A MediaProbeData is produced once per probe and
handed out by value, so callers can never mutate what the cache holds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from shelfscan.domain.enums import ProbeErrorKind


@dataclass(frozen=True)
class FileFingerprint:
    """Cache key for a file: truncated head digest plus exact size.

    Two files with the same fingerprint are treated as content-identical.
    Only the first MiB is hashed, so this is an approximation.
    """

    content_hash: str  # 32 hex chars (128 bits)
    size: int

    def __str__(self) -> str:
        return f"{self.content_hash}_{self.size}"


@dataclass(frozen=True)
class Chapter:
    """A chapter marker, indexed in file order."""

    index: int
    start_seconds: float
    end_seconds: float
    title: str


@dataclass(frozen=True)
class StreamInfo:
    """Primary audio or video stream of a probed file."""

    codec: str | None = None
    sample_rate: int | None = None
    channels: int | None = None
    channel_layout: str | None = None
    bit_rate: int | None = None
    time_base: str | None = None
    language: str | None = None


@dataclass(frozen=True)
class MediaProbeData:
    """Canonical, normalized result of probing one media file."""

    format: str | None
    duration_seconds: float
    size_bytes: int
    bit_rate: int
    audio_stream: StreamInfo | None = None
    video_stream: StreamInfo | None = None
    chapters: tuple[Chapter, ...] = ()
    tags: dict[str, str] = field(default_factory=dict)
    embedded_cover_present: bool = False

    def to_dict(self) -> dict:
        """Return a JSON-serializable dict using the canonical key names."""

        def stream_dict(stream: StreamInfo | None) -> dict | None:
            if stream is None:
                return None
            return {
                "codec": stream.codec,
                "sampleRate": stream.sample_rate,
                "channels": stream.channels,
                "channelLayout": stream.channel_layout,
                "bitRate": stream.bit_rate,
                "timeBase": stream.time_base,
                "language": stream.language,
            }

        return {
            "format": self.format,
            "durationSeconds": self.duration_seconds,
            "sizeBytes": self.size_bytes,
            "bitRate": self.bit_rate,
            "audioStream": stream_dict(self.audio_stream),
            "videoStream": stream_dict(self.video_stream),
            "chapters": [
                {
                    "index": ch.index,
                    "startSeconds": ch.start_seconds,
                    "endSeconds": ch.end_seconds,
                    "title": ch.title,
                }
                for ch in self.chapters
            ],
            "tags": dict(self.tags),
            "embeddedCoverPresent": self.embedded_cover_present,
        }


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of Prober.probe().

    Exactly one of ``data`` and ``error`` is set. The prober never raises for
    environmental failures; callers inspect ``ok`` and move on.
    """

    path: Path
    data: MediaProbeData | None = None
    error: str | None = None
    error_kind: ProbeErrorKind | None = None
    from_cache: bool = False
    partial_read: bool = False
    attempts: int = 0
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        """Return True if probe data is available."""
        return self.data is not None

    @property
    def retryable(self) -> bool:
        """Return True if a later probe of the same file might succeed."""
        return self.error_kind is not None and self.error_kind.retryable
