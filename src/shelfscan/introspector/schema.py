"""Pydantic models for raw ffprobe JSON output.

Only the fields shelfscan reads are declared; everything else ffprobe
prints is ignored. Numeric values arrive as strings in ffprobe's JSON
(``"duration": "3600.000000"``), so they are kept as strings here and
converted by the parsers, which treat garbage as "absent".
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _FfprobeModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


def _stringify(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


class FfprobeDisposition(_FfprobeModel):
    default: int = 0
    attached_pic: int = 0


class FfprobeStream(_FfprobeModel):
    index: int = 0
    codec_type: str | None = None
    codec_name: str | None = None
    sample_rate: str | None = None
    channels: int | None = None
    channel_layout: str | None = None
    bit_rate: str | None = None
    time_base: str | None = None
    disposition: FfprobeDisposition = Field(default_factory=FfprobeDisposition)
    tags: dict[str, Any] = Field(default_factory=dict)

    @field_validator("sample_rate", "bit_rate", mode="before")
    @classmethod
    def stringify_numbers(cls, v: Any) -> str | None:
        """Accept numbers where ffprobe usually prints strings."""
        return _stringify(v)


class FfprobeChapter(_FfprobeModel):
    id: int | None = None
    start_time: str | None = None
    end_time: str | None = None
    tags: dict[str, Any] = Field(default_factory=dict)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def stringify_numbers(cls, v: Any) -> str | None:
        """Accept numbers where ffprobe usually prints strings."""
        return _stringify(v)


class FfprobeFormat(_FfprobeModel):
    format_name: str | None = None
    duration: str | None = None
    size: str | None = None
    bit_rate: str | None = None
    tags: dict[str, Any] = Field(default_factory=dict)

    @field_validator("duration", "size", "bit_rate", mode="before")
    @classmethod
    def stringify_numbers(cls, v: Any) -> str | None:
        """Accept numbers where ffprobe usually prints strings."""
        return _stringify(v)


class FfprobeOutput(_FfprobeModel):
    """Top-level document printed by ``ffprobe -print_format json``."""

    format: FfprobeFormat | None = None
    streams: list[FfprobeStream] = Field(default_factory=list)
    chapters: list[FfprobeChapter] = Field(default_factory=list)

    def streams_of_type(self, codec_type: str) -> list[FfprobeStream]:
        """Return streams of a media type in file order."""
        return [s for s in self.streams if s.codec_type == codec_type]
