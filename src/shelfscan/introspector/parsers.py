"""Pure parsing functions for ffprobe JSON output.

These functions turn validated ffprobe output into MediaProbeData.
All functions are pure (no I/O, no side effects) for easy testing.
"""

import logging
from typing import Any

from pydantic import ValidationError

from shelfscan.domain import (
    Chapter,
    MediaProbeData,
    ProbeMode,
    StreamInfo,
)
from shelfscan.introspector.interface import NoMediaStream, ProbeProcessFailure
from shelfscan.introspector.mappings import (
    IMAGE_CODECS,
    MAPPED_SOURCE_KEYS,
    TAG_KEY_ALIASES,
)
from shelfscan.introspector.schema import (
    FfprobeChapter,
    FfprobeOutput,
    FfprobeStream,
)

logger = logging.getLogger(__name__)

_MAX_TAG_KEY_LENGTH = 255
_MAX_TAG_VALUE_LENGTH = 4096


def sanitize_string(value: str | None) -> str | None:
    """Sanitize a string by replacing invalid UTF-8 characters.

    Args:
        value: String value to sanitize.

    Returns:
        Sanitized string or None if input was None.
    """
    if value is None:
        return None
    return value.encode("utf-8", errors="replace").decode("utf-8")


def parse_float(value: str | None) -> float | None:
    """Parse a numeric string from ffprobe into a float.

    Args:
        value: Numeric string (e.g., "3600.000") or None.

    Returns:
        Parsed value, or None if absent, unparseable or negative.
    """
    if value is None:
        return None
    try:
        result = float(value)
    except (ValueError, TypeError):
        return None
    if result != result or result < 0:  # NaN or negative
        return None
    return result


def parse_int(value: str | None) -> int | None:
    """Parse an integer string from ffprobe ("128000", "44100").

    Returns:
        Parsed value, or None if absent, unparseable or negative.
    """
    parsed = parse_float(value)
    if parsed is None:
        return None
    return int(parsed)


def decode_ffprobe_output(stdout: str) -> FfprobeOutput:
    """Validate ffprobe's JSON text against the schema.

    Args:
        stdout: Raw stdout of ffprobe.

    Returns:
        Validated FfprobeOutput.

    Raises:
        ProbeProcessFailure: If the text is not JSON, does not match the
            schema, or lacks the ``format`` section.
    """
    if not stdout.strip():
        raise ProbeProcessFailure("ffprobe produced no output")
    try:
        output = FfprobeOutput.model_validate_json(stdout)
    except ValidationError as e:
        raise ProbeProcessFailure(
            f"Invalid ffprobe output: {e.error_count()} validation error(s): "
            f"{e.errors()[0]['msg']}"
        ) from e
    if output.format is None:
        raise ProbeProcessFailure(
            "Missing 'format' in ffprobe output. "
            "File may be corrupted or not a valid media file."
        )
    return output


def parse_stream(stream: FfprobeStream) -> StreamInfo:
    """Convert a raw ffprobe stream into a StreamInfo."""
    language = stream.tags.get("language")
    return StreamInfo(
        codec=stream.codec_name,
        sample_rate=parse_int(stream.sample_rate),
        channels=stream.channels if stream.channels and stream.channels > 0 else None,
        channel_layout=stream.channel_layout,
        bit_rate=parse_int(stream.bit_rate),
        time_base=stream.time_base,
        language=sanitize_string(str(language)) if language else None,
    )


def is_cover_stream(stream: FfprobeStream) -> bool:
    """Return True if a video stream is embedded cover art, not real video."""
    if stream.disposition.attached_pic == 1:
        return True
    return (stream.codec_name or "").casefold() in IMAGE_CODECS


def parse_chapters(chapters: list[FfprobeChapter]) -> tuple[Chapter, ...]:
    """Index chapters in file order, generating titles where missing.

    Args:
        chapters: Raw ffprobe chapters.

    Returns:
        Tuple of Chapter, index 0-based.
    """
    result = []
    for index, chapter in enumerate(chapters):
        title = sanitize_string(str(chapter.tags.get("title") or "")).strip()
        result.append(
            Chapter(
                index=index,
                start_seconds=parse_float(chapter.start_time) or 0.0,
                end_seconds=parse_float(chapter.end_time) or 0.0,
                title=title or f"Chapter {index + 1}",
            )
        )
    return tuple(result)


def _clean_container_tags(
    tags: dict[str, Any],
    file_path: str | None = None,
) -> dict[str, str]:
    """Casefold keys and sanitize values, dropping oversized entries."""
    result: dict[str, str] = {}
    for key, value in tags.items():
        if len(key) > _MAX_TAG_KEY_LENGTH:
            logger.warning(
                "Container tag key %r (%d chars) exceeds max length %d, skipping in %s",
                key[:50] + "...",
                len(key),
                _MAX_TAG_KEY_LENGTH,
                file_path or "unknown",
            )
            continue
        if value is None:
            continue
        if not isinstance(value, str):
            value = str(value)
        sanitized = sanitize_string(value)
        if len(sanitized) > _MAX_TAG_VALUE_LENGTH:
            logger.warning(
                "Container tag %r value (%d chars) exceeds max length %d, "
                "skipping in %s",
                key,
                len(sanitized),
                _MAX_TAG_VALUE_LENGTH,
                file_path or "unknown",
            )
            continue
        result.setdefault(key.casefold(), sanitized)
    return result


def normalize_tags(
    tags: dict[str, Any],
    mode: ProbeMode,
    file_path: str | None = None,
) -> dict[str, str]:
    """Map container tags onto the normalized tag keys.

    Source keys are matched case-insensitively. In FULL mode, tags with no
    normalized key are kept under their casefolded source key.

    Args:
        tags: Raw ``format.tags`` from ffprobe.
        mode: Probe mode in effect.
        file_path: Optional file path for context in warning messages.

    Returns:
        Dict of normalized key -> value. Empty values are omitted.
    """
    cleaned = _clean_container_tags(tags, file_path)
    result: dict[str, str] = {}

    for normalized, aliases in TAG_KEY_ALIASES.items():
        for alias in aliases:
            value = cleaned.get(alias)
            if value:
                result[normalized] = value
                break

    if mode is ProbeMode.FULL:
        for key, value in cleaned.items():
            if key not in MAPPED_SOURCE_KEYS and key not in result:
                result[key] = value

    return result


def parse_probe_output(
    output: FfprobeOutput,
    mode: ProbeMode = ProbeMode.MINIMAL,
    file_path: str | None = None,
) -> MediaProbeData:
    """Normalize validated ffprobe output into MediaProbeData.

    Args:
        output: Validated ffprobe document.
        mode: Probe mode; controls which tags are kept.
        file_path: Optional file path for context in messages.

    Returns:
        MediaProbeData for the file.

    Raises:
        NoMediaStream: If the file has neither an audio nor a video stream.
    """
    audio_streams = output.streams_of_type("audio")
    video_streams = output.streams_of_type("video")
    if not audio_streams and not video_streams:
        raise NoMediaStream(
            f"No audio or video stream found in {file_path or 'file'}"
        )

    audio_stream = parse_stream(audio_streams[0]) if audio_streams else None
    video_stream = parse_stream(video_streams[0]) if video_streams else None
    fmt = output.format

    bit_rate = parse_int(fmt.bit_rate) if fmt else None
    if not bit_rate and audio_stream is not None:
        bit_rate = audio_stream.bit_rate

    return MediaProbeData(
        format=fmt.format_name if fmt else None,
        duration_seconds=(parse_float(fmt.duration) if fmt else None) or 0.0,
        size_bytes=(parse_int(fmt.size) if fmt else None) or 0,
        bit_rate=bit_rate or 0,
        audio_stream=audio_stream,
        video_stream=video_stream,
        chapters=parse_chapters(output.chapters),
        tags=normalize_tags(fmt.tags if fmt else {}, mode, file_path),
        embedded_cover_present=any(is_cover_stream(s) for s in video_streams),
    )
