"""Formatters for probe results.

This module provides functions to format ProbeResult and MediaProbeData
objects for human-readable or JSON output, used by the diagnostic CLI.
"""

import json

from shelfscan.domain import Chapter, MediaProbeData, ProbeResult, StreamInfo


def format_duration(seconds: float) -> str:
    """Format seconds as H:MM:SS.mmm."""
    total_ms = int(round(seconds * 1000))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, ms = divmod(rem, 1000)
    return f"{hours}:{minutes:02d}:{secs:02d}.{ms:03d}"


def format_stream_line(stream: StreamInfo) -> str:
    """Format a stream for human output, e.g. ``aac 44100 Hz stereo 64 kb/s``.

    Args:
        stream: The stream to format.

    Returns:
        Formatted stream line.
    """
    parts = [stream.codec or "unknown"]
    if stream.sample_rate:
        parts.append(f"{stream.sample_rate} Hz")
    if stream.channel_layout:
        parts.append(stream.channel_layout)
    elif stream.channels:
        parts.append(f"{stream.channels} ch")
    if stream.bit_rate:
        parts.append(f"{stream.bit_rate // 1000} kb/s")
    if stream.language and stream.language != "und":
        parts.append(stream.language)
    return " ".join(parts)


def format_chapter_line(chapter: Chapter) -> str:
    """Format a chapter for human output."""
    return (
        f"#{chapter.index + 1} {format_duration(chapter.start_seconds)}"
        f" - {format_duration(chapter.end_seconds)} {chapter.title}"
    )


def format_probe_data(data: MediaProbeData) -> list[str]:
    """Return human-readable lines describing probe data."""
    lines = [
        f"Format: {data.format or 'unknown'}",
        f"Duration: {format_duration(data.duration_seconds)}",
        f"Size: {data.size_bytes} bytes",
        f"Bit rate: {data.bit_rate // 1000} kb/s",
    ]
    if data.audio_stream is not None:
        lines.append(f"Audio: {format_stream_line(data.audio_stream)}")
    if data.video_stream is not None:
        lines.append(f"Video: {format_stream_line(data.video_stream)}")
    lines.append(f"Embedded cover: {'yes' if data.embedded_cover_present else 'no'}")

    if data.chapters:
        lines.append("")
        lines.append(f"Chapters ({len(data.chapters)}):")
        for chapter in data.chapters:
            lines.append(f"  {format_chapter_line(chapter)}")

    if data.tags:
        lines.append("")
        lines.append("Tags:")
        for key in sorted(data.tags):
            lines.append(f"  {key}: {data.tags[key]}")
    return lines


def format_human(result: ProbeResult) -> str:
    """Format a probe result for human-readable output.

    Args:
        result: The probe result to format.

    Returns:
        Formatted string for terminal output.
    """
    lines = [f"File: {result.path}"]

    if result.data is None:
        kind = result.error_kind.value if result.error_kind else "unknown"
        lines.append(f"Error ({kind}): {result.error}")
        if result.retryable:
            lines.append("  (may succeed on a later attempt)")
        return "\n".join(lines)

    source = "cache" if result.from_cache else f"{result.attempts} attempt(s)"
    if result.partial_read:
        source += ", partial read"
    lines.append(f"Probed: {result.elapsed_seconds:.2f}s ({source})")
    lines.append("")
    lines.extend(format_probe_data(result.data))
    return "\n".join(lines)


def result_to_dict(result: ProbeResult) -> dict:
    """Convert a ProbeResult to a JSON-serializable dict."""
    return {
        "file": str(result.path),
        "ok": result.ok,
        "data": result.data.to_dict() if result.data is not None else None,
        "error": result.error,
        "error_kind": result.error_kind.value if result.error_kind else None,
        "retryable": result.retryable,
        "from_cache": result.from_cache,
        "partial_read": result.partial_read,
        "attempts": result.attempts,
        "elapsed_seconds": round(result.elapsed_seconds, 3),
    }


def format_json(result: ProbeResult) -> str:
    """Format a probe result as JSON.

    Args:
        result: The probe result to format.

    Returns:
        JSON string.
    """
    return json.dumps(result_to_dict(result), indent=2)
