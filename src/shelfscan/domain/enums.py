"""Domain enums for shelfscan.

This module contains enums shared by the prober, the probe cache and the
scan reconciler.
"""

from enum import Enum


class ProbeMode(Enum):
    """How much work ffprobe is asked to do per file.

    MINIMAL bounds ffprobe with explicit analyzeduration/probesize limits and
    keeps only the mapped tag keys. FULL lifts the limits and keeps every
    container tag.
    """

    MINIMAL = "minimal"
    FULL = "full"


class ConsistencyPolicy(Enum):
    """Which file-system signals count during scan reconciliation.

    STRICT treats inode numbers and mtime/ctime/birthtime as authoritative
    identity and change signals. TOLERANT ignores them (they are still copied
    onto the record) and relies on path and size only, for mounts where those
    values churn between scans.
    """

    STRICT = "strict"
    TOLERANT = "tolerant"


class ProbeErrorKind(Enum):
    """Classification of a failed probe, carried on ProbeResult."""

    TIMEOUT = "timeout"  # Overall time budget exhausted across retries
    PROCESS_FAILURE = "process_failure"  # Nonzero exit or unparseable output
    NO_MEDIA_STREAM = "no_media_stream"  # Parsed fine but nothing playable
    UNEXPECTED = "unexpected"  # Anything else raised inside the pipeline

    @property
    def retryable(self) -> bool:
        """Return True if probing the same file again might succeed."""
        return self in (ProbeErrorKind.TIMEOUT, ProbeErrorKind.PROCESS_FAILURE)
