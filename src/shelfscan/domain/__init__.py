"""Domain models and enums for shelfscan.

- Probe models: FileFingerprint, Chapter, StreamInfo, MediaProbeData,
  ProbeResult
- Enums: ProbeMode, ConsistencyPolicy, ProbeErrorKind

Usage:
    from shelfscan.domain import MediaProbeData, ConsistencyPolicy
"""

from .enums import ConsistencyPolicy, ProbeErrorKind, ProbeMode
from .models import (
    Chapter,
    FileFingerprint,
    MediaProbeData,
    ProbeResult,
    StreamInfo,
)

__all__ = [
    # Models
    "Chapter",
    "FileFingerprint",
    "MediaProbeData",
    "ProbeResult",
    "StreamInfo",
    # Enums
    "ConsistencyPolicy",
    "ProbeErrorKind",
    "ProbeMode",
]
