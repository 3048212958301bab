"""Probe error hierarchy and the MediaProber protocol."""

from pathlib import Path
from typing import Protocol

from shelfscan.domain import ProbeErrorKind, ProbeResult


class ProbeError(Exception):
    """Base class for failures inside the probe pipeline.

    These never escape Prober.probe(); they are converted into a failed
    ProbeResult carrying ``kind``.
    """

    kind: ProbeErrorKind = ProbeErrorKind.UNEXPECTED

    @property
    def retryable(self) -> bool:
        return self.kind.retryable


class ProbeTimeout(ProbeError):
    """ffprobe exceeded the overall time budget across all retries."""

    kind = ProbeErrorKind.TIMEOUT


class ProbeProcessFailure(ProbeError):
    """ffprobe exited nonzero, could not start, or printed unusable output."""

    kind = ProbeErrorKind.PROCESS_FAILURE


class NoMediaStream(ProbeError):
    """ffprobe succeeded but found no audio or video stream.

    Not retried: probing the same bytes again gives the same answer.
    """

    kind = ProbeErrorKind.NO_MEDIA_STREAM


class MediaProber(Protocol):
    """Protocol for components that turn a path into a ProbeResult.

    The external scan driver depends on this protocol, not on Prober, so it
    can be handed a stub in tests.
    """

    def probe(self, path: Path) -> ProbeResult:
        """Probe a media file.

        Args:
            path: File to probe.

        Returns:
            ProbeResult; failures are reported in the result, not raised.
        """
        ...
