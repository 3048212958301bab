"""Introspector module for shelfscan.

This module provides media probing capabilities:

- MediaProber: Protocol defining the probing interface
- Prober: Production implementation using ffprobe
- ProbeError and subclasses: failures inside the probe pipeline

Lower-level pieces:
- build_ffprobe_args / run_ffprobe / is_available: ffprobe invocation
- decode_ffprobe_output / parse_probe_output: output normalization
- copy_head / sweep_stale_partials / ScratchSweeper: partial reads

Formatters for probe results:
- format_human: Human-readable output
- format_json: JSON output
"""

from shelfscan.introspector.ffprobe import (
    build_ffprobe_args,
    is_available,
    run_ffprobe,
)
from shelfscan.introspector.formatters import (
    format_human,
    format_json,
    result_to_dict,
)
from shelfscan.introspector.interface import (
    MediaProber,
    NoMediaStream,
    ProbeError,
    ProbeProcessFailure,
    ProbeTimeout,
)
from shelfscan.introspector.parsers import decode_ffprobe_output, parse_probe_output
from shelfscan.introspector.partial import (
    ScratchSweeper,
    TempFileFailure,
    copy_head,
    default_scratch_dir,
    sweep_stale_partials,
)
from shelfscan.introspector.prober import Prober

__all__ = [
    "MediaProber",
    "Prober",
    # Errors
    "NoMediaStream",
    "ProbeError",
    "ProbeProcessFailure",
    "ProbeTimeout",
    "TempFileFailure",
    # ffprobe
    "build_ffprobe_args",
    "is_available",
    "run_ffprobe",
    # Parsing
    "decode_ffprobe_output",
    "parse_probe_output",
    # Partial reads
    "ScratchSweeper",
    "copy_head",
    "default_scratch_dir",
    "sweep_stale_partials",
    # Formatters
    "format_human",
    "format_json",
    "result_to_dict",
]
