"""ffprobe invocation: argument building and a single attempt."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from shelfscan.core import run_command
from shelfscan.domain import ProbeMode
from shelfscan.introspector.interface import ProbeProcessFailure

logger = logging.getLogger(__name__)

# Largest stdout accepted from ffprobe (10 MiB)
MAX_OUTPUT_CHARS = 10 * 1024 * 1024

# Signature of run_command, injectable for tests
CommandRunner = Callable[..., tuple[str, str, int]]


def is_available(ffprobe_path: str | Path = "ffprobe") -> bool:
    """Check whether the ffprobe executable can be found.

    Args:
        ffprobe_path: Command name (looked up in PATH) or explicit path.

    Returns:
        True if the executable exists.
    """
    return shutil.which(str(ffprobe_path)) is not None


def build_ffprobe_args(
    ffprobe_path: str | Path,
    target: Path,
    mode: ProbeMode,
    *,
    analyze_duration_us: int = 5_000_000,
    probe_size_bytes: int = 5_000_000,
) -> list[str]:
    """Build the ffprobe command line.

    MINIMAL mode caps how much of the file ffprobe itself reads with
    ``-analyzeduration`` and ``-probesize``; FULL mode leaves ffprobe's own
    defaults in place. The target path is always the last argument.

    Args:
        ffprobe_path: ffprobe executable.
        target: File to probe.
        mode: Probe mode.
        analyze_duration_us: Analyze limit in microseconds (MINIMAL only).
        probe_size_bytes: Probe size limit in bytes (MINIMAL only).

    Returns:
        Argument list suitable for run_command.
    """
    args = [str(ffprobe_path)]
    if mode is ProbeMode.MINIMAL:
        args += [
            "-analyzeduration",
            str(analyze_duration_us),
            "-probesize",
            str(probe_size_bytes),
        ]
    args += [
        "-hide_banner",
        "-loglevel",
        "fatal",
        "-show_error",
        "-show_format",
        "-show_streams",
        "-show_chapters",
        "-print_format",
        "json",
        str(target),
    ]
    return args


def run_ffprobe(
    args: list[str],
    timeout: float,
    runner: CommandRunner = run_command,
) -> str:
    """Run ffprobe once and return its stdout.

    Args:
        args: Full command line from build_ffprobe_args().
        timeout: Seconds this attempt may take; the child is killed after.
        runner: Command runner (defaults to run_command).

    Returns:
        ffprobe's stdout.

    Raises:
        subprocess.TimeoutExpired: If the attempt ran out of time.
        ProbeProcessFailure: If ffprobe could not start, exited nonzero, or
            printed more output than MAX_OUTPUT_CHARS.
    """
    try:
        stdout, stderr, returncode = runner(args, timeout=timeout)
    except OSError as e:
        raise ProbeProcessFailure(f"Could not run {args[0]}: {e}") from e

    if returncode != 0:
        detail = stderr.strip() or stdout.strip()[:500]
        raise ProbeProcessFailure(f"ffprobe exited with code {returncode}: {detail}")
    if len(stdout) > MAX_OUTPUT_CHARS:
        raise ProbeProcessFailure(
            f"ffprobe output exceeds {MAX_OUTPUT_CHARS} characters"
        )
    return stdout
