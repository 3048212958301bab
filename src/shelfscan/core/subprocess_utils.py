"""Thin wrapper around subprocess.run for the external tools shelfscan calls.

Only ffprobe goes through here today. Output is always decoded as text with
undecodable bytes replaced, so a tag written in a broken encoding can never
abort a scan.
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - needed to launch ffprobe
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_SUMMARY_ARGS = 3


def _summarize(argv: Sequence[str]) -> str:
    """Render the first few arguments of a command line for log messages."""
    head = " ".join(argv[:_SUMMARY_ARGS])
    return head if len(argv) <= _SUMMARY_ARGS else f"{head} ..."


def run_command(
    args: Sequence[str | Path],
    timeout: float = 120,
    capture_output: bool = True,
    text: bool = True,
    errors: str = "replace",
    **kwargs: Any,
) -> tuple[str, str, int]:
    """Run a command to completion and hand back its output.

    Args:
        args: Program followed by its arguments; Path items are stringified.
        timeout: Seconds before the child is killed.
        capture_output: Collect stdout and stderr instead of inheriting them.
        text: Decode output to str.
        errors: Decoding error strategy.
        **kwargs: Forwarded to subprocess.run unchanged.

    Returns:
        (stdout, stderr, returncode); missing streams come back as "".

    Raises:
        subprocess.TimeoutExpired: The child outlived ``timeout``. It has
            already been killed and reaped when this propagates.
        OSError: The program could not be started.
    """
    argv = [str(item) for item in args]
    program = Path(argv[0]).name if argv else "unknown"
    logger.debug("Running %s", " ".join(argv), extra={"command": program})

    started = time.perf_counter()
    try:
        completed = subprocess.run(  # nosec B603 - argv built by callers
            argv,
            capture_output=capture_output,
            text=text,
            errors=errors,
            timeout=timeout,
            **kwargs,
        )
    except subprocess.TimeoutExpired:
        logger.warning(
            "%s killed after %.1fs: %s",
            program,
            time.perf_counter() - started,
            _summarize(argv),
            extra={"command": program, "timeout_seconds": timeout},
        )
        raise

    logger.debug(
        "%s exited with %d in %.3fs",
        program,
        completed.returncode,
        time.perf_counter() - started,
        extra={"command": program},
    )
    return completed.stdout or "", completed.stderr or "", completed.returncode
