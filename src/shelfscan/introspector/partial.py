"""Partial-read scratch copies.

Most container and tag metadata lives near the start of a file, so probing
a copy of the first few MiB avoids pulling whole files over slow mounts.
Copies are written to a scratch directory, removed after each probe, and
anything left behind (crash, kill -9) is swept by age.
"""

from __future__ import annotations

import logging
import tempfile
import threading
import time
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_PARTIAL_READ_BYTES = 5 * 1024 * 1024
DEFAULT_SCRATCH_MAX_AGE_SECONDS = 60 * 60
DEFAULT_SWEEP_INTERVAL_SECONDS = 60 * 60

_COPY_CHUNK_BYTES = 1024 * 1024
_MAX_STEM_LENGTH = 100


class TempFileFailure(OSError):
    """A scratch copy could not be created or removed."""


def default_scratch_dir() -> Path:
    """Return the scratch directory used when none is configured."""
    return Path(tempfile.gettempdir()) / "shelfscan-probe"


def scratch_name(source: Path) -> str:
    """Return a unique scratch file name for a source file.

    The name keeps the source stem and extension (ffprobe uses the extension
    as a format hint) and adds a nanosecond timestamp plus a random suffix,
    so concurrent probes never collide, even for the same source.
    """
    stem = source.stem[:_MAX_STEM_LENGTH]
    return f"{stem}.{time.time_ns()}-{uuid.uuid4().hex[:8]}{source.suffix}"


def copy_head(source: Path, scratch_dir: Path, max_bytes: int) -> Path:
    """Copy at most ``max_bytes`` from the start of a file into scratch.

    Args:
        source: File to copy from.
        scratch_dir: Directory for the copy; created if missing.
        max_bytes: Upper bound on bytes copied.

    Returns:
        Path of the new scratch copy.

    Raises:
        TempFileFailure: If the copy could not be completed. No partial
            copy is left behind.
    """
    try:
        scratch_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise TempFileFailure(f"Cannot create scratch dir {scratch_dir}: {e}") from e

    target = scratch_dir / scratch_name(source)
    copied = 0
    try:
        with open(source, "rb") as src, open(target, "xb") as dst:
            while copied < max_bytes:
                chunk = src.read(min(_COPY_CHUNK_BYTES, max_bytes - copied))
                if not chunk:
                    break
                dst.write(chunk)
                copied += len(chunk)
    except OSError as e:
        remove_scratch_file(target)
        raise TempFileFailure(f"Partial read of {source} failed: {e}") from e

    logger.debug(
        "Copied first %.2f MiB of %s to %s",
        copied / (1024 * 1024),
        source.name,
        target,
    )
    return target


def remove_scratch_file(path: Path) -> bool:
    """Remove a scratch copy, logging instead of raising on failure.

    Returns:
        True if the file is gone afterwards.
    """
    try:
        path.unlink(missing_ok=True)
        return True
    except OSError as e:
        logger.warning("Could not remove scratch file %s: %s", path, e)
        return False


def sweep_stale_partials(
    scratch_dir: Path,
    max_age_seconds: float = DEFAULT_SCRATCH_MAX_AGE_SECONDS,
    now: float | None = None,
) -> int:
    """Delete scratch files older than ``max_age_seconds``.

    Args:
        scratch_dir: Directory to sweep. A missing directory is not an error.
        max_age_seconds: Files whose mtime is older than this are deleted.
        now: Current wall-clock time (defaults to time.time()).

    Returns:
        Number of files deleted.
    """
    if now is None:
        now = time.time()

    try:
        entries = list(scratch_dir.iterdir())
    except FileNotFoundError:
        return 0
    except OSError as e:
        logger.warning("Could not list scratch dir %s: %s", scratch_dir, e)
        return 0

    removed = 0
    for entry in entries:
        try:
            stat = entry.stat()
        except OSError:
            continue  # Removed concurrently
        if not entry.is_file() or now - stat.st_mtime <= max_age_seconds:
            continue
        if remove_scratch_file(entry):
            removed += 1

    if removed:
        logger.info("Swept %d stale scratch file(s) from %s", removed, scratch_dir)
    return removed


class ScratchSweeper:
    """Background thread that sweeps the scratch directory periodically.

    Example:
        sweeper = ScratchSweeper(scratch_dir)
        sweeper.start()
        ...
        sweeper.stop()
    """

    def __init__(
        self,
        scratch_dir: Path,
        max_age_seconds: float = DEFAULT_SCRATCH_MAX_AGE_SECONDS,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        self.scratch_dir = scratch_dir
        self.max_age_seconds = max_age_seconds
        self.interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._state_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> int:
        """Sweep now; never raises."""
        try:
            return sweep_stale_partials(self.scratch_dir, self.max_age_seconds)
        except Exception as e:
            logger.warning("Scratch sweep failed: %s", e)
            return 0

    def _run(self) -> None:
        logger.debug(
            "Scratch sweeper started (interval %d seconds)", self.interval_seconds
        )
        while not self._stop_event.wait(self.interval_seconds):
            self.run_once()
        logger.debug("Scratch sweeper stopped")

    def start(self) -> None:
        """Start the sweeper thread. Does nothing if it is already running."""
        with self._state_lock:
            if self.running:
                logger.warning("Scratch sweeper already running")
                return
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run, name="shelfscan-scratch-sweeper", daemon=True
            )
            self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the sweeper to stop and wait for the thread to exit."""
        with self._state_lock:
            self._stop_event.set()
            if self._thread is not None:
                self._thread.join(timeout=timeout)
                self._thread = None
