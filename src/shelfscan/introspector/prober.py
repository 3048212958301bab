"""ffprobe-based implementation of the MediaProber protocol.

Prober wraps ffprobe with the probe cache, the partial-read optimization
and a retry loop bounded by one overall deadline, and normalizes the output
into MediaProbeData. It never raises for a bad file: every failure comes
back as a ProbeResult so the scan driver can move on to the next file.
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - only for TimeoutExpired
import time
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

from shelfscan.cache import ProbeCache
from shelfscan.config.models import ProbeConfig
from shelfscan.core import DeadlineExceeded, run_command, run_with_retry
from shelfscan.domain import MediaProbeData, ProbeErrorKind, ProbeResult
from shelfscan.introspector.ffprobe import (
    CommandRunner,
    build_ffprobe_args,
    run_ffprobe,
)
from shelfscan.introspector.interface import ProbeError, ProbeTimeout
from shelfscan.introspector.parsers import decode_ffprobe_output, parse_probe_output
from shelfscan.introspector.partial import (
    ScratchSweeper,
    TempFileFailure,
    copy_head,
    default_scratch_dir,
    remove_scratch_file,
    sweep_stale_partials,
)
from shelfscan.logging import probe_context

if TYPE_CHECKING:
    from shelfscan.config.models import ShelfScanConfig

logger = logging.getLogger(__name__)


def _is_retryable(error: Exception) -> bool:
    return isinstance(error, ProbeError) and error.retryable


def _is_timeout(error: Exception) -> bool:
    return isinstance(error, ProbeTimeout)


class Prober:
    """Produces MediaProbeData for a path, hiding ffprobe's cost and flakiness.

    Pipeline per call: cache lookup, optional partial-read copy, ffprobe
    under retry and deadline, parse and normalize, cache store, scratch
    cleanup. Safe to call from several threads at once; the external scan
    driver decides how many.

    Example:
        prober = Prober.from_config(get_config())
        result = prober.probe(Path("/lib/book.m4b"))
        if result.ok:
            print(result.data.duration_seconds)
        prober.close()
    """

    def __init__(
        self,
        config: ProbeConfig | None = None,
        cache: ProbeCache | None = None,
        *,
        runner: CommandRunner = run_command,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        sweeper: ScratchSweeper | None = None,
    ) -> None:
        """Initialize the prober.

        Args:
            config: Probe configuration (defaults to ProbeConfig()).
            cache: Probe cache, or None to disable caching.
            runner: Command runner used for ffprobe (injectable for tests).
            clock: Monotonic time source for the deadline.
            sleep: Sleep function for retry delays.
            sweeper: Optional scratch sweeper owned by this prober. It is
                started here and stopped by close().
        """
        self._config = config or ProbeConfig()
        self._cache = cache
        self._runner = runner
        self._clock = clock
        self._sleep = sleep
        self._sweeper = sweeper
        if self._sweeper is not None and not self._sweeper.running:
            self._sweeper.start()

    @classmethod
    def from_config(
        cls, config: ShelfScanConfig, *, start_sweeper: bool = True
    ) -> Prober:
        """Build a prober, its cache and its scratch sweeper from config.

        Args:
            config: Resolved shelfscan configuration.
            start_sweeper: Run the hourly scratch sweep in the background
                (only when partial reads are enabled).
        """
        probe_config = config.probe
        sweeper = None
        if start_sweeper and probe_config.partial_read_enabled:
            sweeper = ScratchSweeper(
                probe_config.scratch_dir or default_scratch_dir(),
                max_age_seconds=probe_config.scratch_max_age_seconds,
            )
        return cls(
            probe_config,
            ProbeCache.from_config(config.cache),
            sweeper=sweeper,
        )

    @property
    def config(self) -> ProbeConfig:
        return self._config

    @property
    def cache(self) -> ProbeCache | None:
        return self._cache

    @property
    def scratch_dir(self) -> Path:
        """Directory that receives partial-read copies."""
        return self._config.scratch_dir or default_scratch_dir()

    def probe(self, path: Path | str) -> ProbeResult:
        """Probe a media file.

        Args:
            path: File to probe.

        Returns:
            ProbeResult with data on success, or the error description and
            kind on failure. Never raises for per-file failures.
        """
        path = Path(path)
        started = self._clock()
        scratch: Path | None = None
        attempts_made = 0

        def elapsed() -> float:
            return self._clock() - started

        def failure(error: str, kind: ProbeErrorKind) -> ProbeResult:
            logger.warning("Probe failed (%s): %s", kind.value, error)
            return ProbeResult(
                path=path,
                error=error,
                error_kind=kind,
                partial_read=scratch is not None,
                attempts=attempts_made,
                elapsed_seconds=elapsed(),
            )

        with probe_context(path):
            try:
                if self._cache is not None:
                    cached = self._cache.get(path)
                    if cached is not None:
                        return ProbeResult(
                            path=path,
                            data=cached,
                            from_cache=True,
                            elapsed_seconds=elapsed(),
                        )

                if self._config.partial_read_enabled:
                    scratch = self._make_partial_copy(path)
                target = scratch or path

                def attempt(remaining: float) -> MediaProbeData:
                    nonlocal attempts_made
                    attempts_made += 1
                    return self._probe_once(target, path, remaining)

                outcome = run_with_retry(
                    attempt,
                    attempts=self._config.retry_attempts,
                    base_delay=self._config.retry_base_delay_seconds,
                    timeout=self._config.timeout_seconds,
                    is_retryable=_is_retryable,
                    is_timeout=_is_timeout,
                    clock=self._clock,
                    sleep=self._sleep,
                )
                data = outcome.value
                if scratch is not None:
                    data = self._with_source_totals(data, path)

                if self._cache is not None:
                    self._cache.set(path, data)

                logger.debug(
                    "Probed in %.2fs (%d attempt(s)%s)",
                    elapsed(),
                    outcome.attempts,
                    ", partial read" if scratch is not None else "",
                )
                return ProbeResult(
                    path=path,
                    data=data,
                    partial_read=scratch is not None,
                    attempts=outcome.attempts,
                    elapsed_seconds=elapsed(),
                )
            except DeadlineExceeded as e:
                return failure(str(e), ProbeErrorKind.TIMEOUT)
            except ProbeError as e:
                return failure(str(e), e.kind)
            except Exception as e:
                logger.exception("Unexpected error while probing %s", path)
                return failure(
                    f"{type(e).__name__}: {e}", ProbeErrorKind.UNEXPECTED
                )
            finally:
                if scratch is not None:
                    remove_scratch_file(scratch)

    def _make_partial_copy(self, path: Path) -> Path | None:
        """Copy the head of a file into scratch, or None to probe the original."""
        try:
            return copy_head(
                path, self.scratch_dir, self._config.partial_read_max_bytes
            )
        except TempFileFailure as e:
            logger.warning("Partial read failed, probing full file: %s", e)
            return None

    def _probe_once(
        self, target: Path, source: Path, remaining: float
    ) -> MediaProbeData:
        """Run one ffprobe attempt against ``target`` and normalize it.

        Raises:
            ProbeTimeout: If the attempt used up the remaining budget.
            ProbeProcessFailure: If ffprobe failed or its output is unusable.
            NoMediaStream: If the file has no audio or video stream.
        """
        args = build_ffprobe_args(
            self._config.ffprobe_path,
            target,
            self._config.mode,
            analyze_duration_us=self._config.analyze_duration_us,
            probe_size_bytes=self._config.probe_size_bytes,
        )
        try:
            stdout = run_ffprobe(args, timeout=remaining, runner=self._runner)
        except subprocess.TimeoutExpired as e:
            raise ProbeTimeout(
                f"ffprobe timed out for {source} after {e.timeout:.1f}s"
            ) from e

        output = decode_ffprobe_output(stdout)
        return parse_probe_output(output, self._config.mode, str(source))

    @staticmethod
    def _with_source_totals(data: MediaProbeData, source: Path) -> MediaProbeData:
        """Correct size and bit rate of a probed partial copy.

        ffprobe derives a container's overall bit rate from the bytes it
        was given, so a truncated copy under-reports it. When the copy is
        smaller than the original, the bit rate is recomputed from the
        original size and the probed duration.

        Header-less CBR MP3s are the exception: there ffprobe estimates the
        duration from the copy's size as well, so both duration and the
        recomputed bit rate stay approximate. A full read gives exact values.
        """
        try:
            size = source.stat().st_size
        except OSError as e:
            logger.warning("Could not stat %s after partial read: %s", source, e)
            return data

        bit_rate = data.bit_rate
        if size > data.size_bytes and data.duration_seconds > 0:
            bit_rate = round(size * 8 / data.duration_seconds)
        return replace(data, size_bytes=size, bit_rate=bit_rate)

    def sweep_scratch(self) -> int:
        """Delete stale partial-read copies now.

        Returns:
            Number of files deleted.
        """
        return sweep_stale_partials(
            self.scratch_dir, self._config.scratch_max_age_seconds
        )

    def close(self) -> None:
        """Stop the background sweeper, if any, and log cache statistics."""
        if self._sweeper is not None:
            self._sweeper.stop()
            self._sweeper = None
        if self._cache is not None:
            self._cache.log_stats()

    def __enter__(self) -> Prober:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
