"""Probe context for structured logging.

Provides context propagation using contextvars, enabling automatic injection
of the file being probed (and the driver's worker id, when it has one) into
log records.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_worker_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "worker_id", default=None
)
_file_path: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "file_path", default=None
)


@contextmanager
def probe_context(
    file_path: Path | str,
    worker_id: str | None = None,
) -> Generator[None, None, None]:
    """Context manager that tags log records with the file being probed.

    The previous context is restored on exit, so contexts nest. Thread-safe
    via contextvars.

    Args:
        file_path: Path of the file being probed.
        worker_id: Optional identifier of the driver worker (e.g., "01").
            When None, an enclosing context's worker id is kept.

    Example:
        with probe_context("/lib/book.m4b", worker_id="01"):
            logger.info("Probing")  # "[W01:book.m4b] ... Probing"
    """
    worker_token = _worker_id.set(worker_id or _worker_id.get())
    path_token = _file_path.set(str(file_path))
    try:
        yield
    finally:
        _file_path.reset(path_token)
        _worker_id.reset(worker_token)


def get_probe_context() -> tuple[str | None, str | None]:
    """Get current probe context.

    Returns:
        Tuple of (worker_id, file_path), either may be None.
    """
    return _worker_id.get(), _file_path.get()


class ProbeContextFilter(logging.Filter):
    """Logging filter that injects probe context into log records.

    Adds worker_id and file_path attributes to LogRecord from contextvars.
    For text format, also adds a probe_tag for compact display like
    [W01:book.m4b].
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Inject probe context into log record.

        Returns:
            Always True (does not filter, only enriches).
        """
        worker_id, file_path = get_probe_context()

        record.worker_id = worker_id
        record.file_path = file_path

        name = Path(file_path).name if file_path else None
        if worker_id and name:
            record.probe_tag = f"[W{worker_id}:{name}] "
        elif name:
            record.probe_tag = f"[{name}] "
        elif worker_id:
            record.probe_tag = f"[W{worker_id}] "
        else:
            record.probe_tag = ""

        return True  # Never filter out records
