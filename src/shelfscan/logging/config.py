"""Root logger setup driven by LoggingConfig."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from shelfscan.logging.context import ProbeContextFilter
from shelfscan.logging.handlers import JSONFormatter

if TYPE_CHECKING:
    from shelfscan.config.models import LoggingConfig

# probe_tag renders as "[W01:book.m4b] " inside a probe and "" elsewhere
TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(probe_tag)s%(name)s: %(message)s"
TEXT_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def _make_formatter(fmt: str) -> logging.Formatter:
    if fmt.casefold() == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT)


def _open_log_file(path: Path, config: LoggingConfig) -> logging.Handler | None:
    """Open the rotating log file, or None (with a note on stderr) if we can't."""
    path = path.expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        # logging is not set up yet, so this cannot go through a logger
        print(
            f"Warning: Could not open log file {config.file}: {e}", file=sys.stderr
        )
        return None


def configure_logging(config: LoggingConfig) -> None:
    """Install shelfscan's handlers on the root logger.

    Existing root handlers are dropped, so calling this twice is harmless.
    Records go to the log file when one is configured and can be opened,
    and to stderr when ``include_stderr`` is set or the file is unavailable.
    """
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handlers: list[logging.Handler] = []
    if config.file:
        file_handler = _open_log_file(Path(config.file), config)
        if file_handler is not None:
            handlers.append(file_handler)
    if config.include_stderr or not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))

    formatter = _make_formatter(config.format)
    context_filter = ProbeContextFilter()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root.addHandler(handler)
