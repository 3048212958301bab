"""Structured (JSON lines) log formatting."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord carries, plus the ones Formatter adds itself
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}

# Set by ProbeContextFilter; probe_tag only exists for the text format
_PROBE_FIELDS = ("worker_id", "file_path")
_SKIPPED = _RECORD_ATTRS | {"probe_tag", *_PROBE_FIELDS}


class JSONFormatter(logging.Formatter):
    """Render each record as one JSON object per line.

    Keys: ``timestamp`` (UTC, ISO-8601), ``level``, ``message``, then
    ``logger`` unless it is the root logger. Anything passed via ``extra=``
    and the active probe context go under ``context``; a traceback goes
    under ``exception``. Values json cannot encode are stringified.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
        }
        if record.name and record.name != "root":
            entry["logger"] = record.name

        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _SKIPPED and not key.startswith("_")
        }
        context.update(
            (name, getattr(record, name))
            for name in _PROBE_FIELDS
            if getattr(record, name, None)
        )
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
