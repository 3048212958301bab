"""Structured logging module for shelfscan.

Provides configurable logging with JSON format support and file rotation.
Includes probe context support so concurrent probes stay distinguishable.
"""

from shelfscan.logging.config import configure_logging
from shelfscan.logging.context import (
    ProbeContextFilter,
    get_probe_context,
    probe_context,
)
from shelfscan.logging.handlers import JSONFormatter

__all__ = [
    "JSONFormatter",
    "ProbeContextFilter",
    "configure_logging",
    "get_probe_context",
    "probe_context",
]
