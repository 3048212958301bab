"""Core utilities package.

Small helpers with no knowledge of probing or scanning: the subprocess
wrapper and the deadline-bounded retry loop.
"""

from shelfscan.core.retry import (
    DeadlineExceeded,
    RetryOutcome,
    linear_delay,
    run_with_retry,
)
from shelfscan.core.subprocess_utils import run_command

__all__ = [
    # retry
    "DeadlineExceeded",
    "RetryOutcome",
    "linear_delay",
    "run_with_retry",
    # subprocess_utils
    "run_command",
]
