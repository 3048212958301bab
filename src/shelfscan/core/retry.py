"""Bounded retry under a single overall deadline.

The deadline covers the whole sequence: every attempt is handed only the
time that is left, and a delay that would run past the deadline ends the
loop instead of sleeping.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DeadlineExceeded(Exception):
    """Raised when the overall time budget runs out before a success.

    Attributes:
        attempts: Number of attempts that were started.
        last_error: Error raised by the last failed attempt, if any.
    """

    def __init__(
        self, timeout: float, attempts: int, last_error: BaseException | None = None
    ) -> None:
        self.timeout = timeout
        self.attempts = attempts
        self.last_error = last_error
        message = f"Deadline of {timeout:.3f}s exceeded after {attempts} attempt(s)"
        if last_error is not None:
            message += f": {last_error}"
        super().__init__(message)


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    """Value returned by a successful attempt plus the attempt count."""

    value: T
    attempts: int


def linear_delay(attempt: int, base_delay: float) -> float:
    """Return the delay after a failed attempt (1-based): attempt * base."""
    return attempt * base_delay


def run_with_retry(
    operation: Callable[[float], T],
    *,
    attempts: int,
    base_delay: float,
    timeout: float,
    is_retryable: Callable[[Exception], bool] = lambda e: True,
    is_timeout: Callable[[Exception], bool] = lambda e: False,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> RetryOutcome[T]:
    """Run an operation up to ``attempts`` times within ``timeout`` seconds.

    The deadline is checked before every attempt. Each attempt receives the
    remaining budget in seconds and must not run longer than that (for a
    subprocess, pass it as the process timeout so the child is killed).

    Args:
        operation: Callable taking the remaining budget in seconds.
        attempts: Maximum number of attempts (>= 1).
        base_delay: Base delay in seconds; attempt N failing waits N * base.
        timeout: Overall budget in seconds for all attempts and delays.
        is_retryable: Returns False for errors that must not be retried;
            such errors propagate immediately.
        is_timeout: Returns True for errors meaning the attempt ran out of
            budget; these end the loop with DeadlineExceeded.
        clock: Monotonic time source.
        sleep: Sleep function.

    Returns:
        RetryOutcome with the first successful value.

    Raises:
        DeadlineExceeded: If the budget runs out before a success.
        Exception: The last attempt's error once attempts are exhausted, or
            any non-retryable error.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")

    deadline = clock() + timeout
    last_error: Exception | None = None

    for attempt in range(1, attempts + 1):
        remaining = deadline - clock()
        if remaining <= 0:
            raise DeadlineExceeded(timeout, attempt - 1, last_error)

        try:
            return RetryOutcome(value=operation(remaining), attempts=attempt)
        except Exception as e:
            if is_timeout(e):
                raise DeadlineExceeded(timeout, attempt, e) from e
            if not is_retryable(e):
                raise
            last_error = e
            logger.debug("Attempt %d/%d failed: %s", attempt, attempts, e)

        if attempt < attempts:
            delay = linear_delay(attempt, base_delay)
            if clock() + delay >= deadline:
                raise DeadlineExceeded(timeout, attempt, last_error) from last_error
            sleep(delay)

    assert last_error is not None
    raise last_error
