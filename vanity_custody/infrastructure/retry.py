"""Bounded Retry: run an async operation up to max_attempts times, never raising.

Invariants:
    - At most max_attempts calls; stops at the first result accepted by `succeeded`
    - Exceptions (not BaseException) from the operation count as a failed attempt
    - Attempts run strictly sequentially, no overlap between retries of one call

Design Decisions:
    - Explicit loop instead of self-recursion: callers decide ordering between
      dependent operations, the helper only bounds repetition
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryOutcome(Generic[T]):
    """Last result (or last exception) plus how many attempts were made."""
    result: T | None
    error: Exception | None
    attempts: int
    succeeded: bool


async def attempt(
    operation: Callable[[int], Awaitable[T]],
    *,
    succeeded: Callable[[T], bool],
    max_attempts: int = 2,
    label: str = "operation",
) -> RetryOutcome[T]:
    """Call operation(attempt_number) until it succeeds or the budget is spent."""
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    result: T | None = None
    error: Exception | None = None
    for attempt_number in range(1, max_attempts + 1):
        try:
            result = await operation(attempt_number)
            error = None
        except Exception as e:
            result = None
            error = e
            logger.warning(
                f"{label} raised on attempt {attempt_number}: {e}",
                extra={"attempt": attempt_number},
            )
            continue
        if succeeded(result):
            return RetryOutcome(result, None, attempt_number, True)
        logger.warning(
            f"{label} not successful on attempt {attempt_number}",
            extra={"attempt": attempt_number},
        )
    return RetryOutcome(result, error, max_attempts, False)
