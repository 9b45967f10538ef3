"""
Bounded retry primitive.

Runs an async action up to a fixed number of tries with a growing delay
between them, using tenacity. The delay after failed try n is
`interval * interval_multiplicator ** (n - 1)`.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class BoundedRetryOptions:
    """
    Options understood by `bounded_retry`.

    Attributes:
        max_retry: Number of tries to issue (0 issues none)
        interval: Delay after the first failed try, in seconds
        interval_multiplicator: Factor applied to the delay after each further failure
    """

    max_retry: int
    interval: float
    interval_multiplicator: float = 1.0


class NoTriesScheduled(Exception):
    """Raised by `bounded_retry` when `max_retry` is 0."""
    pass


def _log_before_sleep(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    error = outcome.exception() if outcome is not None else None
    logger.debug(
        "Try failed, sleeping before next try",
        attempt=retry_state.attempt_number,
        sleep_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
        error_type=type(error).__name__ if error else None,
    )


async def bounded_retry(
    action: Callable[[], Awaitable[Any]],
    options: BoundedRetryOptions,
    sleep: Optional[SleepFn] = None,
) -> Any:
    """
    Run `action` until it succeeds or `options.max_retry` tries have failed.

    Args:
        action: Zero-argument coroutine function performing one try
        options: Try count and delay shape
        sleep: Awaitable sleep used between tries (default asyncio.sleep)

    Returns:
        Result of the first successful try

    Raises:
        Exception: The last error raised by `action` after exhaustion
        NoTriesScheduled: If `options.max_retry` is 0
    """
    if options.max_retry < 1:
        raise NoTriesScheduled("No tries scheduled")

    retrying = AsyncRetrying(
        sleep=sleep or asyncio.sleep,
        stop=stop_after_attempt(options.max_retry),
        wait=wait_exponential(
            multiplier=options.interval,
            exp_base=options.interval_multiplicator,
            min=0,
        ),
        retry=retry_if_exception_type(Exception),
        before_sleep=_log_before_sleep,
        reraise=True,
    )
    return await retrying(action)
