"""
Async utilities: bounded retry policy and the retry loop that consumes it.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Coroutine, Optional

from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry policy for async operations with exponential backoff.

    Args:
        max_attempts: Total attempts including the first call
        backoff_per_attempt_s: Base delay; doubles after every failed attempt
        max_backoff_s: Upper bound for a single delay
    """

    max_attempts: int = 3
    backoff_per_attempt_s: float = 0.7
    max_backoff_s: float = 4.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.backoff_per_attempt_s < 0:
            raise ValueError("backoff_per_attempt_s must be >= 0")


def _log_retry(retry_state) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Attempt %d failed: %s. Retrying in %.2fs...",
        retry_state.attempt_number,
        exc,
        retry_state.next_action.sleep if retry_state.next_action else 0.0,
    )


async def retry_async(
    policy: RetryPolicy,
    coro_func: Callable[..., Coroutine],
    *args,
    retry_if: Optional[Callable[[BaseException], bool]] = None,
    **kwargs,
) -> Any:
    """
    Execute async function under a retry policy.

    Args:
        policy: Attempts and backoff to apply
        coro_func: Async function to call
        retry_if: Predicate deciding whether an exception is worth retrying;
            defaults to retrying every exception
        *args: Positional arguments
        **kwargs: Keyword arguments

    Returns:
        Result from successful execution; the last exception is re-raised
        once attempts are exhausted or retry_if declines.
    """
    predicate = retry_if or (lambda exc: True)
    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(
            multiplier=policy.backoff_per_attempt_s,
            min=policy.backoff_per_attempt_s,
            max=policy.max_backoff_s,
        ),
        retry=retry_if_exception(predicate),
        before_sleep=_log_retry,
        sleep=asyncio.sleep,
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await coro_func(*args, **kwargs)
