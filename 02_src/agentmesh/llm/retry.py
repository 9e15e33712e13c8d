"""Bounded retry loop for LLM and transport calls."""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from ..errors import is_retryable, retry_delay_ms
from ..logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[None]]


@dataclass
class RetryOutcome:
    """How many attempts a retried call took."""

    attempts: int = 0


async def retry_operation(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    outcome: RetryOutcome | None = None,
    sleep: Sleeper = asyncio.sleep,
) -> T:
    """
    Run ``operation`` until it succeeds or retries are exhausted.

    Retryable errors (timeout, rate limit, transport) are attempted again up to
    ``max_retries`` times, sleeping the per-error delay in between; any other
    error is raised on its first occurrence. The last error is raised once
    retries run out.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt.
        max_retries: Extra attempts after the first; at most max_retries + 1 calls.
        outcome: Optional holder updated with the number of attempts made.
        sleep: Awaitable sleep, replaceable in tests.
    """
    if outcome is None:
        outcome = RetryOutcome()

    attempt = 0
    while True:
        attempt += 1
        outcome.attempts = attempt
        try:
            return await operation()
        except Exception as error:
            if attempt > max_retries or not is_retryable(error):
                raise
            delay_ms = retry_delay_ms(error)
            logger.warning(
                "Attempt %s failed: %s. Retrying in %sms", attempt, error, delay_ms
            )
            await sleep(delay_ms / 1000)
