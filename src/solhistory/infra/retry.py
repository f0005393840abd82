"""Per-call retry on rate-limit signals, with exponential backoff."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from solhistory.exceptions import RateLimitedError, RetriesExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry settings applied independently to every signature listing and transaction fetch.

    Waits ``base_delay * 2**n`` seconds after the n-th rate-limited attempt (n from 0).
    Any other failure propagates on first occurrence.
    """

    enabled: bool = True
    max_attempts: int = 4
    base_delay: float = 0.5
    sleep: Sleep = field(default=asyncio.sleep, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")


NO_RETRY = RetryPolicy(enabled=False)


async def with_retry(operation: Callable[[], Awaitable[T]], policy: RetryPolicy = RetryPolicy()) -> T:
    """Run ``operation``, retrying only on RateLimitedError.

    Raises RetriesExhaustedError once every attempt was rate limited.
    """
    if not policy.enabled:
        return await operation()

    retrying = AsyncRetrying(
        retry=retry_if_exception_type(RateLimitedError),
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(multiplier=policy.base_delay, exp_base=2),
        sleep=policy.sleep,
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
    try:
        async for attempt in retrying:
            with attempt:
                result = await operation()
    except RetryError as e:
        raise RetriesExhaustedError(
            f"Rate limited on all {policy.max_attempts} attempts", attempts=policy.max_attempts
        ) from e
    return result
