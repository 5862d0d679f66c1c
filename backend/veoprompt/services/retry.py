"""Retry policy objects shared by the provider clients.

A RetryPolicy bundles the attempt budget, the tenacity wait strategy,
the retryable-error predicate and the sleep function. Clients receive a
policy in their constructor so tests can inject a fake sleep and assert
on recorded delays instead of waiting.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_incrementing,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _always_retry(exc: BaseException) -> bool:
    return True


@dataclass
class RetryPolicy:
    """Retry budget plus backoff for one provider client.

    Attributes:
        max_retries: Extra attempts after the first (total = max_retries + 1).
        wait: tenacity wait strategy.
        retryable: Predicate deciding whether an exception is worth retrying.
        sleep: Async sleep used between attempts.
    """

    max_retries: int = 2
    wait: Any = field(default_factory=lambda: wait_exponential(multiplier=1, exp_base=2))
    retryable: Callable[[BaseException], bool] = _always_retry
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    @classmethod
    def exponential(
        cls,
        max_retries: int = 2,
        base_delay: float = 1.0,
        retryable: Callable[[BaseException], bool] = _always_retry,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> "RetryPolicy":
        """Backoff of base_delay * 2**attempt (1s, 2s, 4s with the default)."""
        return cls(
            max_retries=max_retries,
            wait=wait_exponential(multiplier=base_delay, exp_base=2),
            retryable=retryable,
            sleep=sleep,
        )

    @classmethod
    def linear(
        cls,
        max_retries: int = 2,
        step: float = 1.0,
        retryable: Callable[[BaseException], bool] = _always_retry,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> "RetryPolicy":
        """Backoff of step * attempt (1s, 2s with the default)."""
        return cls(
            max_retries=max_retries,
            wait=wait_incrementing(start=step, increment=step),
            retryable=retryable,
            sleep=sleep,
        )

    def retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=self.wait,
            retry=retry_if_exception(self.retryable),
            sleep=self.sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def call(self, fn: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """Await fn(*args, **kwargs) under this policy.

        Non-retryable errors and the final failure are re-raised unchanged.
        """
        async for attempt in self.retrying():
            with attempt:
                return await fn(*args, **kwargs)
        raise RuntimeError("retry loop exited without a result")  # pragma: no cover
