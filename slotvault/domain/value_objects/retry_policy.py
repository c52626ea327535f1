"""
Retry Policy Value Object - Bounded retries with backoff for one async operation.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")

BackoffFn = Callable[[int], float]
SleepFn = Callable[[float], Awaitable[None]]


def exponential_backoff(base: float) -> BackoffFn:
    """
    Build a backoff function doubling `base` per attempt.

    Attempt 0 waits `base`, attempt 1 waits `2 * base`, and so on.
    """
    def backoff(attempt: int) -> float:
        return base * (2 ** attempt)
    return backoff


class RetryExhausted(Exception):
    """Raised when every attempt failed or produced a rejected result."""

    def __init__(self, attempts: int, last_result: object = None,
                 last_error: Optional[BaseException] = None) -> None:
        self.attempts = attempts
        self.last_result = last_result
        self.last_error = last_error
        super().__init__(f"Gave up after {attempts} attempts")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Immutable retry policy wrapping a single async operation.

    Attributes:
        max_attempts: Total attempts including the first one
        backoff: Delay in seconds before retrying after attempt N (0-based)
        sleep: Awaitable sleep, replaceable in tests
    """

    max_attempts: int = 4
    backoff: BackoffFn = field(default=exponential_backoff(0.6))
    sleep: SleepFn = field(default=asyncio.sleep, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delays(self) -> list[float]:
        """Delays applied between attempts."""
        return [self.backoff(attempt) for attempt in range(self.max_attempts - 1)]

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        should_retry: Optional[Callable[[T], bool]] = None,
    ) -> T:
        """
        Run `operation` until it succeeds with an accepted result.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt.
            should_retry: Predicate marking a returned result as not good enough.

        Returns:
            The first accepted result.

        Raises:
            RetryExhausted: If no attempt produced an accepted result.
        """
        last_result: object = None
        last_error: Optional[BaseException] = None

        for attempt in range(self.max_attempts):
            try:
                result = await operation()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                last_error = e
                logger.debug(f"Attempt {attempt + 1}/{self.max_attempts} failed: {e}")
            else:
                if should_retry is None or not should_retry(result):
                    return result
                last_result = result
                last_error = None
                logger.debug(f"Attempt {attempt + 1}/{self.max_attempts} rejected")

            if attempt < self.max_attempts - 1:
                await self.sleep(self.backoff(attempt))

        raise RetryExhausted(self.max_attempts, last_result, last_error)
