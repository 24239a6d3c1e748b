"""Bounded retry for outbound platform calls."""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

from social_bot.logging_config import get_logger

logger = get_logger("retry")

T = TypeVar("T")


def linear_backoff(step_seconds: float) -> Callable[[int], float]:
    """Attempt i (1-based) waits step_seconds * i."""

    def _backoff(attempt: int) -> float:
        return step_seconds * attempt

    return _backoff


def _always(_exc: Exception) -> bool:
    return True


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff: Callable[[int], float] = field(default=linear_backoff(0.8))
    retryable: Callable[[Exception], bool] = field(default=_always)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        sleep_func: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> T:
        """
        Call `operation` until it succeeds or the policy gives up.

        A retryable failure on attempt i sleeps backoff(i) before the next try,
        including after the last attempt. A non-retryable failure is raised at
        once. When attempts run out the last error is raised.
        """
        last_error: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except Exception as exc:
                if not self.retryable(exc):
                    raise
                last_error = exc
                delay = self.backoff(attempt)
                logger.warning(
                    "Transient failure, backing off",
                    extra={"context": {"attempt": attempt, "delay_seconds": delay, "error": str(exc)}},
                )
                await sleep_func(delay)

        assert last_error is not None
        raise last_error
