# windspire_console/service/retry.py
"""Backoff and pacing policy for calls to the rate-limited generation service."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
)

from windspire_console.errors import ServiceError

logger = logging.getLogger(__name__)


def is_retryable(exception: BaseException) -> bool:
    """
    Returns True if the exception should be retried.

    Only an explicit "too many requests" (HTTP 429) qualifies. Validation
    errors, not-found, 5xx and transport failures surface immediately.
    """
    return isinstance(exception, ServiceError) and exception.status_code == 429


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Reactive backoff plus proactive pacing.

    Attributes:
        base_delay: Seconds; retry n waits base_delay * 2**n
        max_attempts: Total calls per item including the first one
        pacing_floor: Minimum seconds between successive item calls
        pacing_per_item: Pacing scaled by the requested item count
    """

    base_delay: float = 1.0
    max_attempts: int = 3
    pacing_floor: float = 2.0
    pacing_per_item: float = 0.5

    def should_retry(self, attempt: int, error: BaseException) -> bool:
        """Whether call number `attempt` (1-based) may be followed by another."""
        return attempt < self.max_attempts and is_retryable(error)

    def delay_for(self, attempt: int) -> float:
        """Backoff before retry number `attempt` (1 = first retry)."""
        if attempt < 1:
            raise ValueError(f"attempt must be >= 1, got {attempt}")
        return self.base_delay * 2**attempt

    def wait_for(self, attempt: int, error: BaseException | None = None) -> float:
        """delay_for(attempt), stretched to the server's Retry-After hint if longer."""
        delay = self.delay_for(attempt)
        retry_after = getattr(error, "retry_after", None)
        if retry_after:
            return max(delay, float(retry_after))
        return delay

    def pacing_for(self, count: int) -> float:
        """Fixed gap between item calls in a category of `count` requested items."""
        return max(self.pacing_floor, self.pacing_per_item * count)

    def retrying(
        self, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ) -> AsyncRetrying:
        """
        Build a tenacity controller applying this policy.

        The final error is re-raised as-is once attempts run out.
        """
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._tenacity_wait,
            retry=retry_if_exception(is_retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=sleep,
            reraise=True,
        )

    def _tenacity_wait(self, retry_state: RetryCallState) -> float:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        return self.wait_for(retry_state.attempt_number, error)
