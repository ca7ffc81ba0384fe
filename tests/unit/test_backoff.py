# tests/unit/test_backoff.py
"""Unit tests for BackoffPolicy delays, pacing, and tenacity wiring."""

from unittest.mock import AsyncMock

import pytest

from windspire_console.errors import RateLimitError, ServiceError
from windspire_console.service.retry import BackoffPolicy, is_retryable


class TestIsRetryable:
    def test_rate_limit_is_retryable(self):
        assert is_retryable(RateLimitError())

    def test_plain_429_service_error_is_retryable(self):
        assert is_retryable(ServiceError(429, "slow down"))

    @pytest.mark.parametrize("status", [0, 400, 404, 500, 503])
    def test_other_statuses_are_not(self, status):
        assert not is_retryable(ServiceError(status, "nope"))

    def test_unrelated_exception_is_not(self):
        assert not is_retryable(ValueError("bad"))


class TestDelays:
    def test_delay_doubles_per_attempt(self):
        policy = BackoffPolicy(base_delay=1.0)
        assert [policy.delay_for(n) for n in (1, 2, 3)] == [2.0, 4.0, 8.0]

    def test_delay_is_monotonic_and_deterministic(self):
        policy = BackoffPolicy(base_delay=0.25)
        delays = [policy.delay_for(n) for n in range(1, 6)]
        assert delays == sorted(delays)
        assert delays == [policy.delay_for(n) for n in range(1, 6)]

    def test_delay_rejects_attempt_zero(self):
        with pytest.raises(ValueError):
            BackoffPolicy().delay_for(0)

    def test_retry_after_stretches_wait(self):
        policy = BackoffPolicy(base_delay=1.0)
        assert policy.wait_for(1, RateLimitError(retry_after=10)) == 10
        # Hint shorter than backoff is ignored
        assert policy.wait_for(2, RateLimitError(retry_after=1)) == 4.0

    def test_pacing_has_floor(self):
        policy = BackoffPolicy()
        assert policy.pacing_for(1) == 2.0
        assert policy.pacing_for(4) == 2.0
        assert policy.pacing_for(10) == 5.0


class TestShouldRetry:
    def test_retries_rate_limit_until_max_attempts(self):
        policy = BackoffPolicy(max_attempts=3)
        assert policy.should_retry(1, RateLimitError())
        assert policy.should_retry(2, RateLimitError())
        assert not policy.should_retry(3, RateLimitError())

    def test_never_retries_server_errors(self):
        assert not BackoffPolicy().should_retry(1, ServiceError(500, "boom"))


class TestRetrying:
    @pytest.mark.asyncio
    async def test_succeeds_after_rate_limits(self):
        sleep = AsyncMock()
        call = AsyncMock(side_effect=[RateLimitError(), RateLimitError(), "ok"])
        policy = BackoffPolicy(base_delay=1.0, max_attempts=3)

        async for attempt in policy.retrying(sleep=sleep):
            with attempt:
                result = await call()

        assert result == "ok"
        assert call.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_reraises_after_exhausting_attempts(self):
        sleep = AsyncMock()
        call = AsyncMock(side_effect=RateLimitError("throttled"))
        policy = BackoffPolicy(max_attempts=3)

        with pytest.raises(RateLimitError, match="throttled"):
            async for attempt in policy.retrying(sleep=sleep):
                with attempt:
                    await call()

        assert call.await_count == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_non_retryable_error_is_raised_immediately(self):
        sleep = AsyncMock()
        call = AsyncMock(side_effect=ServiceError(500, "server down"))

        with pytest.raises(ServiceError):
            async for attempt in BackoffPolicy().retrying(sleep=sleep):
                with attempt:
                    await call()

        assert call.await_count == 1
        sleep.assert_not_awaited()
