# -*- coding: utf-8 -*-
"""
Tests for the token bucket and the admission retry wrapper.
"""

import math
from unittest.mock import AsyncMock

import pytest

from rh_crypto_client.errors import ApiError, RateLimitError
from rh_crypto_client.models.config import RateLimitConfig, RetryPolicy
from rh_crypto_client.rate_limiter import (
    RateLimiterWithRetry,
    TokenBucketRateLimiter,
    create_rate_limiter,
    create_rate_limiter_with_retry,
)


class TestTokenBucketRateLimiter:
    """Test TokenBucketRateLimiter."""

    def test_capacity_prefers_burst(self, fake_clock):
        """Test that burst_capacity sets the bucket size."""
        bucket = TokenBucketRateLimiter(RateLimitConfig(100, 60000, 300), clock=fake_clock)
        assert bucket.max_tokens == 300
        assert bucket.get_token_count() == 300

    def test_capacity_falls_back_to_max_requests(self, fake_clock):
        """Test capacity without burst_capacity."""
        bucket = TokenBucketRateLimiter(RateLimitConfig(50, 60000, None), clock=fake_clock)
        assert bucket.max_tokens == 50

    def test_capacity_fallback_default(self, fake_clock):
        """Test capacity with neither value set."""
        bucket = TokenBucketRateLimiter(RateLimitConfig(None, None, None), clock=fake_clock)
        assert bucket.max_tokens == 100

    def test_refill_rate_uses_max_requests(self, fake_clock):
        """Test that the refill rate is max_requests per window, regardless of burst."""
        bucket = TokenBucketRateLimiter(RateLimitConfig(100, 60000, 300), clock=fake_clock)
        assert bucket.refill_rate == pytest.approx(100 / 60000)

    def test_drain_then_reject(self, fake_clock):
        """Test that capacity C admits exactly C calls in the same instant."""
        bucket = TokenBucketRateLimiter(RateLimitConfig(10, 1000, None), clock=fake_clock)

        for _ in range(10):
            bucket.consume()

        with pytest.raises(RateLimitError) as exc_info:
            bucket.consume()
        assert exc_info.value.retry_after_ms == 100

    def test_retry_after_matches_deficit(self, fake_clock):
        """Test retry_after_ms = ceil((n - tokens) / rate)."""
        bucket = TokenBucketRateLimiter(RateLimitConfig(3, 1000, None), clock=fake_clock)
        bucket.consume(3)

        with pytest.raises(RateLimitError) as exc_info:
            bucket.consume(2)
        assert exc_info.value.retry_after_ms == math.ceil(2 / (3 / 1000))

    def test_lazy_refill(self, fake_clock):
        """Test tokens come back in proportion to elapsed time."""
        bucket = TokenBucketRateLimiter(RateLimitConfig(10, 1000, None), clock=fake_clock)
        bucket.consume(10)

        fake_clock.advance(250)
        assert bucket.get_token_count() == pytest.approx(2.5)

    def test_refill_never_exceeds_capacity(self, fake_clock):
        """Test that tokens stay within [0, capacity]."""
        bucket = TokenBucketRateLimiter(RateLimitConfig(10, 1000, None), clock=fake_clock)
        bucket.consume(1)

        fake_clock.advance(10 ** 9)
        assert bucket.get_token_count() == 10

    def test_clock_going_backwards_is_ignored(self, fake_clock):
        """Test that a backwards clock does not remove tokens."""
        bucket = TokenBucketRateLimiter(RateLimitConfig(10, 1000, None), clock=fake_clock)
        bucket.consume(5)

        fake_clock.advance(-500)
        assert bucket.get_token_count() == 5

    def test_zero_window_refills_instantly(self, fake_clock):
        """Test that window_ms=0 behaves as an infinite refill rate."""
        bucket = TokenBucketRateLimiter(RateLimitConfig(2, 0, None), clock=fake_clock)
        for _ in range(20):
            bucket.consume()
        assert bucket.get_time_until_token() == 0

    def test_zero_window_admits_above_capacity(self, fake_clock):
        """Test that window_ms=0 admits requests larger than the capacity."""
        bucket = TokenBucketRateLimiter(RateLimitConfig(2, 0, None), clock=fake_clock)
        assert bucket.can_consume(5)
        bucket.consume(5)
        assert bucket.get_token_count() == 2

    def test_can_consume_does_not_consume(self, fake_clock):
        """Test that can_consume leaves the bucket unchanged."""
        bucket = TokenBucketRateLimiter(RateLimitConfig(1, 1000, None), clock=fake_clock)
        assert bucket.can_consume()
        assert bucket.can_consume()
        assert bucket.get_token_count() == 1
        assert not bucket.can_consume(2)

    def test_time_until_token(self, fake_clock):
        """Test the wait until one token is available."""
        bucket = TokenBucketRateLimiter(RateLimitConfig(10, 1000, None), clock=fake_clock)
        assert bucket.get_time_until_token() == 0

        bucket.consume(10)
        assert bucket.get_time_until_token() == 100

    def test_reset(self, fake_clock):
        """Test that reset refills to capacity."""
        bucket = TokenBucketRateLimiter(RateLimitConfig(10, 1000, None), clock=fake_clock)
        bucket.consume(10)
        bucket.reset()
        assert bucket.get_token_count() == 10

    def test_status_snapshot(self, fake_clock):
        """Test status fields."""
        bucket = TokenBucketRateLimiter(RateLimitConfig(10, 1000, None), clock=fake_clock)
        bucket.consume(4)

        status = bucket.get_status()
        assert status.tokens == 6
        assert status.max_tokens == 10
        assert status.refill_rate == pytest.approx(0.01)
        assert status.last_refill == fake_clock.now_ms
        assert status.time_until_token_ms == 0

    def test_factory(self):
        """Test create_rate_limiter uses the given config."""
        bucket = create_rate_limiter(RateLimitConfig(5, 1000, None))
        assert bucket.max_tokens == 5


class TestRateLimiterWithRetry:
    """Test RateLimiterWithRetry."""

    def _limiter(self, fake_clock, capacity=1, window_ms=1000, policy=None):
        bucket = TokenBucketRateLimiter(RateLimitConfig(capacity, window_ms, None), clock=fake_clock)
        return RateLimiterWithRetry(bucket, policy or RetryPolicy(3, 1000, 30000), sleep=fake_clock.sleep)

    @pytest.mark.asyncio
    async def test_admitted_call_runs_once(self, fake_clock):
        """Test that an admitted operation runs once and returns its value."""
        limiter = self._limiter(fake_clock)
        operation = AsyncMock(return_value="ok")

        assert await limiter.execute(operation) == "ok"
        operation.assert_awaited_once()
        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_waits_for_refill(self, fake_clock):
        """Test that a throttled call sleeps retry_after_ms and then succeeds."""
        limiter = self._limiter(fake_clock, capacity=1, window_ms=1000)
        operation = AsyncMock(return_value="ok")

        await limiter.execute(operation)
        assert await limiter.execute(operation) == "ok"
        assert fake_clock.sleeps == [1.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, fake_clock):
        """Test that operation never runs when admission keeps failing."""
        bucket = TokenBucketRateLimiter(RateLimitConfig(1, 1000, None), clock=fake_clock)
        limiter = RateLimiterWithRetry(bucket, RetryPolicy(2, 10, 30000), sleep=AsyncMock())
        operation = AsyncMock(return_value="ok")

        bucket.consume()
        with pytest.raises(RateLimitError):
            await limiter.execute(operation)
        operation.assert_not_awaited()
        assert limiter._sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_exponential_backoff_without_retry_after(self, fake_clock):
        """Test base * 2**attempt delays capped at max_delay_ms."""
        limiter = self._limiter(fake_clock, capacity=100, policy=RetryPolicy(4, 1000, 3000))
        operation = AsyncMock(side_effect=RateLimitError("throttled"))

        with pytest.raises(RateLimitError):
            await limiter.execute(operation)

        assert operation.await_count == 5
        assert fake_clock.sleeps == [1.0, 2.0, 3.0, 3.0]

    @pytest.mark.asyncio
    async def test_server_throttle_uses_retry_after(self, fake_clock):
        """Test that a 429-style error from the operation is retried after its delay."""
        limiter = self._limiter(fake_clock, capacity=100)
        operation = AsyncMock(side_effect=[RateLimitError("429", retry_after_ms=5000), "ok"])

        assert await limiter.execute(operation) == "ok"
        assert fake_clock.sleeps == [5.0]

    @pytest.mark.asyncio
    async def test_retry_after_capped(self, fake_clock):
        """Test that retry_after_ms is capped at max_delay_ms."""
        limiter = self._limiter(fake_clock, capacity=100, policy=RetryPolicy(1, 1000, 2000))
        operation = AsyncMock(side_effect=[RateLimitError("429", retry_after_ms=60000), "ok"])

        await limiter.execute(operation)
        assert fake_clock.sleeps == [2.0]

    @pytest.mark.asyncio
    async def test_other_errors_not_retried(self, fake_clock):
        """Test that a non-throttling error propagates on first occurrence."""
        limiter = self._limiter(fake_clock, capacity=100)
        operation = AsyncMock(side_effect=ApiError("boom", status_code=500))

        with pytest.raises(ApiError):
            await limiter.execute(operation)
        operation.assert_awaited_once()
        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_zero_retries(self, fake_clock):
        """Test that max_retries=0 fails on the first denial without sleeping."""
        limiter = self._limiter(fake_clock, capacity=1, policy=RetryPolicy(0, 1000, 30000))
        operation = AsyncMock(return_value="ok")

        await limiter.execute(operation)
        with pytest.raises(RateLimitError):
            await limiter.execute(operation)
        assert fake_clock.sleeps == []

    def test_status_and_reset_delegate(self, fake_clock):
        """Test delegation to the bucket."""
        limiter = self._limiter(fake_clock, capacity=3)
        limiter.bucket.consume(3)
        assert limiter.get_status().tokens == 0

        limiter.reset()
        assert limiter.get_status().tokens == 3

    def test_factory(self):
        """Test create_rate_limiter_with_retry wiring."""
        limiter = create_rate_limiter_with_retry(RateLimitConfig(5, 1000, None), RetryPolicy(1, 10, 20))
        assert limiter.bucket.max_tokens == 5
        assert limiter.policy.max_retries == 1
