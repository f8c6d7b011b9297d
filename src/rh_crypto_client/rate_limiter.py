"""
Token bucket rate limiting with bounded admission retry.

The bucket refills lazily on every public call, so there are no background
timers and the clock can be swapped out in tests. State changes happen in
plain synchronous code with no await in between, which keeps a bucket safe
to share between tasks on one event loop.
"""

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from .constants import DEFAULT_WINDOW_MS, FALLBACK_BUCKET_CAPACITY
from .errors import RateLimitError
from .models.config import RateLimitConfig, RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.monotonic() * 1000


@dataclass(frozen=True)
class RateLimiterStatus:
    """Snapshot of the bucket state."""
    tokens: float
    max_tokens: float
    refill_rate: float
    last_refill: float
    time_until_token_ms: int


class TokenBucketRateLimiter:
    """Token bucket admission control."""

    def __init__(self, config: Optional[RateLimitConfig] = None, clock: Clock = monotonic_ms):
        """
        Initialize the bucket full.

        Args:
            config: Bucket sizing; capacity is burst_capacity, else
                max_requests, else 100
            clock: Millisecond clock, injectable for tests
        """
        config = config or RateLimitConfig()
        max_requests = config.max_requests if config.max_requests is not None else FALLBACK_BUCKET_CAPACITY

        if config.burst_capacity is not None:
            self._max_tokens = float(config.burst_capacity)
        else:
            self._max_tokens = float(max_requests)

        self._window_ms = config.window_ms if config.window_ms is not None else DEFAULT_WINDOW_MS
        # A zero window means tokens come back instantly.
        self._refill_rate = max_requests / self._window_ms if self._window_ms > 0 else math.inf

        self._clock = clock
        self._tokens = self._max_tokens
        self._last_refill = self._clock()

    @property
    def max_tokens(self) -> float:
        return self._max_tokens

    @property
    def refill_rate(self) -> float:
        """Tokens added per millisecond."""
        return self._refill_rate

    def consume(self, tokens: int = 1) -> None:
        """
        Take tokens from the bucket.

        Does not wait; the caller decides what to do with the delay.
        A zero window admits every request regardless of size.

        Raises:
            RateLimitError: If not enough tokens are available, with
                retry_after_ms set to the time until they will be
        """
        self._refill()

        if math.isinf(self._refill_rate):
            return

        if self._tokens >= tokens:
            self._tokens -= tokens
            return

        deficit = tokens - self._tokens
        wait_ms = math.ceil(deficit / self._refill_rate)
        raise RateLimitError(
            f"Rate limit exceeded. {self._tokens:.2f} tokens available, {tokens} required.",
            retry_after_ms=wait_ms,
        )

    def can_consume(self, tokens: int = 1) -> bool:
        """Check if tokens are available without consuming them."""
        self._refill()
        return math.isinf(self._refill_rate) or self._tokens >= tokens

    def get_token_count(self) -> float:
        """Get current token count."""
        self._refill()
        return self._tokens

    def get_time_until_token(self) -> int:
        """Milliseconds until at least one token is available."""
        self._refill()
        if self._tokens >= 1:
            return 0
        return math.ceil((1 - self._tokens) / self._refill_rate)

    def reset(self) -> None:
        """Refill the bucket to capacity."""
        self._tokens = self._max_tokens
        self._last_refill = self._clock()

    def get_status(self) -> RateLimiterStatus:
        """Get current bucket status."""
        time_until_token = self.get_time_until_token()
        return RateLimiterStatus(
            tokens=self._tokens,
            max_tokens=self._max_tokens,
            refill_rate=self._refill_rate,
            last_refill=self._last_refill,
            time_until_token_ms=time_until_token,
        )

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._last_refill

        if math.isinf(self._refill_rate):
            self._tokens = self._max_tokens
            self._last_refill = now
        elif elapsed > 0:
            self._tokens = min(self._max_tokens, self._tokens + elapsed * self._refill_rate)
            self._last_refill = now


class RateLimiterWithRetry:
    """
    Retries admission through a token bucket with exponential backoff.

    Only throttling is retried. Once admitted, the operation runs once and
    any other error it raises goes straight back to the caller, so
    non-idempotent calls such as order placement are never repeated here.
    """

    def __init__(
        self,
        bucket: TokenBucketRateLimiter,
        policy: Optional[RetryPolicy] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._bucket = bucket
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    @property
    def bucket(self) -> TokenBucketRateLimiter:
        return self._bucket

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def execute(self, operation: Callable[[], Awaitable[T]], tokens: int = 1) -> T:
        """
        Run operation once admitted by the bucket.

        Args:
            operation: Zero-argument coroutine function
            tokens: Tokens one call costs

        Returns:
            The operation's result

        Raises:
            RateLimitError: The last throttling error once retries are exhausted
        """
        last_error: Optional[RateLimitError] = None

        for attempt in range(self._policy.max_retries + 1):
            try:
                self._bucket.consume(tokens)
                return await operation()
            except RateLimitError as e:
                last_error = e
                if attempt >= self._policy.max_retries:
                    break

                delay_ms = self._backoff_delay_ms(e, attempt)
                logger.warning(
                    f"Rate limited (attempt {attempt + 1}/{self._policy.max_retries + 1}), "
                    f"retrying in {delay_ms}ms"
                )
                await self._sleep(delay_ms / 1000)

        raise last_error or RateLimitError("Rate limit retry failed")

    def get_status(self) -> RateLimiterStatus:
        return self._bucket.get_status()

    def reset(self) -> None:
        self._bucket.reset()

    def _backoff_delay_ms(self, error: RateLimitError, attempt: int) -> int:
        if error.retry_after_ms is not None:
            delay = error.retry_after_ms
        else:
            delay = self._policy.base_delay_ms * (2 ** attempt)
        return min(delay, self._policy.max_delay_ms)


def create_rate_limiter(config: Optional[RateLimitConfig] = None) -> TokenBucketRateLimiter:
    """Create a rate limiter from configuration."""
    return TokenBucketRateLimiter(config)


def create_rate_limiter_with_retry(
    config: Optional[RateLimitConfig] = None,
    policy: Optional[RetryPolicy] = None,
) -> RateLimiterWithRetry:
    """Create a rate limiter with retry capability."""
    return RateLimiterWithRetry(TokenBucketRateLimiter(config), policy)
