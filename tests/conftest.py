# -*- coding: utf-8 -*-
"""
Shared fixtures and utilities for testing the crypto trading client.
"""

import base64
import json
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from multidict import CIMultiDict

from rh_crypto_client.http_client import HttpClient
from rh_crypto_client.models.config import ClientConfig, RateLimitConfig, RetryPolicy
from rh_crypto_client.rate_limiter import RateLimiterWithRetry, TokenBucketRateLimiter

TEST_API_KEY = "rh-api-12345678-1234-1234-1234-123456789abc"
TEST_SEED = bytes(range(32))
TEST_SECRET_KEY = base64.b64encode(TEST_SEED).decode("ascii")
TEST_BASE_URL = "https://trading.example.com"


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start_ms: float = 1_000_000.0):
        self.now_ms = start_ms
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, ms: float) -> None:
        self.now_ms += ms

    async def sleep(self, seconds: float) -> None:
        """Stand-in for asyncio.sleep that advances the clock instead of waiting."""
        self.sleeps.append(seconds)
        self.now_ms += seconds * 1000


def make_response(
    status: int = 200,
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    reason: str = "OK",
    content_type: Optional[str] = "application/json",
) -> Mock:
    """Build a mock aiohttp response."""
    if body is None:
        text = ""
    elif isinstance(body, str):
        text = body
    else:
        text = json.dumps(body)

    response_headers = CIMultiDict()
    if content_type:
        response_headers["Content-Type"] = content_type
    for key, value in (headers or {}).items():
        response_headers[key] = value

    response = Mock()
    response.status = status
    response.reason = reason
    response.headers = response_headers
    response.url = f"{TEST_BASE_URL}/mock"
    response.text = AsyncMock(return_value=text)
    return response


def request_context(response: Any = None, error: Optional[BaseException] = None) -> MagicMock:
    """Async context manager returned by session.request()."""
    context = MagicMock()
    if error is not None:
        context.__aenter__ = AsyncMock(side_effect=error)
    else:
        context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)
    return context


def make_session(*outcomes: Any) -> Mock:
    """
    Mock aiohttp ClientSession.

    Each outcome is a response mock, or an exception raised when the
    request context is entered. Outcomes are consumed in order.
    """
    session = Mock()
    contexts = [
        request_context(error=outcome) if isinstance(outcome, BaseException) else request_context(outcome)
        for outcome in outcomes
    ]
    session.request = Mock(side_effect=contexts)
    session.close = AsyncMock()
    session.closed = False
    return session


def make_session_manager(session: Mock) -> Mock:
    """Mock SessionManager handing out the given session."""
    manager = Mock()
    manager.create_session = AsyncMock(return_value=session)
    manager.close_session = AsyncMock()
    return manager


def sent_request(session: Mock, index: int = 0) -> Dict[str, Any]:
    """Keyword arguments of the index-th session.request() call."""
    return session.request.call_args_list[index].kwargs


@pytest.fixture
def api_key() -> str:
    """Valid API key."""
    return TEST_API_KEY


@pytest.fixture
def secret_key() -> str:
    """Base64 text of a 32-byte Ed25519 seed."""
    return TEST_SECRET_KEY


@pytest.fixture
def client_config() -> ClientConfig:
    """Valid client configuration."""
    return ClientConfig(
        api_key=TEST_API_KEY,
        secret_key=TEST_SECRET_KEY,
        base_url=TEST_BASE_URL,
        rate_limit=RateLimitConfig(max_requests=100, window_ms=60000, burst_capacity=300),
        retry=RetryPolicy(max_retries=3, base_delay_ms=1000, max_delay_ms=30000),
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    """Controllable millisecond clock."""
    return FakeClock()


@pytest.fixture
def build_http_client(client_config, fake_clock):
    """Factory for an HttpClient wired to a mock session and the fake clock."""

    def _build(*outcomes: Any, config: Optional[ClientConfig] = None):
        config = config or client_config
        session = make_session(*outcomes)
        bucket = TokenBucketRateLimiter(config.rate_limit, clock=fake_clock)
        limiter = RateLimiterWithRetry(bucket, config.retry, sleep=fake_clock.sleep)
        client = HttpClient(config, rate_limiter=limiter, session_manager=make_session_manager(session))
        return client, session

    return _build
