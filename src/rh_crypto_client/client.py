"""
Crypto Client - Main orchestration module.

CryptoClient owns one HttpClient, and with it one rate limiter bucket,
shared by the account, market data and trading endpoint groups.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .constants import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_MS
from .crypto_helpers import sanitize_error_message
from .endpoints import AccountEndpoint, MarketDataEndpoint, TradingEndpoint
from .errors import ConfigurationError, CryptoClientError, SignatureError
from .http_client import HttpClient
from .models.config import ClientConfig, RateLimitConfig, RetryPolicy, create_config
from .rate_limiter import RateLimiterStatus

logger = logging.getLogger(__name__)

_PROBE_SYMBOL = "BTC-USD"


@dataclass(frozen=True)
class EndpointStatus:
    """Reachability of each endpoint group, with per-endpoint latency in ms."""
    account: bool
    market_data: bool
    trading: bool
    latency_ms: Dict[str, float] = field(default_factory=dict)
    timestamp: str = ""


class CryptoClient:
    """
    Main crypto trading client.

    Endpoint groups are exposed as ``account``, ``market_data`` and
    ``trading``.
    """

    def __init__(self, config: ClientConfig):
        """
        Initialize client with configuration.

        Raises:
            ConfigurationError: If the secret key cannot be imported
        """
        self._config = config
        try:
            self._http_client = HttpClient(config)
        except SignatureError as e:
            message = sanitize_error_message(str(e), [config.api_key, config.secret_key])
            raise ConfigurationError(f"Failed to initialize CryptoClient: {message}") from e

        self.account = AccountEndpoint(self._http_client)
        self.market_data = MarketDataEndpoint(self._http_client)
        self.trading = TradingEndpoint(self._http_client)
        self._closed = False

        logger.info(f"Crypto client initialized for {config.base_url}")
        if config.debug:
            logger.debug(f"Client configuration: {config.sanitized()}")

    @classmethod
    def from_env(cls, **overrides: Any) -> "CryptoClient":
        """Create client from environment variables, with keyword overrides."""
        return cls(create_config(**overrides))

    @property
    def base_url(self) -> str:
        return self._config.base_url

    async def test_client_connections(self) -> EndpointStatus:
        """
        Probe each endpoint group with one cheap read.

        Failures are logged at DEBUG and reported as False; this never raises
        a client error.
        """
        results: Dict[str, bool] = {}
        latency: Dict[str, float] = {}

        probes = {
            "account": self.account.get_account_details,
            "market_data": lambda: self.market_data.get_best_bid_ask([_PROBE_SYMBOL]),
            "trading": lambda: self.trading.get_trading_pairs([_PROBE_SYMBOL]),
        }

        for name, probe in probes.items():
            start = time.monotonic()
            try:
                await probe()
            except CryptoClientError as e:
                logger.debug(f"{name} endpoint test failed: {e}")
                results[name] = False
                continue
            results[name] = True
            latency[name] = (time.monotonic() - start) * 1000

        status = EndpointStatus(
            account=results["account"],
            market_data=results["market_data"],
            trading=results["trading"],
            latency_ms=latency,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        logger.debug(f"Connection test completed: {status}")
        return status

    def get_rate_limiter_status(self) -> RateLimiterStatus:
        return self._http_client.get_rate_limiter_status()

    def reset_rate_limiter(self) -> None:
        self._http_client.reset_rate_limiter()

    def get_configuration(self) -> Dict[str, Any]:
        """Configuration with credentials masked."""
        return self._config.sanitized()

    def is_debug_enabled(self) -> bool:
        return self._config.debug

    async def close(self) -> None:
        """Close client and cleanup resources."""
        if not self._closed:
            await self._http_client.close()
            self._closed = True
            logger.info("Crypto client closed")

    # Context manager support
    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    def __del__(self):
        """Warn about clients that were never closed."""
        if hasattr(self, "_closed") and not self._closed:
            logger.warning("CryptoClient not properly closed - call close() explicitly")


def create_crypto_client(
    api_key: str,
    secret_key: str,
    base_url: str = DEFAULT_BASE_URL,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    rate_limit: Optional[RateLimitConfig] = None,
    retry: Optional[RetryPolicy] = None,
    debug: bool = False,
) -> CryptoClient:
    """
    Factory function to create a client with explicit credentials.

    Args:
        api_key: API key id
        secret_key: Base64-encoded 32-byte Ed25519 seed
        base_url: Base URL for API endpoints
        timeout_ms: Request timeout in milliseconds
        rate_limit: Token bucket sizing
        retry: Admission retry policy
        debug: Enable request tracing at DEBUG level

    Returns:
        Configured CryptoClient instance

    Raises:
        ConfigurationError: With every violation if the configuration is invalid
    """
    config = ClientConfig(
        api_key=api_key,
        secret_key=secret_key,
        base_url=base_url,
        timeout_ms=timeout_ms,
        rate_limit=rate_limit or RateLimitConfig(),
        retry=retry or RetryPolicy(),
        debug=debug,
    )
    return CryptoClient(config)
