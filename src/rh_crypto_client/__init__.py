"""
RH Crypto Client - async Python client for the Robinhood Crypto trading API.

This package provides a typed client with Ed25519 request signing,
token bucket rate limiting and a typed error hierarchy.
"""

from .client import CryptoClient, EndpointStatus, create_crypto_client
from .http_client import HttpClient
from .rate_limiter import (
    RateLimiterStatus,
    RateLimiterWithRetry,
    TokenBucketRateLimiter,
    create_rate_limiter,
    create_rate_limiter_with_retry,
)
from .auth import ApiCredentials, RequestSigner
from .errors import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    CryptoClientError,
    ErrorKind,
    NetworkError,
    RateLimitError,
    SignatureError,
    ValidationError,
)
from .models import (
    # Configuration
    ClientConfig,
    RateLimitConfig,
    RetryPolicy,
    # HTTP
    NormalizedResponse,
    # Account
    AccountDetails,
    BuyingPower,
    # Market
    BestBidAsk,
    EstimatedPrice,
    Spread,
    # Trading
    CreateOrderRequest,
    CryptoHolding,
    LimitOrderConfig,
    MarketOrderConfig,
    Order,
    OrderCancellation,
    Page,
    PortfolioSummary,
    StopLimitOrderConfig,
    StopLossOrderConfig,
    TradingPair,
)
from .models.config import create_config, load_config_from_env

__all__ = [
    # Main Client
    "CryptoClient",
    "EndpointStatus",
    "create_crypto_client",
    "HttpClient",
    # Rate limiting
    "TokenBucketRateLimiter",
    "RateLimiterWithRetry",
    "RateLimiterStatus",
    "create_rate_limiter",
    "create_rate_limiter_with_retry",
    # Auth
    "ApiCredentials",
    "RequestSigner",
    # Errors
    "ErrorKind",
    "CryptoClientError",
    "AuthenticationError",
    "RateLimitError",
    "ValidationError",
    "NetworkError",
    "ApiError",
    "ConfigurationError",
    "SignatureError",
    # Configuration
    "ClientConfig",
    "RateLimitConfig",
    "RetryPolicy",
    "create_config",
    "load_config_from_env",
    # Models
    "NormalizedResponse",
    "AccountDetails",
    "BuyingPower",
    "BestBidAsk",
    "EstimatedPrice",
    "Spread",
    "Page",
    "TradingPair",
    "CryptoHolding",
    "MarketOrderConfig",
    "LimitOrderConfig",
    "StopLossOrderConfig",
    "StopLimitOrderConfig",
    "CreateOrderRequest",
    "Order",
    "OrderCancellation",
    "PortfolioSummary",
]

__version__ = "0.1.0"
