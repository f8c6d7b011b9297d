"""
Data models for the crypto trading client.

This package contains the data structures used throughout the client,
all of them immutable.
"""

from .config import ClientConfig, RateLimitConfig, RetryPolicy
from .http import (
    EmptyBody,
    NormalizedResponse,
    RawBody,
    RequestBody,
    RequestOptions,
    SignedRequest,
    StructuredBody,
)
from .account import AccountDetails, BuyingPower
from .market import BestBidAsk, EstimatedPrice, Spread
from .trading import (
    CreateOrderRequest,
    CryptoHolding,
    LimitOrderConfig,
    MarketOrderConfig,
    Order,
    OrderCancellation,
    OrderExecution,
    Page,
    PortfolioSummary,
    StopLimitOrderConfig,
    StopLossOrderConfig,
    TradingPair,
)

__all__ = [
    # Configuration
    "ClientConfig",
    "RateLimitConfig",
    "RetryPolicy",
    # HTTP
    "EmptyBody",
    "RawBody",
    "StructuredBody",
    "RequestBody",
    "RequestOptions",
    "SignedRequest",
    "NormalizedResponse",
    # Account
    "AccountDetails",
    "BuyingPower",
    # Market
    "BestBidAsk",
    "EstimatedPrice",
    "Spread",
    # Trading
    "Page",
    "TradingPair",
    "CryptoHolding",
    "MarketOrderConfig",
    "LimitOrderConfig",
    "StopLossOrderConfig",
    "StopLimitOrderConfig",
    "CreateOrderRequest",
    "OrderExecution",
    "Order",
    "OrderCancellation",
    "PortfolioSummary",
]
