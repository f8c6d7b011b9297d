"""
Market data models for the crypto trading client.

Immutable data structures for quotes and price estimates.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class BestBidAsk:
    """Best bid and ask quote for a trading pair."""
    symbol: str
    bid_price: Decimal
    ask_price: Decimal
    mid_price: Decimal
    spread: Decimal
    timestamp: str


@dataclass(frozen=True)
class EstimatedPrice:
    """Estimated execution price for one quantity."""
    symbol: str
    side: str  # "bid", "ask" or "both"
    quantity: Decimal
    estimated_price: Decimal
    timestamp: str
    price_impact: Optional[Decimal] = None
    total_cost: Optional[Decimal] = None


@dataclass(frozen=True)
class Spread:
    """Bid-ask spread, absolute and as a percentage of the mid price."""
    symbol: str
    spread: Decimal
    spread_percent: Decimal
