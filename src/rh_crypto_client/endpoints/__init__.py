"""
API endpoint groups for the crypto trading client.
"""

from .base import BaseEndpoint
from .account import AccountEndpoint
from .market_data import MarketDataEndpoint
from .trading import TradingEndpoint

__all__ = [
    "BaseEndpoint",
    "AccountEndpoint",
    "MarketDataEndpoint",
    "TradingEndpoint",
]
