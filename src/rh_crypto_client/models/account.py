"""
Account-related models for the crypto trading client.

Immutable data structures for account information.
"""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class AccountDetails:
    """Account details data structure."""
    account_number: str
    status: str  # "active", "deactivated", "sell_only"
    buying_power: Decimal
    buying_power_currency: str


@dataclass(frozen=True)
class BuyingPower:
    """Available buying power and its currency."""
    amount: Decimal
    currency: str
