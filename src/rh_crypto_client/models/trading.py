"""
Trading models for the crypto trading client.

Immutable data structures for trading pairs, holdings and orders.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a cursor-paginated listing."""
    results: List[T]
    next: Optional[str] = None
    previous: Optional[str] = None


@dataclass(frozen=True)
class TradingPair:
    """Trading pair data structure."""
    symbol: str
    base_asset: str
    quote_asset: str
    min_order_size: Decimal
    max_order_size: Decimal
    price_increment: Decimal
    quantity_increment: Decimal
    trading_enabled: bool
    status: str


@dataclass(frozen=True)
class CryptoHolding:
    """Holding of a single asset."""
    asset_code: str
    quantity: Decimal
    available_quantity: Decimal
    locked_quantity: Decimal
    average_cost: Decimal
    cost_currency: str
    updated_at: str
    market_value: Optional[Decimal] = None


def _amounts_to_dict(**amounts: Any) -> Dict[str, str]:
    return {key: str(value) for key, value in amounts.items() if value is not None}


@dataclass(frozen=True)
class MarketOrderConfig:
    """Market order sizing: asset quantity or quote amount."""
    asset_quantity: Optional[Decimal] = None
    quote_amount: Optional[Decimal] = None

    def to_dict(self) -> Dict[str, str]:
        return _amounts_to_dict(asset_quantity=self.asset_quantity, quote_amount=self.quote_amount)


@dataclass(frozen=True)
class LimitOrderConfig:
    """Limit order parameters."""
    limit_price: Decimal
    asset_quantity: Optional[Decimal] = None
    quote_amount: Optional[Decimal] = None
    time_in_force: str = "gtc"

    def to_dict(self) -> Dict[str, str]:
        payload = _amounts_to_dict(
            asset_quantity=self.asset_quantity,
            quote_amount=self.quote_amount,
            limit_price=self.limit_price,
        )
        payload["time_in_force"] = self.time_in_force
        return payload


@dataclass(frozen=True)
class StopLossOrderConfig:
    """Stop loss order parameters."""
    stop_price: Decimal
    asset_quantity: Optional[Decimal] = None
    quote_amount: Optional[Decimal] = None
    time_in_force: str = "gtc"

    def to_dict(self) -> Dict[str, str]:
        payload = _amounts_to_dict(
            asset_quantity=self.asset_quantity,
            quote_amount=self.quote_amount,
            stop_price=self.stop_price,
        )
        payload["time_in_force"] = self.time_in_force
        return payload


@dataclass(frozen=True)
class StopLimitOrderConfig:
    """Stop limit order parameters."""
    limit_price: Decimal
    stop_price: Decimal
    asset_quantity: Optional[Decimal] = None
    quote_amount: Optional[Decimal] = None
    time_in_force: str = "gtc"

    def to_dict(self) -> Dict[str, str]:
        payload = _amounts_to_dict(
            asset_quantity=self.asset_quantity,
            quote_amount=self.quote_amount,
            limit_price=self.limit_price,
            stop_price=self.stop_price,
        )
        payload["time_in_force"] = self.time_in_force
        return payload


@dataclass(frozen=True)
class CreateOrderRequest:
    """Order placement request.

    Exactly one of the order configs must be set, matching order_type.
    client_order_id doubles as the idempotency key on the server side.
    """
    symbol: str
    client_order_id: str
    side: str  # "buy" or "sell"
    order_type: str  # "market", "limit", "stop_loss" or "stop_limit"
    market_order_config: Optional[MarketOrderConfig] = None
    limit_order_config: Optional[LimitOrderConfig] = None
    stop_loss_order_config: Optional[StopLossOrderConfig] = None
    stop_limit_order_config: Optional[StopLimitOrderConfig] = None

    def order_configs(self) -> Dict[str, Any]:
        """Configs that are set, keyed by their wire name."""
        configs = {
            "market_order_config": self.market_order_config,
            "limit_order_config": self.limit_order_config,
            "stop_loss_order_config": self.stop_loss_order_config,
            "stop_limit_order_config": self.stop_limit_order_config,
        }
        return {name: config for name, config in configs.items() if config is not None}

    def to_payload(self) -> Dict[str, Any]:
        """Request body as sent to the orders endpoint."""
        payload: Dict[str, Any] = {
            "symbol": self.symbol,
            "client_order_id": self.client_order_id,
            "side": self.side,
            "type": self.order_type,
        }
        for name, config in self.order_configs().items():
            payload[name] = config.to_dict()
        return payload


@dataclass(frozen=True)
class OrderExecution:
    """A single fill of an order."""
    execution_id: str
    quantity: Decimal
    price: Decimal
    value: Decimal
    timestamp: str
    fee: Optional[Decimal] = None
    fee_currency: Optional[str] = None


@dataclass(frozen=True)
class Order:
    """Order data structure."""
    order_id: str
    account_number: str
    symbol: str
    client_order_id: str
    side: str
    order_type: str
    state: str  # "open", "canceled", "partially_filled", "filled", "failed"
    filled_asset_quantity: Decimal
    created_at: str
    updated_at: str
    average_price: Optional[Decimal] = None
    executions: List[OrderExecution] = field(default_factory=list)
    market_order_config: Optional[MarketOrderConfig] = None
    limit_order_config: Optional[LimitOrderConfig] = None
    stop_loss_order_config: Optional[StopLossOrderConfig] = None
    stop_limit_order_config: Optional[StopLimitOrderConfig] = None


@dataclass(frozen=True)
class OrderCancellation:
    """Result of a cancel request."""
    message: str
    order_id: str
    cancelled_at: str


@dataclass(frozen=True)
class PortfolioSummary:
    """Portfolio totals derived from holdings."""
    total_value: Decimal
    cash_balance: Decimal
    crypto_value: Decimal
    currency: str
    holdings: List[CryptoHolding]
    updated_at: str
