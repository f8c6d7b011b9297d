"""
Trading endpoint for the crypto trading client.

Trading pairs, holdings and order management. Order requests are
validated locally before anything is sent, and each order carries a
client_order_id the server uses to de-duplicate submissions.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..constants import (
    CASH_ASSET_CODES,
    DEFAULT_TIME_IN_FORCE,
    HOLDINGS_PATH,
    ORDER_SIDES,
    ORDER_TYPES,
    ORDERS_PATH,
    TIME_IN_FORCE_VALUES,
    TRADING_PAIRS_PATH,
)
from ..errors import ApiError, ValidationError
from ..models.trading import (
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
from ..utils import (
    append_query,
    build_multi_value_query_string,
    build_query_string,
    safe_get,
    to_decimal,
    to_optional_decimal,
)
from .base import BaseEndpoint, require_decimal, validate_symbol_format

logger = logging.getLogger(__name__)

_CONFIG_FOR_TYPE = {
    "market": "market_order_config",
    "limit": "limit_order_config",
    "stop_loss": "stop_loss_order_config",
    "stop_limit": "stop_limit_order_config",
}


def parse_trading_pair(data: Dict[str, Any]) -> TradingPair:
    """Create TradingPair from a response dictionary."""
    return TradingPair(
        symbol=safe_get(data, "symbol", ""),
        base_asset=safe_get(data, "base_asset") or safe_get(data, "asset_code", ""),
        quote_asset=safe_get(data, "quote_asset") or safe_get(data, "quote_code", ""),
        min_order_size=to_decimal(safe_get(data, "min_order_size")),
        max_order_size=to_decimal(safe_get(data, "max_order_size")),
        price_increment=to_decimal(safe_get(data, "price_increment") or safe_get(data, "quote_increment")),
        quantity_increment=to_decimal(safe_get(data, "quantity_increment") or safe_get(data, "asset_increment")),
        trading_enabled=bool(safe_get(data, "trading_enabled", safe_get(data, "status") == "tradable")),
        status=safe_get(data, "status", ""),
    )


def parse_holding(data: Dict[str, Any]) -> CryptoHolding:
    """Create CryptoHolding from a response dictionary, handling field variations."""
    quantity = to_decimal(safe_get(data, "quantity") or safe_get(data, "total_quantity"))
    available = to_decimal(
        safe_get(data, "available_quantity") or safe_get(data, "quantity_available_for_trading")
    )

    locked = to_optional_decimal(safe_get(data, "locked_quantity"))
    if locked is None:
        locked = quantity - available

    return CryptoHolding(
        asset_code=safe_get(data, "asset_code", ""),
        quantity=quantity,
        available_quantity=available,
        locked_quantity=locked,
        average_cost=to_decimal(safe_get(data, "average_cost")),
        cost_currency=safe_get(data, "cost_currency", "USD"),
        updated_at=safe_get(data, "updated_at", ""),
        market_value=to_optional_decimal(safe_get(data, "market_value")),
    )


def _parse_execution(data: Dict[str, Any]) -> OrderExecution:
    return OrderExecution(
        execution_id=str(safe_get(data, "id", "")),
        quantity=to_decimal(safe_get(data, "quantity")),
        price=to_decimal(safe_get(data, "price") or safe_get(data, "effective_price")),
        value=to_decimal(safe_get(data, "value")),
        timestamp=safe_get(data, "timestamp", ""),
        fee=to_optional_decimal(safe_get(data, "fee")),
        fee_currency=safe_get(data, "fee_currency"),
    )


def _parse_market_config(data: Optional[Dict[str, Any]]) -> Optional[MarketOrderConfig]:
    if not data:
        return None
    return MarketOrderConfig(
        asset_quantity=to_optional_decimal(data.get("asset_quantity")),
        quote_amount=to_optional_decimal(data.get("quote_amount")),
    )


def _parse_limit_config(data: Optional[Dict[str, Any]]) -> Optional[LimitOrderConfig]:
    if not data:
        return None
    return LimitOrderConfig(
        limit_price=to_decimal(data.get("limit_price")),
        asset_quantity=to_optional_decimal(data.get("asset_quantity")),
        quote_amount=to_optional_decimal(data.get("quote_amount")),
        time_in_force=data.get("time_in_force", DEFAULT_TIME_IN_FORCE),
    )


def _parse_stop_loss_config(data: Optional[Dict[str, Any]]) -> Optional[StopLossOrderConfig]:
    if not data:
        return None
    return StopLossOrderConfig(
        stop_price=to_decimal(data.get("stop_price")),
        asset_quantity=to_optional_decimal(data.get("asset_quantity")),
        quote_amount=to_optional_decimal(data.get("quote_amount")),
        time_in_force=data.get("time_in_force", DEFAULT_TIME_IN_FORCE),
    )


def _parse_stop_limit_config(data: Optional[Dict[str, Any]]) -> Optional[StopLimitOrderConfig]:
    if not data:
        return None
    return StopLimitOrderConfig(
        limit_price=to_decimal(data.get("limit_price")),
        stop_price=to_decimal(data.get("stop_price")),
        asset_quantity=to_optional_decimal(data.get("asset_quantity")),
        quote_amount=to_optional_decimal(data.get("quote_amount")),
        time_in_force=data.get("time_in_force", DEFAULT_TIME_IN_FORCE),
    )


def parse_order(data: Dict[str, Any]) -> Order:
    """Create Order from a response dictionary."""
    return Order(
        order_id=str(safe_get(data, "id", "")),
        account_number=str(safe_get(data, "account_number", "")),
        symbol=safe_get(data, "symbol", ""),
        client_order_id=str(safe_get(data, "client_order_id", "")),
        side=safe_get(data, "side", ""),
        order_type=safe_get(data, "type", ""),
        state=safe_get(data, "state", ""),
        filled_asset_quantity=to_decimal(safe_get(data, "filled_asset_quantity")),
        created_at=safe_get(data, "created_at", ""),
        updated_at=safe_get(data, "updated_at", ""),
        average_price=to_optional_decimal(safe_get(data, "average_price")),
        executions=[_parse_execution(item) for item in safe_get(data, "executions") or []],
        market_order_config=_parse_market_config(safe_get(data, "market_order_config")),
        limit_order_config=_parse_limit_config(safe_get(data, "limit_order_config")),
        stop_loss_order_config=_parse_stop_loss_config(safe_get(data, "stop_loss_order_config")),
        stop_limit_order_config=_parse_stop_limit_config(safe_get(data, "stop_limit_order_config")),
    )


def validate_order_request(request: CreateOrderRequest) -> None:
    """
    Check an order request before it is sent.

    Raises:
        ValidationError: On a missing symbol or client_order_id, an unknown
            side or type, or an order config that does not match the type
    """
    if not request.symbol or not isinstance(request.symbol, str):
        raise ValidationError("Symbol is required and must be a string", field="symbol")

    if not request.client_order_id or not isinstance(request.client_order_id, str):
        raise ValidationError("Client order ID is required and must be a string", field="client_order_id")

    if request.side not in ORDER_SIDES:
        raise ValidationError('Side must be "buy" or "sell"', field="side")

    if request.order_type not in ORDER_TYPES:
        raise ValidationError(
            'Type must be "limit", "market", "stop_limit", or "stop_loss"',
            field="type",
        )

    configs = request.order_configs()
    if len(configs) != 1:
        raise ValidationError("Exactly one order configuration must be provided", field="type")

    expected = _CONFIG_FOR_TYPE[request.order_type]
    if expected not in configs:
        readable = request.order_type.replace("_", " ")
        raise ValidationError(
            f"{readable.capitalize()} order configuration is required for {readable} orders",
            field=expected,
        )


def _order_size(asset_quantity: Any, quote_amount: Any) -> Dict[str, Optional[Decimal]]:
    if asset_quantity is None and quote_amount is None:
        raise ValidationError("Either asset_quantity or quote_amount must be provided")
    if asset_quantity is not None and quote_amount is not None:
        raise ValidationError("Cannot specify both asset_quantity and quote_amount")

    return {
        "asset_quantity": require_decimal(asset_quantity, "asset_quantity") if asset_quantity is not None else None,
        "quote_amount": require_decimal(quote_amount, "quote_amount") if quote_amount is not None else None,
    }


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class TradingEndpoint(BaseEndpoint):
    """Trading pairs, holdings and orders."""

    async def get_trading_pairs(
        self,
        symbols: Optional[Sequence[str]] = None,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Page:
        """Get trading pairs, optionally restricted to the given symbols."""
        path = TRADING_PAIRS_PATH
        if symbols:
            path += build_multi_value_query_string("symbol", symbols)
        return await self.get_page(path, parse_trading_pair, cursor=cursor, limit=limit)

    async def get_holdings(
        self,
        asset_codes: Optional[Sequence[str]] = None,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Page:
        """Get crypto holdings, optionally restricted to the given asset codes."""
        path = HOLDINGS_PATH
        if asset_codes:
            path += build_multi_value_query_string("asset_code", asset_codes)
        return await self.get_page(path, parse_holding, cursor=cursor, limit=limit)

    async def get_orders(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Page:
        """
        Get orders matching the filters.

        Args:
            filters: Any of symbol, id, side, state, type, created_at_start,
                created_at_end, updated_at_start, updated_at_end
            cursor: Pagination cursor
            limit: Page size
        """
        path = append_query(ORDERS_PATH, build_query_string(filters or {}))
        return await self.get_page(path, parse_order, cursor=cursor, limit=limit)

    async def get_order(self, order_id: str) -> Order:
        """Get a single order by id."""
        self._require_order_id(order_id)
        response = await self._http_client.get(f"{ORDERS_PATH}{order_id}/")
        if not isinstance(response.data, dict):
            raise ApiError(
                f"Unexpected order response for {order_id}",
                status_code=response.status,
                response_body=response.data,
            )
        return parse_order(response.data)

    async def place_order(self, request: CreateOrderRequest) -> Order:
        """
        Place an order.

        The request is validated first; nothing is sent if validation fails.
        Placement is not retried after the server has seen it. Resubmit with
        the same client_order_id to stay idempotent.
        """
        validate_order_request(request)

        logger.info(
            f"Placing {request.order_type} {request.side} order for {request.symbol} "
            f"(client_order_id={request.client_order_id})"
        )
        response = await self._http_client.post(ORDERS_PATH, body=request.to_payload())
        if not isinstance(response.data, dict):
            raise ApiError(
                "Unexpected order placement response",
                status_code=response.status,
                response_body=response.data,
            )
        return parse_order(response.data)

    async def cancel_order(self, order_id: str) -> OrderCancellation:
        """Cancel an open order."""
        self._require_order_id(order_id)
        response = await self._http_client.post(f"{ORDERS_PATH}{order_id}/cancel/")

        logger.info(f"Cancelled order {order_id}")
        return OrderCancellation(
            message="" if response.data is None else str(response.data),
            order_id=order_id,
            cancelled_at=_utc_now_iso(),
        )

    async def place_market_order(
        self,
        symbol: str,
        side: str,
        asset_quantity: Any = None,
        quote_amount: Any = None,
        client_order_id: Optional[str] = None,
    ) -> Order:
        """
        Place a market order sized by exactly one of asset_quantity or quote_amount.

        Raises:
            ValidationError: If both or neither size is given, or a size is not positive
        """
        validate_symbol_format(symbol)
        size = _order_size(asset_quantity, quote_amount)

        request = CreateOrderRequest(
            symbol=symbol,
            client_order_id=client_order_id or str(uuid.uuid4()),
            side=side,
            order_type="market",
            market_order_config=MarketOrderConfig(**size),
        )
        return await self.place_order(request)

    async def place_limit_order(
        self,
        symbol: str,
        side: str,
        limit_price: Any,
        asset_quantity: Any = None,
        quote_amount: Any = None,
        time_in_force: str = DEFAULT_TIME_IN_FORCE,
        client_order_id: Optional[str] = None,
    ) -> Order:
        """Place a limit order sized by exactly one of asset_quantity or quote_amount."""
        validate_symbol_format(symbol)
        size = _order_size(asset_quantity, quote_amount)

        if time_in_force not in TIME_IN_FORCE_VALUES:
            raise ValidationError('Time in force must be "gtc", "ioc", or "fok"', field="time_in_force")

        request = CreateOrderRequest(
            symbol=symbol,
            client_order_id=client_order_id or str(uuid.uuid4()),
            side=side,
            order_type="limit",
            limit_order_config=LimitOrderConfig(
                limit_price=require_decimal(limit_price, "limit_price"),
                time_in_force=time_in_force,
                **size,
            ),
        )
        return await self.place_order(request)

    async def get_open_orders(self, symbol: Optional[str] = None) -> List[Order]:
        """Get open orders, optionally for one symbol (first page only)."""
        filters: Dict[str, Any] = {"state": "open"}
        if symbol:
            filters["symbol"] = symbol

        page = await self.get_orders(filters)
        return page.results

    async def get_portfolio_summary(self) -> PortfolioSummary:
        """Summarize holdings; USD-like assets count as cash."""
        page = await self.get_holdings()
        holdings = page.results

        crypto_value = Decimal("0")
        cash_balance = Decimal("0")
        for holding in holdings:
            if holding.market_value is not None:
                crypto_value += holding.market_value
            if holding.asset_code in CASH_ASSET_CODES:
                cash_balance += holding.quantity

        return PortfolioSummary(
            total_value=crypto_value + cash_balance,
            cash_balance=cash_balance,
            crypto_value=crypto_value,
            currency="USD",
            holdings=holdings,
            updated_at=_utc_now_iso(),
        )

    async def has_sufficient_balance(self, symbol: str, side: str, quantity: Any) -> bool:
        """
        Check whether the asset a trade would spend is available in quantity.

        Buys spend the quote asset, sells spend the base asset.
        """
        validate_symbol_format(symbol)
        if side not in ORDER_SIDES:
            raise ValidationError('Side must be "buy" or "sell"', field="side")
        required = require_decimal(quantity, "quantity")

        base_asset, quote_asset = symbol.split("-")
        asset_code = quote_asset if side == "buy" else base_asset

        page = await self.get_holdings([asset_code])
        if not page.results:
            return False

        return page.results[0].available_quantity >= required

    def _require_order_id(self, order_id: Any) -> None:
        if not order_id or not isinstance(order_id, str):
            raise ValidationError("Order ID is required and must be a string", field="order_id")
