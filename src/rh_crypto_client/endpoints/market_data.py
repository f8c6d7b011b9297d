"""
Market data endpoint for the crypto trading client.

Quotes and price estimates. Symbols are validated locally before any
request is made.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from ..constants import BEST_BID_ASK_PATH, ESTIMATE_SIDES, ESTIMATED_PRICE_PATH, MAX_ESTIMATE_QUANTITIES
from ..errors import CryptoClientError, ValidationError
from ..models.market import BestBidAsk, EstimatedPrice, Spread
from ..utils import build_multi_value_query_string, build_query_string, safe_get, to_decimal, to_optional_decimal
from .base import BaseEndpoint, require_decimal, validate_symbol_format

logger = logging.getLogger(__name__)


def parse_best_bid_ask(data: Dict[str, Any]) -> BestBidAsk:
    """Create BestBidAsk from a quote dictionary, deriving mid and spread when absent."""
    bid = to_decimal(safe_get(data, "bid_price") or safe_get(data, "bid_inclusive_of_sell_spread"))
    ask = to_decimal(safe_get(data, "ask_price") or safe_get(data, "ask_inclusive_of_buy_spread"))

    mid = to_optional_decimal(safe_get(data, "mid_price") or safe_get(data, "price"))
    if mid is None:
        mid = (bid + ask) / 2

    spread = to_optional_decimal(safe_get(data, "spread"))
    if spread is None:
        spread = ask - bid

    return BestBidAsk(
        symbol=safe_get(data, "symbol", ""),
        bid_price=bid,
        ask_price=ask,
        mid_price=mid,
        spread=spread,
        timestamp=safe_get(data, "timestamp", ""),
    )


def parse_estimated_price(data: Dict[str, Any]) -> EstimatedPrice:
    """Create EstimatedPrice from a response dictionary."""
    return EstimatedPrice(
        symbol=safe_get(data, "symbol", ""),
        side=safe_get(data, "side", ""),
        quantity=to_decimal(safe_get(data, "quantity")),
        estimated_price=to_decimal(safe_get(data, "estimated_price") or safe_get(data, "price")),
        timestamp=safe_get(data, "timestamp", ""),
        price_impact=to_optional_decimal(safe_get(data, "price_impact")),
        total_cost=to_optional_decimal(safe_get(data, "total_cost")),
    )


def _results(data: Any) -> List[Dict[str, Any]]:
    if isinstance(data, dict):
        return [item for item in data.get("results") or [] if isinstance(item, dict)]
    return []


class MarketDataEndpoint(BaseEndpoint):
    """Quotes and price estimates."""

    async def get_best_bid_ask(self, symbols: Optional[Sequence[str]] = None) -> List[BestBidAsk]:
        """
        Get best bid/ask quotes.

        Args:
            symbols: Trading pairs like "BTC-USD"; all pairs when omitted

        Raises:
            ValidationError: If any symbol is malformed
        """
        path = BEST_BID_ASK_PATH
        if symbols:
            for symbol in symbols:
                validate_symbol_format(symbol)
            path += build_multi_value_query_string("symbol", symbols)

        response = await self._http_client.get(path)
        return [parse_best_bid_ask(item) for item in _results(response.data)]

    async def get_estimated_price(
        self,
        symbol: str,
        side: str,
        quantities: Sequence[Any],
    ) -> List[EstimatedPrice]:
        """
        Get estimated execution prices for up to ten quantities.

        Args:
            symbol: Trading pair like "BTC-USD"
            side: "bid", "ask" or "both"
            quantities: Positive amounts

        Raises:
            ValidationError: On a bad symbol, side or quantity list
        """
        validate_symbol_format(symbol)

        if side not in ESTIMATE_SIDES:
            raise ValidationError('Side must be "bid", "ask", or "both"', field="side")

        if not quantities or isinstance(quantities, (str, bytes)):
            raise ValidationError("Quantities list is required and must not be empty", field="quantities")

        if len(quantities) > MAX_ESTIMATE_QUANTITIES:
            raise ValidationError(
                f"Maximum {MAX_ESTIMATE_QUANTITIES} quantities can be specified per request",
                field="quantities",
            )

        amounts = [require_decimal(quantity, "quantity") for quantity in quantities]

        query = build_query_string({
            "symbol": symbol.upper(),
            "side": side,
            "quantity": ",".join(str(amount) for amount in amounts),
        })
        response = await self._http_client.get(f"{ESTIMATED_PRICE_PATH}{query}")
        return [parse_estimated_price(item) for item in _results(response.data)]

    async def get_current_price(self, symbol: str) -> Decimal:
        """Get the mid price for a symbol."""
        quote = await self._single_quote(symbol)
        return quote.mid_price

    async def get_current_prices(self, symbols: Sequence[str]) -> Dict[str, Decimal]:
        """Get mid prices keyed by symbol."""
        quotes = await self.get_best_bid_ask(symbols)
        return {quote.symbol: quote.mid_price for quote in quotes}

    async def get_spread(self, symbol: str) -> Spread:
        """Get the bid-ask spread, with the percentage rounded to four places."""
        quote = await self._single_quote(symbol)
        mid = (quote.bid_price + quote.ask_price) / 2
        spread = quote.ask_price - quote.bid_price
        spread_percent = (spread / mid * 100) if mid else Decimal("0")

        return Spread(
            symbol=quote.symbol,
            spread=spread,
            spread_percent=spread_percent.quantize(Decimal("0.0001")),
        )

    async def is_symbol_trading(self, symbol: str) -> bool:
        """
        Check whether a symbol has a live two-sided market.

        Best-effort: a failed quote request is logged at DEBUG and
        reported as False.
        """
        try:
            quotes = await self.get_best_bid_ask([symbol])
        except CryptoClientError as e:
            logger.debug(f"Trading check for {symbol} failed: {e}")
            return False

        if not quotes:
            return False

        quote = quotes[0]
        return quote.bid_price > 0 and quote.ask_price > 0 and quote.ask_price > quote.bid_price

    async def get_available_symbols(self) -> List[str]:
        """Get every symbol that currently has a quote."""
        quotes = await self.get_best_bid_ask()
        return [quote.symbol for quote in quotes]

    def validate_symbol(self, symbol: str) -> None:
        """Raise ValidationError unless symbol looks like 'BTC-USD'."""
        validate_symbol_format(symbol)

    async def _single_quote(self, symbol: str) -> BestBidAsk:
        quotes = await self.get_best_bid_ask([symbol])
        if not quotes:
            raise ValidationError(f"No quote data available for symbol: {symbol}", field="symbol")
        return quotes[0]
