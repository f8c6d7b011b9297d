"""
Base class for API endpoint groups.

Holds the shared HTTP client and the cursor pagination helpers.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional, TypeVar

from ..errors import ApiError, ValidationError
from ..http_client import HttpClient
from ..models.trading import Page
from ..utils import append_query, build_query_string, extract_cursor_from_url

logger = logging.getLogger(__name__)

T = TypeVar("T")

Parser = Callable[[Dict[str, Any]], T]


class BaseEndpoint:
    """Base class for all API endpoint groups."""

    def __init__(self, http_client: HttpClient):
        """Initialize endpoint with the shared HTTP client."""
        self._http_client = http_client

    async def get_page(
        self,
        path: str,
        parser: Parser,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Page:
        """
        Fetch one page of a paginated listing.

        Args:
            path: Listing path, may already carry filters
            parser: Converts one result dict into a model
            cursor: Cursor from a previous page
            limit: Page size

        Returns:
            Page of parsed results
        """
        full_path = append_query(path, build_query_string({"cursor": cursor, "limit": limit}))
        response = await self._http_client.get(full_path)
        data = response.data

        if not isinstance(data, dict):
            raise ApiError(
                f"Unexpected paginated response from {path}",
                status_code=response.status,
                response_body=data,
            )

        return Page(
            results=[parser(item) for item in data.get("results") or []],
            next=data.get("next"),
            previous=data.get("previous"),
        )

    async def get_all_pages(
        self,
        path: str,
        parser: Parser,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Any]:
        """Follow 'next' links until the listing is exhausted."""
        results: List[Any] = []

        while True:
            page = await self.get_page(path, parser, cursor=cursor, limit=limit)
            results.extend(page.results)

            cursor = extract_cursor_from_url(page.next)
            if not cursor:
                break

        logger.debug(f"Fetched {len(results)} results from {path}")
        return results


def require_decimal(value: Any, name: str, positive: bool = True) -> Decimal:
    """Parse a caller-supplied amount, raising ValidationError if it is not a number."""
    if value is None or isinstance(value, bool) or value == "":
        raise ValidationError(f"{name} is required", field=name)
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid {name}: {value}. Must be a number", field=name) from None
    if not amount.is_finite() or (positive and amount <= 0):
        raise ValidationError(f"Invalid {name}: {value}. Must be a positive number", field=name)
    return amount


def validate_symbol_format(symbol: Any) -> str:
    """Check a 'BASE-QUOTE' symbol and return it unchanged."""
    if not symbol or not isinstance(symbol, str):
        raise ValidationError("Symbol must be a non-empty string", field="symbol")

    parts = symbol.split("-")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValidationError(
            f'Invalid symbol format: {symbol}. Expected format like "BTC-USD"',
            field="symbol",
        )
    return symbol
