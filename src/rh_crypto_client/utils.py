"""
Utility functions for the crypto trading client.

Helper functions for query strings, pagination cursors and response parsing.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Mapping, Optional, Union
from urllib.parse import parse_qs, quote, urlencode, urlparse


def validate_url(url: Any) -> bool:
    """Validate URL format."""
    if not url or not isinstance(url, str):
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def sanitize_dict(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Remove None values and empty strings from dictionary."""
    return {
        key: value for key, value in data.items()
        if value is not None and value != ""
    }


def build_query_string(params: Mapping[str, Any]) -> str:
    """Build '?a=1&b=2' from params, skipping empty values. Returns '' if nothing is left."""
    cleaned = {
        key: str(value).lower() if isinstance(value, bool) else str(value)
        for key, value in sanitize_dict(params).items()
    }
    query = urlencode(cleaned)
    return f"?{query}" if query else ""


def build_multi_value_query_string(key: str, values: Iterable[str]) -> str:
    """Build '?key=a&key=b' for a repeated parameter."""
    parts = [f"{key}={quote(str(value), safe='')}" for value in values]
    return f"?{'&'.join(parts)}" if parts else ""


def append_query(path: str, query: str) -> str:
    """Append a '?...' query string to a path that may already have one."""
    if not query:
        return path
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}{query.lstrip('?')}"


def extract_cursor_from_url(url: Optional[str]) -> Optional[str]:
    """Extract the 'cursor' query parameter from a pagination URL."""
    if not url:
        return None
    values = parse_qs(urlparse(url).query).get("cursor")
    return values[0] if values else None


def safe_get(data: Dict[str, Any], path: str, default: Any = None) -> Any:
    """Safely get nested dictionary values using dot notation."""
    keys = path.split(".")
    current = data

    for key in keys:
        if isinstance(current, dict) and key in current:
            current = current[key]
        else:
            return default

    return current


def to_decimal(value: Union[Decimal, float, int, str, None], default: str = "0") -> Decimal:
    """Convert an API amount to Decimal, falling back to default for blanks."""
    if value is None or value == "":
        return Decimal(default)
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal(default)


def to_optional_decimal(value: Union[Decimal, float, int, str, None]) -> Optional[Decimal]:
    """Like to_decimal but keeps missing values as None."""
    if value is None or value == "":
        return None
    return to_decimal(value)
