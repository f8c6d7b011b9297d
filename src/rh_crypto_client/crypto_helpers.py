"""
Codec helpers for request authentication.

Base64 conversion, signature payload construction, timestamp checks and
message sanitization. Pure functions, no I/O.
"""

import base64
import binascii
import re
import time
from typing import Iterable

from .constants import SIGNATURE_MAX_AGE_SECONDS
from .errors import SignatureError

_WHITESPACE = re.compile(r"\s")
_BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")
_API_KEY_NEW_FORMAT = re.compile(
    r"^rh-api-[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_API_KEY_OLD_FORMAT = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_base64(value: str) -> bool:
    """Check that a string uses only the base64 alphabet (whitespace ignored)."""
    return bool(_BASE64_PATTERN.match(_WHITESPACE.sub("", value)))


def decode_base64(value: str) -> bytes:
    """
    Decode a base64 string into raw bytes.

    The alphabet is checked before decoding so that malformed input
    produces a clear error that does not echo the input back.

    Raises:
        SignatureError: If the input is not valid base64
    """
    if not isinstance(value, str):
        raise SignatureError("Failed to decode base64 string: expected str input")

    cleaned = _WHITESPACE.sub("", value)
    if not _BASE64_PATTERN.match(cleaned):
        raise SignatureError("Failed to decode base64 string: Invalid base64 format")

    padded = cleaned + "=" * (-len(cleaned) % 4)
    try:
        return base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SignatureError(
            f"Failed to decode base64 string: invalid length {len(cleaned)}"
        ) from e


def encode_base64(data: bytes) -> str:
    """Encode raw bytes as base64 text."""
    return base64.b64encode(bytes(data)).decode("ascii")


def get_current_timestamp() -> int:
    """Current Unix time in whole seconds."""
    return int(time.time())


def is_timestamp_fresh(timestamp_seconds: int, max_age_seconds: int = SIGNATURE_MAX_AGE_SECONDS) -> bool:
    """Check that a timestamp is not in the future and at most max_age_seconds old."""
    age = get_current_timestamp() - timestamp_seconds
    return 0 <= age <= max_age_seconds


def normalize_path(path: str) -> str:
    """Ensure the path starts with a slash."""
    return path if path.startswith("/") else f"/{path}"


def build_signature_payload(
    api_key: str,
    timestamp_seconds: int,
    path: str,
    method: str,
    body: str = "",
) -> str:
    """
    Build the exact string that gets signed.

    Format: {api_key}{timestamp}{path}{METHOD}{body} with no separators.
    The server rebuilds the same string, so field order matters.
    """
    return f"{api_key}{timestamp_seconds}{normalize_path(path)}{method.upper()}{body or ''}"


def validate_api_key(api_key: str) -> bool:
    """Validate API key format (UUID, optionally prefixed with 'rh-api-')."""
    if not api_key or not isinstance(api_key, str):
        return False
    return bool(_API_KEY_NEW_FORMAT.match(api_key) or _API_KEY_OLD_FORMAT.match(api_key))


def mask_value(value: str) -> str:
    """Mask a secret keeping its first and last two characters."""
    if len(value) <= 4:
        return "***"
    return f"{value[:2]}***{value[-2:]}"


def sanitize_error_message(message: str, sensitive_values: Iterable[str]) -> str:
    """Replace every occurrence of the given secrets in a message with a masked form."""
    sanitized = message
    for sensitive in sensitive_values:
        if sensitive and sensitive.strip():
            sanitized = re.sub(re.escape(sensitive), mask_value(sensitive), sanitized)
    return sanitized
