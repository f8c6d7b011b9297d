"""
Configuration models for the crypto trading client.

Immutable configuration structures. ClientConfig validates itself on
construction and reports every violation at once.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from ..constants import (
    DEFAULT_BASE_URL,
    DEFAULT_BURST_CAPACITY,
    DEFAULT_MAX_REQUESTS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_RETRY_DELAY_MS,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_WINDOW_MS,
    ED25519_SEED_LENGTH,
    ENV_API_KEY,
    ENV_BASE_URL,
    ENV_DEBUG,
    ENV_SECRET_KEY,
    ENV_TIMEOUT_MS,
)
from ..crypto_helpers import decode_base64, is_base64, mask_value, validate_api_key
from ..errors import ConfigurationError, SignatureError
from ..utils import validate_url


@dataclass(frozen=True)
class RateLimitConfig:
    """Token bucket sizing."""
    max_requests: Optional[int] = DEFAULT_MAX_REQUESTS
    window_ms: Optional[int] = DEFAULT_WINDOW_MS
    burst_capacity: Optional[int] = DEFAULT_BURST_CAPACITY


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for admission retry behavior."""
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    max_delay_ms: int = DEFAULT_MAX_RETRY_DELAY_MS


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def _is_non_negative_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


@dataclass(frozen=True)
class ClientConfig:
    """Configuration for the client connection."""
    api_key: str
    secret_key: str = field(repr=False)
    base_url: str = DEFAULT_BASE_URL
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    debug: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        violations = self.collect_violations()
        if violations:
            raise ConfigurationError.from_violations(violations)

    def collect_violations(self) -> List[str]:
        """Return every configuration problem, in a stable order."""
        violations: List[str] = []
        violations.extend(self._validate_api_key())
        violations.extend(self._validate_secret_key())
        violations.extend(self._validate_base_url())
        violations.extend(self._validate_timeout())
        violations.extend(self._validate_rate_limit())
        violations.extend(self._validate_retry())
        return violations

    def _validate_api_key(self) -> List[str]:
        if not self.api_key:
            return [
                f"api_key is required. Set {ENV_API_KEY} environment variable or pass in config."
            ]
        if not validate_api_key(self.api_key):
            return ['api_key format is invalid. Expected UUID format with optional "rh-api-" prefix.']
        return []

    def _validate_secret_key(self) -> List[str]:
        if not self.secret_key:
            return [
                f"secret_key is required. Set {ENV_SECRET_KEY} environment variable or pass in config."
            ]
        if not isinstance(self.secret_key, str) or not is_base64(self.secret_key):
            return ["secret_key must be valid base64 format."]
        try:
            decoded = decode_base64(self.secret_key)
        except SignatureError:
            return ["secret_key must be valid base64 format."]
        if len(decoded) != ED25519_SEED_LENGTH:
            return [f"secret_key must decode to {ED25519_SEED_LENGTH} bytes for Ed25519."]
        return []

    def _validate_base_url(self) -> List[str]:
        if not validate_url(self.base_url):
            return ["base_url must be a valid URL."]
        return []

    def _validate_timeout(self) -> List[str]:
        if not _is_positive_number(self.timeout_ms):
            return ["timeout_ms must be a positive number."]
        return []

    def _validate_rate_limit(self) -> List[str]:
        violations = []
        for name in ("max_requests", "window_ms", "burst_capacity"):
            value = getattr(self.rate_limit, name)
            if value is not None and not _is_positive_number(value):
                violations.append(f"rate_limit.{name} must be a positive number.")
        return violations

    def _validate_retry(self) -> List[str]:
        violations = []
        for name in ("max_retries", "base_delay_ms", "max_delay_ms"):
            if not _is_non_negative_int(getattr(self.retry, name)):
                violations.append(f"retry.{name} must be a non-negative integer.")
        return violations

    def sanitized(self) -> Dict[str, Any]:
        """Configuration as a dict that is safe to log."""
        return {
            "api_key": mask_value(self.api_key) if self.api_key else "",
            "secret_key": "***REDACTED***" if self.secret_key else "",
            "base_url": self.base_url,
            "timeout_ms": self.timeout_ms,
            "rate_limit": {
                "max_requests": self.rate_limit.max_requests,
                "window_ms": self.rate_limit.window_ms,
                "burst_capacity": self.rate_limit.burst_capacity,
            },
            "retry": {
                "max_retries": self.retry.max_retries,
                "base_delay_ms": self.retry.base_delay_ms,
                "max_delay_ms": self.retry.max_delay_ms,
            },
            "debug": self.debug,
        }


def load_config_from_env() -> Dict[str, Any]:
    """
    Read configuration values from environment variables.

    A .env file is loaded first; variables already set in the environment win.
    Only variables that are present are returned.
    """
    load_dotenv()
    values: Dict[str, Any] = {}

    api_key = os.getenv(ENV_API_KEY)
    if api_key:
        values["api_key"] = api_key

    secret_key = os.getenv(ENV_SECRET_KEY)
    if secret_key:
        values["secret_key"] = secret_key

    base_url = os.getenv(ENV_BASE_URL)
    if base_url:
        values["base_url"] = base_url

    timeout_ms = os.getenv(ENV_TIMEOUT_MS)
    if timeout_ms:
        try:
            values["timeout_ms"] = int(timeout_ms)
        except ValueError:
            values["timeout_ms"] = timeout_ms

    debug = os.getenv(ENV_DEBUG)
    if debug:
        values["debug"] = debug.strip().lower() == "true"

    return values


def create_config(**overrides: Any) -> ClientConfig:
    """
    Merge defaults, environment variables and explicit overrides.

    Explicit keyword arguments take precedence over the environment.

    Raises:
        ConfigurationError: With all violations if the merged config is invalid
    """
    values: Dict[str, Any] = {"api_key": "", "secret_key": ""}
    values.update(load_config_from_env())
    values.update({key: value for key, value in overrides.items() if value is not None})
    return ClientConfig(**values)
