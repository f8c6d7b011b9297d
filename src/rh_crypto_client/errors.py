"""
Error taxonomy for the crypto trading client.

Every exception raised by this package inherits from CryptoClientError and
carries an ErrorKind tag, so callers can dispatch on ``error.kind`` or on
the exception class, whichever reads better at the call site.

CryptoClientError
├── AuthenticationError - HTTP 401/403
├── RateLimitError      - local admission denial or HTTP 429
├── ValidationError     - bad caller input or HTTP 400
├── NetworkError        - timeout, DNS, connection reset
├── ApiError            - HTTP 5xx or unclassified 4xx
├── ConfigurationError  - invalid client construction parameters
└── SignatureError      - key import or signing failure
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorKind(Enum):
    """Tag identifying the variant of a client error."""
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    VALIDATION = "validation"
    NETWORK = "network"
    API = "api"
    CONFIGURATION = "configuration"
    SIGNATURE = "signature"


class CryptoClientError(Exception):
    """Base exception for all client errors."""

    kind: ErrorKind

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Structured representation for logging."""
        return {
            "name": type(self).__name__,
            "kind": self.kind.value,
            "message": self.message,
            "code": self.code,
            "timestamp": self.timestamp,
        }


class AuthenticationError(CryptoClientError):
    """Raised when the server rejects the request credentials."""

    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str = "Authentication failed", code: Optional[str] = None):
        super().__init__(message, code)


class RateLimitError(CryptoClientError):
    """Raised when a request is throttled locally or by the server."""

    kind = ErrorKind.RATE_LIMIT

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after_ms: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message, code)
        self.retry_after_ms = retry_after_ms

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["retry_after_ms"] = self.retry_after_ms
        return data


class ValidationError(CryptoClientError):
    """Raised for malformed caller input or server-side field validation."""

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_type: Optional[str] = None,
        field_errors: Optional[List[Dict[str, Any]]] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message, code)
        self.field = field
        self.error_type = error_type
        self.field_errors = field_errors or []

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["field"] = self.field
        data["error_type"] = self.error_type
        data["field_errors"] = self.field_errors
        return data


class NetworkError(CryptoClientError):
    """Raised when the request could not be carried to or from the server."""

    kind = ErrorKind.NETWORK

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message, code)
        self.status_code = status_code


class ApiError(CryptoClientError):
    """Raised for server errors and HTTP statuses with no dedicated error."""

    kind = ErrorKind.API

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Any = None,
        code: Optional[str] = None,
    ):
        super().__init__(message, code)
        self.status_code = status_code
        self.response_body = response_body

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        return data


class ConfigurationError(CryptoClientError):
    """Raised when client construction parameters are invalid.

    ``violations`` lists every problem found, not only the first one.
    """

    kind = ErrorKind.CONFIGURATION

    def __init__(
        self,
        message: str,
        violations: Optional[List[str]] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message, code)
        self.violations = list(violations or [])

    @classmethod
    def from_violations(cls, violations: List[str]) -> "ConfigurationError":
        message = "Configuration validation failed:\n" + "\n".join(violations)
        return cls(message, violations=violations)


class SignatureError(CryptoClientError):
    """Raised when key import or message signing fails.

    Messages describe the failure by length and shape only, never by content.
    """

    kind = ErrorKind.SIGNATURE
