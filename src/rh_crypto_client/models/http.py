"""
HTTP request and response models.

Immutable structures passed through the request pipeline.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE")


@dataclass(frozen=True)
class EmptyBody:
    """Request without a body."""

    def serialize(self) -> str:
        return ""


@dataclass(frozen=True)
class RawBody:
    """Pre-serialized body, sent and signed exactly as given."""
    text: str

    def serialize(self) -> str:
        return self.text


@dataclass(frozen=True)
class StructuredBody:
    """JSON object body; key order is preserved on the wire."""
    fields: Mapping[str, Any]

    def serialize(self) -> str:
        # Compact separators: the signed string must match the bytes sent.
        return json.dumps(dict(self.fields), separators=(",", ":"), default=str)


RequestBody = Union[EmptyBody, RawBody, StructuredBody]


def request_body_from(value: Any) -> RequestBody:
    """Resolve an arbitrary caller value into a request body variant."""
    if isinstance(value, (EmptyBody, RawBody, StructuredBody)):
        return value
    if value is None or value == "":
        return EmptyBody()
    if isinstance(value, str):
        return RawBody(value)
    if isinstance(value, Mapping):
        return StructuredBody(value)
    raise TypeError(f"Unsupported request body type: {type(value).__name__}")


@dataclass(frozen=True)
class RequestOptions:
    """Options for a single pipeline request."""
    method: str
    path: str
    body: RequestBody = field(default_factory=EmptyBody)
    headers: Dict[str, str] = field(default_factory=dict)
    timeout_ms: Optional[int] = None


@dataclass(frozen=True)
class SignedRequest:
    """Authentication material for one request. Discarded after the call."""
    method: str
    path: str
    timestamp: int
    signature: str
    headers: Dict[str, str]


@dataclass(frozen=True)
class NormalizedResponse:
    """Decoded response of a completed HTTP exchange."""
    data: Any
    status: int
    headers: Dict[str, str]
    url: str = ""
    request_id: Optional[str] = None
