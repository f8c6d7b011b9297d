"""
Authentication and signing utilities for the crypto trading API.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from .constants import (
    API_KEY_HEADER,
    ED25519_SEED_LENGTH,
    SIGNATURE_HEADER,
    SIGNATURE_MAX_AGE_SECONDS,
    TIMESTAMP_HEADER,
)
from .crypto_helpers import (
    build_signature_payload,
    decode_base64,
    encode_base64,
    get_current_timestamp,
    is_timestamp_fresh,
)
from .errors import SignatureError, ValidationError
from .models.http import SignedRequest


@dataclass(frozen=True)
class ApiCredentials:
    """Container for API credentials"""
    api_key: str
    secret_key: str = field(repr=False)


class PrivateKeyHandle:
    """
    Opaque handle around an Ed25519 private key.

    The only supported operation is signing. The handle cannot be
    printed, pickled or copied, and the raw seed is not kept.
    """

    __slots__ = ("_key",)

    def __init__(self, key: Ed25519PrivateKey):
        self._key = key

    def sign(self, message: bytes) -> bytes:
        return self._key.sign(message)

    def __repr__(self) -> str:
        return "PrivateKeyHandle(<redacted>)"

    def __reduce__(self):
        raise TypeError("PrivateKeyHandle cannot be serialized")

    def __copy__(self):
        raise TypeError("PrivateKeyHandle cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("PrivateKeyHandle cannot be copied")


def import_private_key(base64_seed: str) -> PrivateKeyHandle:
    """
    Import an Ed25519 private key from a base64-encoded 32-byte seed.

    Args:
        base64_seed: Base64 text of the raw seed

    Returns:
        Signing-only key handle

    Raises:
        SignatureError: If the seed is not base64 or not 32 bytes long
    """
    try:
        seed = decode_base64(base64_seed)
    except SignatureError as e:
        raise SignatureError(f"Failed to import Ed25519 private key: {e.message}") from None

    if len(seed) != ED25519_SEED_LENGTH:
        raise SignatureError(
            f"Failed to import Ed25519 private key: invalid seed length, "
            f"expected {ED25519_SEED_LENGTH} bytes, got {len(seed)}"
        )

    try:
        key = Ed25519PrivateKey.from_private_bytes(seed)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise SignatureError(
            f"Failed to import Ed25519 private key: {type(e).__name__}"
        ) from None

    return PrivateKeyHandle(key)


def sign_message(private_key: PrivateKeyHandle, message: str) -> str:
    """
    Sign a message and return the base64-encoded signature.

    Raises:
        SignatureError: If signing fails
    """
    try:
        signature = private_key.sign(message.encode("utf-8"))
    except Exception as e:
        raise SignatureError(f"Failed to sign message: {type(e).__name__}") from e
    return encode_base64(signature)


class RequestSigner:
    """
    Handles request signing for API authentication.

    Imports the private key once on construction and signs each request
    payload with Ed25519.
    """

    def __init__(self, credentials: ApiCredentials):
        """
        Initialize the signer with API credentials.

        Args:
            credentials: API key and base64 secret seed

        Raises:
            SignatureError: If the secret cannot be imported as a key
        """
        self._api_key = credentials.api_key
        self._private_key = import_private_key(credentials.secret_key)

    @property
    def api_key(self) -> str:
        return self._api_key

    def sign_request(
        self, method: str, path: str, body: str = "", timestamp: Optional[int] = None
    ) -> SignedRequest:
        """
        Build the signed authentication material for one request.

        Args:
            method: HTTP method
            path: Request path including any query string
            body: Serialized request body ("" when absent)
            timestamp: Unix seconds to sign with; defaults to now

        Returns:
            SignedRequest with headers ready to send

        Raises:
            ValidationError: If the timestamp is in the future or too old
            SignatureError: If signing fails
        """
        if timestamp is None:
            timestamp = get_current_timestamp()
        if not is_timestamp_fresh(timestamp, SIGNATURE_MAX_AGE_SECONDS):
            raise ValidationError(
                "Request timestamp is outside the accepted window", field="timestamp"
            )

        payload = build_signature_payload(
            api_key=self._api_key,
            timestamp_seconds=timestamp,
            path=path,
            method=method,
            body=body,
        )
        signature = sign_message(self._private_key, payload)

        return SignedRequest(
            method=method.upper(),
            path=path,
            timestamp=timestamp,
            signature=signature,
            headers=self.get_auth_headers(signature, timestamp),
        )

    def get_auth_headers(self, signature: str, timestamp: int) -> Dict[str, str]:
        """
        Get authentication headers for API requests.

        Returns:
            Dictionary containing required authentication headers
        """
        return {
            API_KEY_HEADER: self._api_key,
            SIGNATURE_HEADER: signature,
            TIMESTAMP_HEADER: str(timestamp),
        }

    def validate_credentials(self) -> bool:
        """Check that an API key is present (the key was imported on construction)."""
        return bool(self._api_key)

    def __repr__(self) -> str:
        return "RequestSigner(api_key=<masked>)"
