# -*- coding: utf-8 -*-
"""
Tests for Ed25519 key import and request signing.
"""

import base64
import copy
import pickle
from unittest.mock import patch

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from rh_crypto_client.auth import (
    ApiCredentials,
    RequestSigner,
    import_private_key,
    sign_message,
)
from rh_crypto_client.errors import SignatureError, ValidationError

from conftest import TEST_API_KEY, TEST_SECRET_KEY, TEST_SEED


def verify(signature_b64: str, message: str) -> None:
    """Verify a signature against the public key of the test seed; raises on mismatch."""
    public_key = Ed25519PrivateKey.from_private_bytes(TEST_SEED).public_key()
    public_key.verify(base64.b64decode(signature_b64), message.encode("utf-8"))


class TestImportPrivateKey:
    """Test private key import."""

    def test_import_valid_seed(self):
        """Test that a 32-byte seed imports and can sign."""
        key = import_private_key(TEST_SECRET_KEY)
        signature = sign_message(key, "hello")
        verify(signature, "hello")

    def test_import_wrong_length(self):
        """Test that a seed of the wrong length is rejected by length."""
        short_seed = base64.b64encode(b"\x01" * 16).decode()
        with pytest.raises(SignatureError, match="expected 32 bytes, got 16") as exc_info:
            import_private_key(short_seed)
        assert short_seed not in str(exc_info.value)

    def test_import_invalid_base64(self):
        """Test that malformed base64 surfaces as SignatureError."""
        malformed = "%%%not-base64%%%"
        with pytest.raises(SignatureError, match="Failed to import Ed25519 private key") as exc_info:
            import_private_key(malformed)
        assert malformed not in str(exc_info.value)

    def test_handle_is_opaque(self):
        """Test that the key handle cannot be printed, pickled or copied."""
        key = import_private_key(TEST_SECRET_KEY)
        assert "redacted" in repr(key)
        assert TEST_SECRET_KEY not in repr(key)
        with pytest.raises(TypeError):
            pickle.dumps(key)
        with pytest.raises(TypeError):
            copy.copy(key)
        with pytest.raises(TypeError):
            copy.deepcopy(key)


class TestSignMessage:
    """Test message signing."""

    def test_signature_is_deterministic(self):
        """Test that Ed25519 gives the same signature for the same message."""
        key = import_private_key(TEST_SECRET_KEY)
        assert sign_message(key, "payload") == sign_message(key, "payload")

    def test_signature_is_64_bytes(self):
        """Test signature length after base64 decoding."""
        key = import_private_key(TEST_SECRET_KEY)
        assert len(base64.b64decode(sign_message(key, "payload"))) == 64

    def test_signing_failure_wrapped(self):
        """Test that a failing key surfaces as SignatureError."""

        class BrokenKey:
            def sign(self, message):
                raise RuntimeError("boom")

        with pytest.raises(SignatureError, match="Failed to sign message: RuntimeError"):
            sign_message(BrokenKey(), "payload")


class TestRequestSigner:
    """Test RequestSigner."""

    @pytest.fixture
    def signer(self):
        """Signer built from the test credentials."""
        return RequestSigner(ApiCredentials(TEST_API_KEY, TEST_SECRET_KEY))

    @patch("rh_crypto_client.crypto_helpers.time")
    def test_sign_request_headers(self, mock_time, signer):
        """Test that signed headers carry the key, timestamp and a valid signature."""
        mock_time.time.return_value = 1700000000.4

        signed = signer.sign_request("get", "/api/v1/crypto/trading/accounts/")

        assert signed.method == "GET"
        assert signed.timestamp == 1700000000
        assert signed.headers["x-api-key"] == TEST_API_KEY
        assert signed.headers["x-timestamp"] == "1700000000"
        assert signed.headers["x-signature"] == signed.signature
        verify(signed.signature, f"{TEST_API_KEY}1700000000/api/v1/crypto/trading/accounts/GET")

    @patch("rh_crypto_client.crypto_helpers.time")
    def test_sign_request_with_body(self, mock_time, signer):
        """Test that the body is covered by the signature."""
        mock_time.time.return_value = 1700000000.0
        body = '{"symbol":"BTC-USD"}'

        signed = signer.sign_request("POST", "/api/v1/crypto/trading/orders/", body)

        verify(signed.signature, f"{TEST_API_KEY}1700000000/api/v1/crypto/trading/orders/POST{body}")

    @patch("rh_crypto_client.crypto_helpers.time")
    def test_supplied_timestamp_is_signed(self, mock_time, signer):
        """Test that a caller-supplied fresh timestamp is used as-is."""
        mock_time.time.return_value = 1700000010.0

        signed = signer.sign_request("GET", "/a", timestamp=1700000000)

        assert signed.headers["x-timestamp"] == "1700000000"
        verify(signed.signature, f"{TEST_API_KEY}1700000000/aGET")

    @pytest.mark.parametrize("offset", [-31, -3600, 5])
    @patch("rh_crypto_client.crypto_helpers.time")
    def test_stale_or_future_timestamp_rejected(self, mock_time, offset, signer):
        """Test that a timestamp outside the window raises ValidationError."""
        mock_time.time.return_value = 1700000000.0

        with pytest.raises(ValidationError) as exc_info:
            signer.sign_request("GET", "/a", timestamp=1700000000 + offset)
        assert exc_info.value.field == "timestamp"

    def test_invalid_secret_rejected(self):
        """Test that construction fails on a bad secret."""
        with pytest.raises(SignatureError):
            RequestSigner(ApiCredentials(TEST_API_KEY, "c2hvcnQ="))

    def test_repr_masks_credentials(self, signer):
        """Test that repr does not reveal the key or secret."""
        text = repr(signer)
        assert TEST_API_KEY not in text
        assert TEST_SECRET_KEY not in text

    def test_credentials_repr_hides_secret(self):
        """Test that the secret is excluded from the credentials repr."""
        assert TEST_SECRET_KEY not in repr(ApiCredentials(TEST_API_KEY, TEST_SECRET_KEY))

    def test_validate_credentials(self, signer):
        """Test credential presence check."""
        assert signer.validate_credentials()
