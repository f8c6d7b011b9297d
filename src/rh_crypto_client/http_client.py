"""
HTTP client for the crypto trading API.

Composes request signing, token bucket admission with retry, and response
normalization. Each call is admitted, signed, sent, and then either
decoded or translated into a typed error.
"""

import asyncio
import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import aiohttp
from aiohttp import ClientResponse

from .auth import ApiCredentials, RequestSigner
from .constants import (
    HTTP_BAD_REQUEST,
    HTTP_FORBIDDEN,
    HTTP_TOO_MANY_REQUESTS,
    HTTP_UNAUTHORIZED,
    REQUEST_ID_HEADER,
    RETRY_AFTER_HEADER,
)
from .crypto_helpers import normalize_path, sanitize_error_message
from .errors import (
    ApiError,
    AuthenticationError,
    CryptoClientError,
    NetworkError,
    RateLimitError,
    ValidationError,
)
from .models.config import ClientConfig
from .models.http import (
    HTTP_METHODS,
    EmptyBody,
    NormalizedResponse,
    RequestOptions,
    request_body_from,
)
from .rate_limiter import RateLimiterStatus, RateLimiterWithRetry, TokenBucketRateLimiter
from .session_manager import SessionManager

logger = logging.getLogger(__name__)

RequestInterceptor = Callable[[RequestOptions], Union[RequestOptions, Awaitable[RequestOptions]]]
ResponseInterceptor = Callable[[NormalizedResponse], Union[NormalizedResponse, Awaitable[NormalizedResponse]]]


class HttpClient:
    """HTTP client specialized for signed, rate-limited API calls."""

    def __init__(
        self,
        config: ClientConfig,
        rate_limiter: Optional[RateLimiterWithRetry] = None,
        session_manager: Optional[SessionManager] = None,
    ):
        """
        Initialize HTTP client with configuration.

        Args:
            config: Validated client configuration
            rate_limiter: Admission gate; one bucket per client is created
                from config.rate_limit when omitted
            session_manager: aiohttp session owner

        Raises:
            SignatureError: If the secret key cannot be imported
        """
        self._config = config
        self._signer = RequestSigner(ApiCredentials(config.api_key, config.secret_key))
        self._rate_limiter = rate_limiter or RateLimiterWithRetry(
            TokenBucketRateLimiter(config.rate_limit), config.retry
        )
        self._session_manager = session_manager or SessionManager(config)
        self._request_interceptors: List[RequestInterceptor] = []
        self._response_interceptors: List[ResponseInterceptor] = []

        if config.debug:
            self.add_request_interceptor(self._debug_request_interceptor)
            self.add_response_interceptor(self._debug_response_interceptor)

    def add_request_interceptor(self, interceptor: RequestInterceptor) -> None:
        """Register a hook that may rewrite request options before signing."""
        self._request_interceptors.append(interceptor)

    def add_response_interceptor(self, interceptor: ResponseInterceptor) -> None:
        """Register a hook applied to every successful response."""
        self._response_interceptors.append(interceptor)

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        timeout_ms: Optional[int] = None,
    ) -> NormalizedResponse:
        """
        Execute an authenticated, rate-limited request.

        Args:
            method: GET, POST, PUT or DELETE
            path: API path, optionally with a query string
            body: None, a pre-serialized string, or a mapping sent as JSON
            headers: Extra headers; authentication headers always win
            timeout_ms: Per-request timeout, defaults to config.timeout_ms

        Returns:
            NormalizedResponse with the decoded body

        Raises:
            ValidationError: Bad input, or HTTP 400
            AuthenticationError: HTTP 401/403
            RateLimitError: Throttled and retries exhausted
            ApiError: HTTP 5xx or other error statuses
            NetworkError: Timeout or connection failure
        """
        method = method.upper()
        if method not in HTTP_METHODS:
            raise ValidationError(f"Unsupported HTTP method: {method}", field="method")

        try:
            request_body = request_body_from(body)
        except TypeError as e:
            raise ValidationError(str(e), field="body") from e

        options = RequestOptions(
            method=method,
            path=path,
            body=EmptyBody() if method == "GET" else request_body,
            headers=dict(headers or {}),
            timeout_ms=timeout_ms,
        )

        async def send() -> NormalizedResponse:
            return await self._send(options)

        return await self._rate_limiter.execute(send)

    async def get(self, path: str, **kwargs: Any) -> NormalizedResponse:
        """GET request."""
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, body: Any = None, **kwargs: Any) -> NormalizedResponse:
        """POST request."""
        return await self.request("POST", path, body=body, **kwargs)

    async def put(self, path: str, body: Any = None, **kwargs: Any) -> NormalizedResponse:
        """PUT request."""
        return await self.request("PUT", path, body=body, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> NormalizedResponse:
        """DELETE request."""
        return await self.request("DELETE", path, **kwargs)

    def get_rate_limiter_status(self) -> RateLimiterStatus:
        return self._rate_limiter.get_status()

    def reset_rate_limiter(self) -> None:
        self._rate_limiter.reset()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self._session_manager.close_session()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _send(self, options: RequestOptions) -> NormalizedResponse:
        """Sign and send one admitted request."""
        for interceptor in self._request_interceptors:
            options = await _maybe_await(interceptor(options))

        body = options.body.serialize()
        signed = self._signer.sign_request(options.method, options.path, body)
        url = self._build_url(options.path)
        timeout_ms = options.timeout_ms or self._config.timeout_ms

        request_headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        request_headers.update(options.headers)
        request_headers.update(signed.headers)

        request_kwargs: Dict[str, Any] = {
            "method": options.method,
            "url": url,
            "headers": request_headers,
            "timeout": aiohttp.ClientTimeout(total=timeout_ms / 1000),
        }
        if body:
            request_kwargs["data"] = body

        session = await self._session_manager.create_session()
        try:
            async with session.request(**request_kwargs) as response:
                normalized = await self._process_response(response, url)
        except CryptoClientError:
            raise
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Request timeout after {timeout_ms}ms") from e
        except aiohttp.ClientError as e:
            raise NetworkError(self._sanitize(f"Network request failed: {e}")) from e
        except OSError as e:
            raise NetworkError(self._sanitize(f"Network request failed: {e}")) from e

        for interceptor in self._response_interceptors:
            normalized = await _maybe_await(interceptor(normalized))

        return normalized

    def _build_url(self, path: str) -> str:
        return f"{self._config.base_url.rstrip('/')}{normalize_path(path)}"

    def _sanitize(self, message: str) -> str:
        return sanitize_error_message(message, [self._config.api_key, self._config.secret_key])

    async def _process_response(self, response: ClientResponse, url: str) -> NormalizedResponse:
        """Decode a response, or raise the typed error for its status."""
        request_id = response.headers.get(REQUEST_ID_HEADER)

        if response.status >= 400:
            await self._handle_error_response(response)

        content_type = response.headers.get("Content-Type", "")
        try:
            response_text = await response.text()
        except UnicodeDecodeError as e:
            raise ApiError(
                f"Undecodable response body (Status {response.status})",
                status_code=response.status,
                response_body=None,
            ) from e

        if "application/json" in content_type:
            data = self._decode_json(response_text, response.status)
        else:
            data = response_text

        return NormalizedResponse(
            data=data,
            status=response.status,
            headers=dict(response.headers),
            url=str(response.url) if response.url else url,
            request_id=request_id,
        )

    def _decode_json(self, text: str, status: int) -> Any:
        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise ApiError(
                f"Invalid JSON response (Status {status}): {text[:200]}",
                status_code=status,
                response_body=text,
            ) from e

    async def _read_error_body(self, response: ClientResponse) -> Any:
        try:
            text = await response.text()
        except (aiohttp.ClientError, UnicodeDecodeError):
            return None
        if "application/json" in response.headers.get("Content-Type", ""):
            try:
                return json.loads(text) if text else None
            except json.JSONDecodeError:
                return text
        return text

    async def _handle_error_response(self, response: ClientResponse) -> None:
        """Map an error status onto the error taxonomy."""
        error_body = await self._read_error_body(response)
        base_message = f"HTTP {response.status}: {response.reason or ''}".rstrip(": ")
        status = response.status

        if status == HTTP_BAD_REQUEST:
            if _is_api_error_response(error_body):
                field_errors = error_body["errors"]
                details = "; ".join(str(item.get("detail", "")) for item in field_errors)
                first_attr = next((item.get("attr") for item in field_errors if item.get("attr")), None)
                raise ValidationError(
                    f"{base_message} - {details}",
                    field=first_attr,
                    error_type=error_body.get("type"),
                    field_errors=field_errors,
                )
            raise ValidationError(base_message)

        if status == HTTP_UNAUTHORIZED:
            raise AuthenticationError(f"{base_message} - Invalid API credentials")

        if status == HTTP_FORBIDDEN:
            raise AuthenticationError(f"{base_message} - Access forbidden")

        if status == HTTP_TOO_MANY_REQUESTS:
            raise RateLimitError(
                base_message,
                retry_after_ms=_parse_retry_after_ms(response.headers.get(RETRY_AFTER_HEADER)),
            )

        raise ApiError(base_message, status_code=status, response_body=error_body)

    def _debug_request_interceptor(self, options: RequestOptions) -> RequestOptions:
        logger.debug(f"[HTTP] {options.method} {options.path}")
        return options

    def _debug_response_interceptor(self, response: NormalizedResponse) -> NormalizedResponse:
        logger.debug(f"[HTTP] {response.status} {response.url} request_id={response.request_id}")
        return response


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _is_api_error_response(body: Any) -> bool:
    return (
        isinstance(body, dict)
        and "type" in body
        and isinstance(body.get("errors"), list)
        and all(isinstance(item, dict) for item in body["errors"])
    )


def _parse_retry_after_ms(value: Optional[str]) -> Optional[int]:
    """Convert a Retry-After header given in whole seconds to milliseconds, never negative."""
    if value is None:
        return None
    try:
        return max(0, int(value.strip())) * 1000
    except ValueError:
        return None
