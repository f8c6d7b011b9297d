"""
Session management for the crypto trading client.

Handles connection lifecycle, session creation, and resource cleanup.
"""

import aiohttp
from typing import Optional

from .constants import DEFAULT_USER_AGENT
from .models.config import ClientConfig


class SessionManager:
    """Manages HTTP session lifecycle for the client."""

    def __init__(self, config: ClientConfig):
        """Initialize session manager with configuration."""
        self._config = config
        self._session: Optional[aiohttp.ClientSession] = None

    async def create_session(self) -> aiohttp.ClientSession:
        """Create and configure HTTP session."""
        if self._session is not None and not self._session.closed:
            return self._session

        timeout = aiohttp.ClientTimeout(total=self._config.timeout_ms / 1000)

        headers = {
            "User-Agent": DEFAULT_USER_AGENT,
            "Accept": "application/json",
        }

        self._session = aiohttp.ClientSession(
            timeout=timeout,
            headers=headers,
        )

        return self._session

    async def close_session(self) -> None:
        """Close HTTP session and cleanup resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
