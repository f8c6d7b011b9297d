# -*- coding: utf-8 -*-
"""
Tests for aiohttp session lifecycle management.
"""

import aiohttp
import pytest

from rh_crypto_client.session_manager import SessionManager


class TestSessionManager:
    """Test SessionManager."""

    @pytest.mark.asyncio
    async def test_create_session_configured(self, client_config):
        """Test timeout and default headers of a new session."""
        manager = SessionManager(client_config)

        session = await manager.create_session()
        try:
            assert isinstance(session, aiohttp.ClientSession)
            assert session.timeout.total == 10
            assert session.headers["User-Agent"].startswith("rh-crypto-client/")
        finally:
            await manager.close_session()

    @pytest.mark.asyncio
    async def test_session_reused(self, client_config):
        """Test that an open session is reused."""
        manager = SessionManager(client_config)

        first = await manager.create_session()
        second = await manager.create_session()
        assert first is second
        await manager.close_session()

    @pytest.mark.asyncio
    async def test_close_and_recreate(self, client_config):
        """Test that a closed session is replaced."""
        manager = SessionManager(client_config)

        first = await manager.create_session()
        await manager.close_session()
        assert first.closed
        assert manager._session is None

        second = await manager.create_session()
        assert second is not first
        await manager.close_session()

    @pytest.mark.asyncio
    async def test_close_without_session(self, client_config):
        """Test that closing with no session is a no-op."""
        manager = SessionManager(client_config)
        await manager.close_session()
        assert manager._session is None
