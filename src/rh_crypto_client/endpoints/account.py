"""
Account endpoint for the crypto trading client.
"""

import logging
from typing import Any, Dict

from ..constants import ACCOUNTS_PATH
from ..errors import ApiError, CryptoClientError
from ..models.account import AccountDetails, BuyingPower
from ..utils import safe_get, to_decimal
from .base import BaseEndpoint

logger = logging.getLogger(__name__)


def parse_account_details(data: Dict[str, Any]) -> AccountDetails:
    """Create AccountDetails from a response dictionary."""
    return AccountDetails(
        account_number=str(safe_get(data, "account_number", "")),
        status=safe_get(data, "status", ""),
        buying_power=to_decimal(safe_get(data, "buying_power")),
        buying_power_currency=safe_get(data, "buying_power_currency", "USD"),
    )


class AccountEndpoint(BaseEndpoint):
    """Account information for the authenticated user."""

    async def get_account_details(self) -> AccountDetails:
        """Get account details."""
        response = await self._http_client.get(ACCOUNTS_PATH)
        if not isinstance(response.data, dict):
            raise ApiError(
                "Unexpected account details response",
                status_code=response.status,
                response_body=response.data,
            )
        return parse_account_details(response.data)

    async def get_account_status(self) -> str:
        """Get the account status string, e.g. 'active'."""
        account = await self.get_account_details()
        return account.status

    async def get_buying_power(self) -> BuyingPower:
        """Get available buying power and its currency."""
        account = await self.get_account_details()
        return BuyingPower(amount=account.buying_power, currency=account.buying_power_currency)

    async def is_account_active(self) -> bool:
        """
        Check whether the account is active.

        Best-effort: any client error while fetching the account is logged
        at DEBUG and reported as False.
        """
        try:
            account = await self.get_account_details()
        except CryptoClientError as e:
            logger.debug(f"Account status check failed: {e}")
            return False
        return account.status == "active"
