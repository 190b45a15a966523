import logging

import aiohttp

import config
from clients.api_wrapper import ApiWrapper
from exceptions.base import UpstreamServiceException
from exceptions.shipping import ShippingProviderException

logger = logging.getLogger(__name__)


class UPSClient:
    """UPS OAuth (client credentials) + Rating API (Shop request option)."""

    @staticmethod
    async def get_access_token() -> str:
        if not config.UPS_CLIENT_ID or not config.UPS_CLIENT_SECRET:
            raise ShippingProviderException("UPS", "UPS API credentials not configured")
        if not config.UPS_ACCOUNT_NUMBER:
            raise ShippingProviderException("UPS", "UPS_ACCOUNT_NUMBER not configured")
        try:
            response = await ApiWrapper.fetch_api_request(
                f"{config.UPS_BASE_URL}/security/v1/oauth/token",
                method="POST",
                data={"grant_type": "client_credentials"},
                auth=aiohttp.BasicAuth(config.UPS_CLIENT_ID, config.UPS_CLIENT_SECRET),
                service="UPS"
            )
        except UpstreamServiceException as e:
            raise ShippingProviderException("UPS", "Failed to authenticate with UPS API", e.status_code) from e
        return response["access_token"]

    @staticmethod
    async def shop_rates(rate_request: dict) -> dict:
        access_token = await UPSClient.get_access_token()
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        try:
            return await ApiWrapper.fetch_api_request(
                f"{config.UPS_BASE_URL}/api/rating/v1/Shop",
                method="POST",
                json=rate_request,
                headers=headers,
                service="UPS"
            )
        except UpstreamServiceException as e:
            raise ShippingProviderException("UPS", f"UPS Rating API failed: {e.message}", e.status_code) from e
