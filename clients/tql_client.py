import logging
import time

import config
from clients.api_wrapper import ApiWrapper
from exceptions.base import UpstreamServiceException
from exceptions.shipping import ShippingProviderException

logger = logging.getLogger(__name__)

TQL_SCOPES = " ".join([
    "https://tqlidentity.onmicrosoft.com/services_combined/LTLQuotes.Read",
    "https://tqlidentity.onmicrosoft.com/services_combined/LTLQuotes.Write",
])

# Refresh the cached token this many seconds before it actually expires
TOKEN_EXPIRY_MARGIN_SECONDS = 300


class TQLClient:
    """TQL LTL quoting API (password grant token, cached per process)."""

    _token: str | None = None
    _token_expires_at: float = 0.0

    @classmethod
    async def get_access_token(cls) -> str:
        if cls._token and time.time() < cls._token_expires_at:
            return cls._token

        form = {
            "client_id": config.TQL_CLIENT_ID,
            "client_secret": config.TQL_CLIENT_SECRET,
            "scope": TQL_SCOPES,
            "grant_type": "password",
            "username": config.TQL_USERNAME,
            "password": config.TQL_PASSWORD,
        }
        headers = {"Ocp-Apim-Subscription-Key": config.TQL_SUBSCRIPTION_KEY}
        try:
            response = await ApiWrapper.fetch_api_request(
                f"{config.TQL_BASE_URL}/identity/token",
                method="POST",
                data=form,
                headers=headers,
                service="TQL"
            )
        except UpstreamServiceException as e:
            raise ShippingProviderException("TQL", f"TQL authentication failed: {e.message}", e.status_code) from e

        cls._token = response["access_token"]
        cls._token_expires_at = time.time() + int(response.get("expires_in", 3600)) - TOKEN_EXPIRY_MARGIN_SECONDS
        return cls._token

    @classmethod
    async def create_quote(cls, quote_request: dict) -> dict:
        token = await cls.get_access_token()
        headers = {
            "Content-Type": "application/json",
            "Ocp-Apim-Subscription-Key": config.TQL_SUBSCRIPTION_KEY,
            "Authorization": f"Bearer {token}",
        }
        try:
            return await ApiWrapper.fetch_api_request(
                f"{config.TQL_BASE_URL}/ltl/quotes",
                method="POST",
                json=quote_request,
                headers=headers,
                service="TQL"
            )
        except UpstreamServiceException as e:
            raise ShippingProviderException("TQL", f"TQL quote creation failed: {e.message}", e.status_code) from e
