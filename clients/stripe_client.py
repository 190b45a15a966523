"""
Minimal Stripe REST client.

Stripe's API takes form-encoded bodies with bracketed keys
(line_items[0][price_data][currency]=usd); encode_form flattens nested
dicts/lists into that shape.
"""

import logging
from typing import Any

import config
from clients.api_wrapper import ApiWrapper
from exceptions.base import UpstreamServiceException
from exceptions.payment import PaymentProviderException

logger = logging.getLogger(__name__)


def encode_form(params: dict[str, Any], prefix: str | None = None) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        full_key = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, dict):
            pairs.extend(encode_form(value, full_key))
        elif isinstance(value, (list, tuple)):
            for index, element in enumerate(value):
                element_key = f"{full_key}[{index}]"
                if isinstance(element, dict):
                    pairs.extend(encode_form(element, element_key))
                else:
                    pairs.append((element_key, _format_scalar(element)))
        else:
            pairs.append((full_key, _format_scalar(value)))
    return pairs


def _format_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class StripeClient:

    @staticmethod
    def _headers() -> dict:
        return {"Authorization": f"Bearer {config.STRIPE_SECRET_KEY}"}

    @staticmethod
    async def _request(method: str, path: str, params: dict | None = None) -> dict:
        url = f"{config.STRIPE_API_URL}{path}"
        try:
            if method == "GET":
                return await ApiWrapper.fetch_api_request(
                    url, method="GET", params=encode_form(params or {}) or None,
                    headers=StripeClient._headers(), service="stripe"
                )
            return await ApiWrapper.fetch_api_request(
                url, method=method, data=encode_form(params or {}),
                headers=StripeClient._headers(), service="stripe"
            )
        except UpstreamServiceException as e:
            raise PaymentProviderException(e.message, e.status_code) from e

    @staticmethod
    async def create_checkout_session(params: dict[str, Any]) -> dict:
        return await StripeClient._request("POST", "/checkout/sessions", params)

    @staticmethod
    async def retrieve_checkout_session(session_id: str) -> dict:
        return await StripeClient._request("GET", f"/checkout/sessions/{session_id}")

    @staticmethod
    async def find_checkout_session_by_payment_intent(payment_intent_id: str) -> dict | None:
        response = await StripeClient._request(
            "GET", "/checkout/sessions", {"payment_intent": payment_intent_id, "limit": 1}
        )
        sessions = response.get("data") or []
        return sessions[0] if sessions else None
