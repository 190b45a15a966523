import hashlib
import hmac
import json
import logging
import time

from fastapi import APIRouter, Request, Depends
from pydantic import ValidationError

import config
from exceptions.base import ValidationException
from exceptions.payment import InvalidWebhookSignatureException
from models.payment import StripeEventDTO
from repositories.order import OrderRepository
from services.checkout import CheckoutService
from web.dependencies import generate_correlation_id, get_order_repository

logger = logging.getLogger(__name__)

processing_router = APIRouter(prefix="/stripe", tags=["stripe"])


def parse_signature_header(signature_header: str) -> tuple[int, list[str]]:
    """
    Split a Stripe-Signature header ("t=...,v1=...,v1=...") into timestamp and v1 signatures.

    Raises:
        InvalidWebhookSignatureException: Header lacks a timestamp or v1 signature
    """
    timestamp = None
    signatures = []
    for part in signature_header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                raise InvalidWebhookSignatureException("malformed timestamp")
        elif key == "v1" and value:
            signatures.append(value)
    if timestamp is None:
        raise InvalidWebhookSignatureException("missing timestamp")
    if not signatures:
        raise InvalidWebhookSignatureException("missing v1 signature")
    return timestamp, signatures


def compute_signature(payload: bytes, timestamp: int, secret: str) -> str:
    signed_payload = f"{timestamp}.".encode("utf-8") + payload
    return hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()


def verify_stripe_signature(payload: bytes, signature_header: str | None, secret: str,
                            tolerance_seconds: int, now: int | None = None) -> None:
    """
    Validate a webhook body against its Stripe-Signature header.

    Security: a missing header, a stale timestamp or a signature mismatch
    all reject the delivery. Comparison is constant-time.

    Raises:
        InvalidWebhookSignatureException: Verification failed
    """
    if not signature_header:
        raise InvalidWebhookSignatureException("missing Stripe-Signature header")
    if not secret:
        raise InvalidWebhookSignatureException("webhook secret not configured")

    timestamp, signatures = parse_signature_header(signature_header)
    now = int(time.time()) if now is None else now
    if tolerance_seconds > 0 and abs(now - timestamp) > tolerance_seconds:
        raise InvalidWebhookSignatureException("timestamp outside tolerance")

    expected = compute_signature(payload, timestamp, secret)
    if not any(hmac.compare_digest(expected, signature) for signature in signatures):
        raise InvalidWebhookSignatureException("signature mismatch")


@processing_router.post("/webhooks")
async def receive_stripe_webhook(request: Request,
                                 repository: OrderRepository = Depends(get_order_repository)):
    """
    Stripe webhook endpoint.

    Signature failures are answered with 403 and unreadable bodies with 400.
    Every verified event is acknowledged, handled or not.
    """
    correlation_id = generate_correlation_id()
    payload = await request.body()

    try:
        verify_stripe_signature(
            payload,
            request.headers.get("Stripe-Signature"),
            config.STRIPE_WEBHOOK_SECRET,
            config.STRIPE_WEBHOOK_TOLERANCE_SECONDS,
        )
    except InvalidWebhookSignatureException as e:
        logger.error(f"[{correlation_id}] Stripe webhook rejected: {e.reason}")
        raise

    try:
        event = StripeEventDTO.model_validate(json.loads(payload))
    except (ValueError, ValidationError) as e:
        logger.error(f"[{correlation_id}] Stripe webhook body unreadable: {e}")
        raise ValidationException("Invalid webhook payload")
    logger.info(f"[{correlation_id}] Stripe event {event.id} ({event.type}) verified")
    orders = await CheckoutService.handle_webhook_event(event, repository)
    logger.info(f"[{correlation_id}] Stripe event {event.id} processed, {len(orders)} order row(s) affected")
    return {"received": True}
