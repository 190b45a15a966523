import logging

from fastapi import APIRouter, Depends, Query

from models.cart import GuestCheckoutRequest
from models.checkout import CheckoutSessionRequest
from services.checkout import CheckoutService
from services.guest_checkout import GuestCheckoutService
from utils.session_validator import SessionUserDTO
from web.dependencies import generate_correlation_id, get_optional_user

logger = logging.getLogger(__name__)

checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("/session")
async def create_checkout_session(payload: CheckoutSessionRequest,
                                  user: SessionUserDTO | None = Depends(get_optional_user)):
    """
    Create a Stripe Checkout session for a signed-in user or a guest.

    Guests must send guest.email/guest.name and stay within the guest
    dowel limit (400 with requires_auth details otherwise).
    """
    correlation_id = generate_correlation_id()
    logger.info(f"[{correlation_id}] Checkout session requested by "
                f"{'user ' + user.user_id if user else 'guest'}")
    checkout_session = await CheckoutService.create_checkout_session(payload, user)
    logger.info(f"[{correlation_id}] Checkout session {checkout_session.session_id} created")
    return {"success": True, **checkout_session.model_dump()}


@checkout_router.get("/session/status")
async def get_checkout_session_status(session_id: str = Query(..., min_length=1)):
    session_status = await CheckoutService.get_session_status(session_id)
    return {"success": True, **session_status.model_dump()}


@checkout_router.post("/guest-validation")
async def validate_guest_checkout(payload: GuestCheckoutRequest):
    """Classify a cart for the checkout page: can it be bought without an account?"""
    validation = GuestCheckoutService.validate_guest_checkout(payload.cart_items)
    return {
        "success": True,
        "validation": validation.model_dump(),
        "message": GuestCheckoutService.get_auth_required_message(validation),
        "call_to_action": GuestCheckoutService.get_auth_call_to_action(validation).model_dump(),
    }
