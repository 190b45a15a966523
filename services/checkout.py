"""
Checkout Service

Stripe Checkout orchestration:
- Builds the hosted checkout session from a cart snapshot and precomputed totals
- Reports session status to the success page
- Reconciles webhook deliveries into order rows (one per cart line + ORDER_SUMMARY)

Nothing is persisted when the session is created; orders only exist once
Stripe reports the session as paid.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager

import config
from clients.stripe_client import StripeClient
from enums.order_status import PaymentStatus
from exceptions.base import ValidationException
from exceptions.order import GuestCheckoutNotAllowedException
from models.cart import CartItemDTO
from models.checkout import CheckoutSessionRequest, CheckoutCustomerDTO, CheckoutSessionDTO, CheckoutSessionStatusDTO
from models.order import ORDER_SUMMARY_TIER, OrderDTO, OrderCreateDTO, UpdatePaymentStatusRequest
from models.payment import StripeEventDTO, StripeCheckoutSessionDTO
from repositories.order import OrderRepository
from services.guest_checkout import GuestCheckoutService
from services.order import OrderService
from utils.session_validator import SessionUserDTO

logger = logging.getLogger(__name__)

ALLOWED_SHIPPING_COUNTRIES = ["US", "CA", "MX"]
GUEST_USER_ID_PREFIX = "guest:"


def to_cents(amount: float) -> int:
    return int(round(amount * 100))


def to_cents_decimal(amount: float) -> str:
    """Cents as a decimal string, keeping sub-cent unit prices (0.072 -> "7.2")."""
    return f"{amount * 100:.4f}".rstrip("0").rstrip(".")


class CheckoutService:
    # Serializes reconciliation per checkout session inside this process
    _session_locks: dict[str, asyncio.Lock] = {}
    # Holders plus waiters per session; the lock is dropped when this reaches zero
    _session_lock_users: dict[str, int] = {}

    @staticmethod
    def resolve_customer(request: CheckoutSessionRequest, user: SessionUserDTO | None) -> CheckoutCustomerDTO:
        """
        Identify who pays.

        Signed-in users are taken from the session. Guests must supply
        contact details and pass the guest quantity rules.

        Raises:
            ValidationException: Guest without contact details
            GuestCheckoutNotAllowedException: Guest cart requires an account
        """
        if user is not None:
            return CheckoutCustomerDTO(
                user_id=user.user_id,
                email=user.email,
                name=user.name or (user.email.split("@")[0] if user.email else None),
                is_guest=False,
            )

        if request.guest is None:
            raise ValidationException("Guest checkout requires an email address and name", field="guest")

        validation = GuestCheckoutService.validate_guest_checkout(request.cart_items)
        if not validation.is_allowed:
            raise GuestCheckoutNotAllowedException(
                GuestCheckoutService.get_auth_required_message(validation),
                validation.total_dowel_quantity
            )
        return CheckoutCustomerDTO(
            user_id=f"{GUEST_USER_ID_PREFIX}{request.guest.email}",
            email=request.guest.email,
            name=request.guest.name,
            is_guest=True,
        )

    @staticmethod
    def build_line_items(request: CheckoutSessionRequest) -> list[dict]:
        line_items = [
            {
                "price_data": {
                    "currency": "usd",
                    "product_data": {
                        "name": item.name,
                        "description": f"Tier: {item.tier}",
                    },
                    "unit_amount_decimal": to_cents_decimal(item.price_per_unit),
                },
                "quantity": item.quantity,
            }
            for item in request.cart_items
        ]
        if request.shipping_cost > 0:
            line_items.append({
                "price_data": {
                    "currency": "usd",
                    "product_data": {
                        "name": "Shipping",
                        "description": f"{request.shipping_option} shipping",
                    },
                    "unit_amount": to_cents(request.shipping_cost),
                },
                "quantity": 1,
            })
        if request.tax_amount > 0:
            line_items.append({
                "price_data": {
                    "currency": "usd",
                    "product_data": {
                        "name": "Tax",
                        "description": f"Sales tax ({request.tax_rate * 100:.1f}%)",
                    },
                    "unit_amount": to_cents(request.tax_amount),
                },
                "quantity": 1,
            })
        return line_items

    @staticmethod
    def build_metadata(request: CheckoutSessionRequest, customer: CheckoutCustomerDTO) -> dict[str, str]:
        """Everything needed to persist the order later; Stripe metadata values must be strings."""
        return {
            "user_id": customer.user_id,
            "user_name": customer.name or "",
            "user_email": customer.email or "",
            "is_guest": "true" if customer.is_guest else "false",
            "shipping_info": json.dumps(request.shipping_info, separators=(",", ":")),
            "billing_info": json.dumps(request.billing_info, separators=(",", ":")),
            "cart_items": json.dumps([item.model_dump() for item in request.cart_items], separators=(",", ":")),
            "shipping_option": request.shipping_option or "standard",
            "subtotal": str(request.subtotal),
            "shipping_cost": str(request.shipping_cost),
            "tax_amount": str(request.tax_amount),
            "tax_rate": str(request.tax_rate),
            "order_total": str(request.order_total),
        }

    @staticmethod
    def build_session_params(request: CheckoutSessionRequest, customer: CheckoutCustomerDTO) -> dict:
        params = {
            "payment_method_types": ["card"],
            "line_items": CheckoutService.build_line_items(request),
            "mode": "payment",
            "success_url": f"{config.SITE_URL}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{config.SITE_URL}/checkout?canceled=true",
            "metadata": CheckoutService.build_metadata(request, customer),
            "shipping_address_collection": {"allowed_countries": ALLOWED_SHIPPING_COUNTRIES},
            "billing_address_collection": "required",
        }
        if customer.email:
            params["customer_email"] = customer.email
        return params

    @staticmethod
    async def create_checkout_session(request: CheckoutSessionRequest,
                                      user: SessionUserDTO | None) -> CheckoutSessionDTO:
        """
        Create a Stripe Checkout session.

        Raises:
            PaymentProviderException: If Stripe rejects the session
        """
        customer = CheckoutService.resolve_customer(request, user)
        logger.info(f"Creating checkout session: {len(request.cart_items)} item(s), "
                    f"total {request.order_total}, guest={customer.is_guest}")
        session = await StripeClient.create_checkout_session(CheckoutService.build_session_params(request, customer))
        logger.info(f"Checkout session {session['id']} created")
        return CheckoutSessionDTO(session_id=session["id"], url=session.get("url"))

    @staticmethod
    async def get_session_status(session_id: str) -> CheckoutSessionStatusDTO:
        session = StripeCheckoutSessionDTO.model_validate(await StripeClient.retrieve_checkout_session(session_id))
        return CheckoutSessionStatusDTO(
            status=session.status,
            payment_status=session.payment_status,
            customer_email=session.customer_email,
        )

    @staticmethod
    async def handle_webhook_event(event: StripeEventDTO, repository: OrderRepository) -> list[OrderDTO]:
        """
        Dispatch one verified Stripe event.

        Returns:
            Orders created or updated by the event (empty for informational events)
        """
        match event.type:
            case "checkout.session.completed":
                session = StripeCheckoutSessionDTO.model_validate(event.payload)
                logger.info(f"Checkout session {session.id} completed, payment_status={session.payment_status}")
                if session.payment_status == PaymentStatus.PAID.value:
                    orders, _ = await CheckoutService.record_paid_session(session, repository)
                    return orders
                if session.payment_status == PaymentStatus.UNPAID.value:
                    # ACH: funds settle later and arrive as payment_intent.succeeded
                    logger.info(f"Session {session.id} awaiting delayed payment")
                return []
            case "payment_intent.succeeded":
                payment_intent_id = event.payload.get("id")
                session_data = await StripeClient.find_checkout_session_by_payment_intent(payment_intent_id)
                if session_data is None:
                    logger.warning(f"No checkout session found for payment intent {payment_intent_id}")
                    return []
                session = StripeCheckoutSessionDTO.model_validate(session_data)
                orders, _ = await CheckoutService.record_paid_session(session, repository)
                return orders
            case "payment_intent.processing":
                logger.info(f"Payment intent {event.payload.get('id')} processing")
                return []
            case "payment_intent.payment_failed":
                logger.warning(f"Payment intent {event.payload.get('id')} failed")
                return []
            case _:
                logger.info(f"Unhandled Stripe event type: {event.type}")
                return []

    @staticmethod
    def parse_cart_items(metadata: dict[str, str]) -> list[CartItemDTO]:
        return [CartItemDTO.model_validate(item) for item in json.loads(metadata.get("cart_items") or "[]")]

    @staticmethod
    @asynccontextmanager
    async def _session_lock(session_id: str):
        lock = CheckoutService._session_locks.setdefault(session_id, asyncio.Lock())
        CheckoutService._session_lock_users[session_id] = CheckoutService._session_lock_users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = CheckoutService._session_lock_users[session_id] - 1
            if remaining:
                CheckoutService._session_lock_users[session_id] = remaining
            else:
                del CheckoutService._session_lock_users[session_id]
                CheckoutService._session_locks.pop(session_id, None)

    @staticmethod
    async def record_paid_session(session: StripeCheckoutSessionDTO,
                                  repository: OrderRepository) -> tuple[list[OrderDTO], list[str]]:
        """
        Persist a paid checkout session exactly once.

        Redelivered events find the session's rows and only (re)assert
        payment_status=paid; completion emails follow the first transition.

        Returns:
            Tuple of (session orders, email warnings)
        """
        async with CheckoutService._session_lock(session.id):
            existing = await repository.get_orders_by_stripe_session_id(session.id)
            if existing:
                logger.info(f"Session {session.id} already has {len(existing)} order row(s), updating payment status")
                return await OrderService.update_payment_status(
                    UpdatePaymentStatusRequest(stripe_session_id=session.id, payment_status=PaymentStatus.PAID.value),
                    repository
                )

            metadata = session.metadata or {}
            if not metadata.get("user_id"):
                logger.error(f"Session {session.id} has no order metadata, nothing recorded")
                return [], []
            try:
                cart_items = CheckoutService.parse_cart_items(metadata)
                shipping_info = json.loads(metadata.get("shipping_info") or "{}")
                billing_info = json.loads(metadata.get("billing_info") or "{}")
                shipping_cost = float(metadata.get("shipping_cost") or 0)
                order_total = float(metadata.get("order_total") or 0)
            except ValueError as e:
                logger.error(f"Session {session.id} has unreadable order metadata: {e}")
                return [], []
            if not cart_items:
                logger.error(f"Session {session.id} has no cart items in metadata, nothing recorded")
                return [], []

            common = {
                "user_id": metadata["user_id"],
                "user_email": metadata.get("user_email") or session.customer_email,
                "user_name": metadata.get("user_name"),
                "payment_status": PaymentStatus.PAID.value,
                "stripe_session_id": session.id,
                "billing_info": billing_info,
            }
            orders = []
            for item in cart_items:
                orders.append(await repository.create_order(OrderCreateDTO(
                    quantity=item.quantity,
                    tier=item.tier,
                    total_price=round(item.line_total, 2),
                    shipping_info=shipping_info,
                    **common,
                )))
            orders.append(await repository.create_order(OrderCreateDTO(
                quantity=sum(item.quantity for item in cart_items),
                tier=ORDER_SUMMARY_TIER,
                total_price=order_total,
                shipping_info={
                    **shipping_info,
                    "shipping_option": metadata.get("shipping_option") or "standard",
                    "shipping_cost": shipping_cost,
                },
                **common,
            )))
            logger.info(f"Recorded {len(orders)} order row(s) for session {session.id}")

        warnings = await OrderService.send_order_completion_emails(orders)
        return orders, warnings
