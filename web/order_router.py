import logging

from fastapi import APIRouter, Depends

from models.order import CreateOrderRequest, UpdatePaymentStatusRequest
from repositories.order import OrderRepository
from services.order import OrderService
from utils.session_validator import SessionUserDTO
from web.dependencies import generate_correlation_id, get_current_user, get_order_repository, require_admin_token

logger = logging.getLogger(__name__)

order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("")
async def create_order(payload: CreateOrderRequest,
                       user: SessionUserDTO = Depends(get_current_user),
                       repository: OrderRepository = Depends(get_order_repository)):
    correlation_id = generate_correlation_id()
    logger.info(f"[{correlation_id}] Creating order for user {user.user_id}")
    order = await OrderService.create_order(payload, user, repository)
    return {"success": True, "order": order.model_dump(mode="json")}


@order_router.get("")
async def list_orders(user: SessionUserDTO = Depends(get_current_user),
                      repository: OrderRepository = Depends(get_order_repository)):
    orders = await OrderService.get_orders_for_user(user.user_id, repository)
    return {"success": True, "orders": [order.model_dump(mode="json") for order in orders]}


@order_router.post("/update-payment-status", dependencies=[Depends(require_admin_token)])
async def update_payment_status(payload: UpdatePaymentStatusRequest,
                                repository: OrderRepository = Depends(get_order_repository)):
    """
    Update payment status by stripe_session_id (every row of the session) or order_id.

    Operator tool gated by X-Admin-Token; customer payments arrive through the Stripe webhook.

    Returns:
        200: Updated orders; email warnings when the update made the order paid
        400: Neither stripe_session_id nor order_id given
        401/403: Admin token missing or wrong
        404: No matching orders
    """
    correlation_id = generate_correlation_id()
    target = f"session {payload.stripe_session_id}" if payload.stripe_session_id else f"order {payload.order_id}"
    logger.info(f"[{correlation_id}] Updating payment status of {target} to '{payload.payment_status}'")
    orders, warnings = await OrderService.update_payment_status(payload, repository)
    return {
        "success": True,
        "message": "Order payment status updated successfully",
        "orders": [order.model_dump(mode="json") for order in orders],
        "warnings": warnings,
    }


@order_router.get("/{order_id}")
async def get_order(order_id: int,
                    user: SessionUserDTO = Depends(get_current_user),
                    repository: OrderRepository = Depends(get_order_repository)):
    order = await OrderService.get_order_for_user(order_id, user.user_id, repository)
    return {"success": True, "order": order.model_dump(mode="json")}
