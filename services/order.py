import logging
from collections import defaultdict

from enums.order_status import PaymentStatus
from exceptions.base import ValidationException
from exceptions.email import EmailDeliveryException
from exceptions.order import OrderNotFoundException, OrderOwnershipException
from models.order import (
    ORDER_SUMMARY_TIER, OrderDTO, OrderCreateDTO, CreateOrderRequest, UpdatePaymentStatusRequest,
    DuplicateSessionDTO, OrderCleanupReportDTO,
)
from repositories.order import OrderRepository
from services.notification import NotificationService
from utils.session_validator import SessionUserDTO

logger = logging.getLogger(__name__)


class OrderService:

    @staticmethod
    async def create_order(request: CreateOrderRequest, user: SessionUserDTO,
                           repository: OrderRepository) -> OrderDTO:
        """Create an order owned by the authenticated user."""
        if not user.email:
            raise ValidationException("User email is required to place an order", field="user_email")
        order_data = OrderCreateDTO(
            user_id=user.user_id,
            user_email=user.email,
            user_name=user.name or user.email,
            **request.model_dump(),
        )
        order = await repository.create_order(order_data)
        logger.info(f"Order {order.id} created for user {user.user_id} ({order.quantity} x {order.tier})")
        return order

    @staticmethod
    async def get_orders_for_user(user_id: str, repository: OrderRepository) -> list[OrderDTO]:
        return await repository.get_orders_by_user_id(user_id)

    @staticmethod
    async def get_order_for_user(order_id: int, user_id: str, repository: OrderRepository) -> OrderDTO:
        """
        Raises:
            OrderNotFoundException: If the order does not exist
            OrderOwnershipException: If it belongs to someone else
        """
        order = await repository.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundException(order_id=order_id)
        if order.user_id != user_id:
            raise OrderOwnershipException(order_id, user_id)
        return order

    @staticmethod
    async def update_payment_status(request: UpdatePaymentStatusRequest,
                                    repository: OrderRepository) -> tuple[list[OrderDTO], list[str]]:
        """
        Update payment status by checkout session (all rows) or by order id.

        Completion emails go out only when the update is what made the
        session paid, so repeated calls do not re-send them.

        Returns:
            Tuple of (updated orders, warnings from email delivery)
        """
        if request.stripe_session_id:
            before = await repository.get_orders_by_stripe_session_id(request.stripe_session_id)
            if not before:
                raise OrderNotFoundException(stripe_session_id=request.stripe_session_id)
            orders = await repository.update_orders_payment_status_by_session(
                request.stripe_session_id, request.payment_status
            )
            session_id = request.stripe_session_id
        else:
            before_order = await repository.get_by_id(request.order_id)
            if before_order is None:
                raise OrderNotFoundException(order_id=request.order_id)
            before = [before_order]
            orders = [await repository.update_order_payment_status(request.order_id, request.payment_status)]
            session_id = before_order.stripe_session_id

        logger.info(f"Payment status of {len(orders)} order(s) set to '{request.payment_status}'")

        became_paid = (request.payment_status == PaymentStatus.PAID.value
                       and any(order.payment_status != PaymentStatus.PAID.value for order in before))
        warnings = []
        if became_paid and session_id:
            session_orders = await repository.get_orders_by_stripe_session_id(session_id)
            warnings = await OrderService.send_order_completion_emails(session_orders)
        return orders, warnings

    @staticmethod
    async def send_order_completion_emails(orders: list[OrderDTO]) -> list[str]:
        """
        Send the customer confirmation and the admin notification for one session.

        Best-effort: each failure is logged and returned as a warning.
        """
        if not orders:
            return ["No orders found for session, no emails sent"]

        summary = next((order for order in orders if order.tier == ORDER_SUMMARY_TIER), None)
        items = [order for order in orders if order.tier != ORDER_SUMMARY_TIER]
        if summary is None:
            # Orders created one by one through POST /orders have no summary row
            summary = orders[0].model_copy(update={
                "total_price": round(sum(order.total_price or 0 for order in orders), 2),
            })
            items = orders

        warnings = []
        try:
            await NotificationService.order_confirmation(summary, items)
        except EmailDeliveryException as e:
            logger.warning(f"Order confirmation email for session {summary.stripe_session_id} failed: {e.message}")
            warnings.append(f"Customer confirmation email failed: {e.message}")
        try:
            await NotificationService.admin_order_notification(summary, items)
        except EmailDeliveryException as e:
            logger.warning(f"Admin order notification for session {summary.stripe_session_id} failed: {e.message}")
            warnings.append(f"Admin notification email failed: {e.message}")
        return warnings

    @staticmethod
    async def send_completion_emails_for_session(stripe_session_id: str,
                                                 repository: OrderRepository) -> list[str]:
        orders = await repository.get_orders_by_stripe_session_id(stripe_session_id)
        if not orders:
            raise OrderNotFoundException(stripe_session_id=stripe_session_id)
        return await OrderService.send_order_completion_emails(orders)

    @staticmethod
    def find_duplicate_orders(orders: list[OrderDTO]) -> list[DuplicateSessionDTO]:
        """
        Group rows per checkout session and flag exact repeats.

        A row is a duplicate when an older row of the same session has the
        same tier, quantity and total; the oldest (lowest id) copy is kept.
        """
        by_session: dict[str, list[OrderDTO]] = defaultdict(list)
        for order in orders:
            if order.stripe_session_id:
                by_session[order.stripe_session_id].append(order)

        sessions = []
        for session_id, session_orders in by_session.items():
            seen = set()
            duplicates = []
            for order in sorted(session_orders, key=lambda o: o.id):
                key = (order.tier, order.quantity, round(order.total_price or 0, 2))
                if key in seen:
                    duplicates.append(order.id)
                else:
                    seen.add(key)
            if duplicates:
                sessions.append(DuplicateSessionDTO(
                    stripe_session_id=session_id,
                    order_count=len(session_orders),
                    order_ids=sorted(order.id for order in session_orders),
                    duplicate_order_ids=duplicates,
                ))
        return sessions

    @staticmethod
    async def analyze_duplicate_orders(repository: OrderRepository) -> OrderCleanupReportDTO:
        orders = await repository.get_all_orders()
        sessions = OrderService.find_duplicate_orders(orders)
        return OrderCleanupReportDTO(
            sessions_with_duplicates=len(sessions),
            sessions_cleaned=0,
            orders_deleted=0,
            final_order_count=len(orders),
            sessions=sessions,
        )

    @staticmethod
    async def cleanup_duplicate_orders(repository: OrderRepository) -> OrderCleanupReportDTO:
        orders = await repository.get_all_orders()
        sessions = OrderService.find_duplicate_orders(orders)
        orders_deleted = 0
        for session in sessions:
            deleted = await repository.delete_orders(session.duplicate_order_ids)
            logger.info(f"Deleted {deleted} duplicate order(s) of session {session.stripe_session_id}")
            orders_deleted += deleted
        final_orders = await repository.get_all_orders()
        return OrderCleanupReportDTO(
            sessions_with_duplicates=len(sessions),
            sessions_cleaned=len(sessions),
            orders_deleted=orders_deleted,
            final_order_count=len(final_orders),
            sessions=sessions,
        )

    @staticmethod
    async def reset_orders(repository: OrderRepository) -> int:
        deleted = await repository.delete_all_orders()
        logger.warning(f"All orders reset ({deleted} deleted)")
        return deleted
