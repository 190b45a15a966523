"""
Order-related exceptions.
"""

from .base import NotFoundException, AuthorizationException, ValidationException


class OrderNotFoundException(NotFoundException):
    """Raised when order is not found in the order store."""

    def __init__(self, order_id: int | None = None, stripe_session_id: str | None = None):
        if order_id is not None:
            message = f"Order {order_id} not found"
        else:
            message = f"No orders found for session {stripe_session_id}"
        super().__init__(
            message,
            details={'order_id': order_id, 'stripe_session_id': stripe_session_id}
        )
        self.order_id = order_id
        self.stripe_session_id = stripe_session_id


class OrderOwnershipException(AuthorizationException):
    """Raised when user attempts to access an order they don't own."""

    def __init__(self, order_id: int, user_id: str):
        super().__init__(
            f"User {user_id} does not have permission to access order {order_id}",
            details={'order_id': order_id, 'user_id': user_id}
        )
        self.order_id = order_id
        self.user_id = user_id


class GuestCheckoutNotAllowedException(ValidationException):
    """Raised when a guest tries to check out a cart that requires an account."""

    def __init__(self, reason: str, total_dowel_quantity: int):
        super().__init__(
            reason,
            details={'total_dowel_quantity': total_dowel_quantity, 'requires_auth': True}
        )
        self.reason = reason
        self.total_dowel_quantity = total_dowel_quantity
