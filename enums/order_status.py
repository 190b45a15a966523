from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"       # Created, payment not yet confirmed
    CONFIRMED = "confirmed"   # payment_status == "paid"

    @classmethod
    def from_payment_status(cls, payment_status: str | None) -> "OrderStatus":
        return cls.CONFIRMED if payment_status == PaymentStatus.PAID.value else cls.PENDING


class PaymentStatus(str, Enum):
    """
    Payment states reported by Stripe for a checkout session.

    UNPAID is reported for delayed methods (ACH) until the funds settle.
    """
    PENDING = "pending"
    PAID = "paid"
    UNPAID = "unpaid"
    FAILED = "failed"
    NO_PAYMENT_REQUIRED = "no_payment_required"
