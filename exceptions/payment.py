"""
Payment-related exceptions.
"""

from .base import UpstreamServiceException, AuthorizationException


class PaymentProviderException(UpstreamServiceException):
    """Raised when the Stripe API rejects or fails a request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__("stripe", message, status_code)


class InvalidWebhookSignatureException(AuthorizationException):
    """Raised when a webhook payload does not carry a valid Stripe signature."""

    def __init__(self, reason: str):
        super().__init__(
            f"Invalid webhook signature: {reason}",
            details={'reason': reason}
        )
        self.reason = reason
