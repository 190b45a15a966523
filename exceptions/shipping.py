"""
Shipping-related exceptions.
"""

from .base import UpstreamServiceException, ValidationException


class ShippingProviderException(UpstreamServiceException):
    """Raised when a carrier API (UPS, TQL) fails to return rates."""

    def __init__(self, provider: str, message: str, status_code: int | None = None):
        super().__init__(provider, message, status_code)
        self.provider = provider


class InvalidAddressException(ValidationException):
    """Raised when a shipping address is invalid or incomplete."""

    def __init__(self, issues: list[str]):
        super().__init__(
            f"Invalid shipping address: {'; '.join(issues)}",
            field="address",
            details={'issues': issues}
        )
        self.issues = issues
