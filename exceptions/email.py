"""
Email delivery exceptions.
"""

from .base import UpstreamServiceException


class EmailDeliveryException(UpstreamServiceException):
    """Raised when Resend refuses or fails to deliver a message."""

    def __init__(self, message: str, status_code: int | None = None, recipients: list[str] | None = None):
        super().__init__("resend", message, status_code)
        self.recipients = recipients or []
