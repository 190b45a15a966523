"""
Distribution request exceptions.
"""

from datetime import datetime

from .base import ConflictException, NotFoundException, ValidationException


class InvalidDistributionRequestIdException(ValidationException):
    """Raised when an accept/decline link carries a malformed id."""

    def __init__(self, unique_id: str):
        super().__init__(
            "Invalid request ID format",
            field="unique_id",
            details={'unique_id': unique_id}
        )
        self.unique_id = unique_id


class DistributionRequestNotFoundException(NotFoundException):
    """Raised when no distribution request matches the unique id."""

    def __init__(self, unique_id: str):
        super().__init__(
            "Distribution request not found",
            details={'unique_id': unique_id}
        )
        self.unique_id = unique_id


class DistributionRequestAlreadyProcessedException(ConflictException):
    """Raised when accept/decline is attempted on a request that is no longer pending."""

    def __init__(self, unique_id: str, status: str, processed_at: datetime | None):
        super().__init__(
            "Request already processed",
            details={
                'unique_id': unique_id,
                'status': status,
                'processed_at': processed_at.isoformat() if processed_at else None,
            }
        )
        self.unique_id = unique_id
        self.status = status
        self.processed_at = processed_at
