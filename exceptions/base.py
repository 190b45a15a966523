"""
Base exception classes for the Force Dowels storefront.
"""


class StorefrontException(Exception):
    """
    Base exception for all storefront errors.

    All custom exceptions in the service should inherit from this class.
    This allows the HTTP layer to map every domain error with a single handler.

    Attributes:
        message: Human-readable error message
        details: Optional dict with additional context (entity IDs, states, etc.)
    """

    def __init__(self, message: str, details: dict | None = None):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            details: Optional dict with additional context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message."""
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation with context."""
        if self.details:
            details_str = ', '.join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


class ValidationException(StorefrontException):
    """Raised when a request is malformed or violates a business rule (400)."""

    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        details = dict(details or {})
        if field:
            details['field'] = field
        super().__init__(message, details)
        self.field = field


class AuthenticationException(StorefrontException):
    """Raised when the caller has no valid session (401)."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class AuthorizationException(StorefrontException):
    """Raised when the caller is authenticated but not allowed (403)."""

    def __init__(self, message: str = "Forbidden", details: dict | None = None):
        super().__init__(message, details)


class NotFoundException(StorefrontException):
    """Raised when an entity does not exist (404)."""
    pass


class ConflictException(StorefrontException):
    """Raised when a state transition is attempted on an entity that already left its initial state (409)."""
    pass


class UpstreamServiceException(StorefrontException):
    """Raised when an external provider (payments, email, shipping) fails (500)."""

    def __init__(self, service: str, message: str, status_code: int | None = None):
        super().__init__(
            message,
            details={'service': service, 'status_code': status_code}
        )
        self.service = service
        self.status_code = status_code
