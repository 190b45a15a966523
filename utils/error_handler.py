"""
Error Handler Utility for the HTTP API

Provides centralized error handling for routers with:
- Automatic exception to status code mapping
- Consistent {"success": false, "error": ...} response bodies
- Logging for debugging

Routers do not catch domain exceptions themselves; install_exception_handlers()
registers the mapping on the FastAPI app once at startup.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from exceptions import (
    StorefrontException,
    ValidationException,
    AuthenticationException,
    AuthorizationException,
    NotFoundException,
    ConflictException,
    UpstreamServiceException,
    DistributionRequestAlreadyProcessedException,
    GuestCheckoutNotAllowedException,
)

logger = logging.getLogger(__name__)

# Looked up along the exception's MRO, so subclasses inherit their parent's status
ERROR_STATUS_MAPPING: dict[type[StorefrontException], int] = {
    ValidationException: status.HTTP_400_BAD_REQUEST,
    AuthenticationException: status.HTTP_401_UNAUTHORIZED,
    AuthorizationException: status.HTTP_403_FORBIDDEN,
    NotFoundException: status.HTTP_404_NOT_FOUND,
    ConflictException: status.HTTP_409_CONFLICT,
    UpstreamServiceException: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_status_code(exception: StorefrontException) -> int:
    """Return the HTTP status for an exception, walking its class hierarchy."""
    for exception_class in type(exception).__mro__:
        status_code = ERROR_STATUS_MAPPING.get(exception_class)
        if status_code is not None:
            return status_code
    logger.error(f"Unmapped exception type: {type(exception).__name__}")
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def build_error_body(exception: StorefrontException) -> dict:
    """
    Build the JSON error body for an exception.

    Conflicts on distribution requests also report the existing status and
    when it was reached, so the emailed-link landing page can explain it.
    """
    body = {"success": False, "error": exception.message}
    if isinstance(exception, DistributionRequestAlreadyProcessedException):
        body["status"] = exception.status
        body["processed_at"] = exception.processed_at.isoformat() if exception.processed_at else None
    if isinstance(exception, ValidationException) and exception.field:
        body["field"] = exception.field
    if isinstance(exception, GuestCheckoutNotAllowedException):
        body["requires_auth"] = True
        body["total_dowel_quantity"] = exception.total_dowel_quantity
    return body


def handle_service_error(exception: StorefrontException) -> JSONResponse:
    status_code = get_status_code(exception)
    if status_code >= 500:
        logger.error(f"Service error handled: {type(exception).__name__} - {exception!r}")
    else:
        logger.warning(f"Service error handled: {type(exception).__name__} - {str(exception)}")
    return JSONResponse(status_code=status_code, content=build_error_body(exception))


async def storefront_exception_handler(request: Request, exc: StorefrontException) -> JSONResponse:
    return handle_service_error(exc)


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        error = f"{location}: {message}" if location else message
    else:
        error = "Invalid request"
    logger.warning(f"Request validation failed on {request.url.path}: {error}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"success": False, "error": error})


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontException, storefront_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
