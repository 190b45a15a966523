"""
Request-scoped dependencies shared by the routers.

- Order store injected from app.state (chosen at startup from ORDER_STORE)
- Signed X-Session-Data header -> SessionUserDTO
- X-Admin-Token check for maintenance endpoints
"""

import logging
import secrets
import uuid
from datetime import datetime

from fastapi import Header, Request

import config
from exceptions.base import AuthenticationException, AuthorizationException
from repositories.order import OrderRepository
from utils.session_validator import SessionUserDTO, SessionValidationError, validate_session_data, extract_user

logger = logging.getLogger(__name__)


def generate_correlation_id() -> str:
    """Generate unique correlation ID for request tracing."""
    return f"{datetime.now().strftime('%Y%m%d-%H%M%S')}-{uuid.uuid4().hex[:8]}"


def get_order_repository(request: Request) -> OrderRepository:
    return request.app.state.order_repository


def _user_from_header(session_data: str) -> SessionUserDTO:
    try:
        validated = validate_session_data(
            session_data=session_data,
            secret=config.AUTH_SESSION_SECRET,
            max_age_seconds=config.AUTH_MAX_AGE_SECONDS
        )
        return extract_user(validated)
    except SessionValidationError as e:
        logger.warning(f"Session validation failed: {e}")
        raise AuthenticationException("Authentication required")


async def get_current_user(x_session_data: str | None = Header(None)) -> SessionUserDTO:
    """
    Raises:
        AuthenticationException: Missing or invalid session header
    """
    if not x_session_data:
        raise AuthenticationException("Authentication required")
    return _user_from_header(x_session_data)


async def get_optional_user(x_session_data: str | None = Header(None)) -> SessionUserDTO | None:
    """Signed-in user, or None for guests. A header that is present but invalid still fails."""
    if not x_session_data:
        return None
    return _user_from_header(x_session_data)


async def require_admin_token(x_admin_token: str | None = Header(None)) -> None:
    """
    Raises:
        AuthenticationException: Header missing
        AuthorizationException: Token wrong or admin endpoints disabled
    """
    if not x_admin_token:
        raise AuthenticationException("Admin token required")
    if not config.ADMIN_API_TOKEN:
        raise AuthorizationException("Admin endpoints are disabled")
    # Constant-time comparison to prevent timing attacks
    if not secrets.compare_digest(x_admin_token, config.ADMIN_API_TOKEN):
        raise AuthorizationException("Invalid admin token")
