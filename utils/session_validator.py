"""
Signed session header validation utility.

The auth provider bridge forwards the signed-in user to the API as an
X-Session-Data header: a query string with user_id, email, name,
auth_date and an HMAC-SHA256 hash over the remaining fields.

Security features:
- HMAC-SHA256 signature verification
- Replay attack protection (timestamp validation)
- User identity extraction
"""

import hashlib
import hmac
import time
from urllib.parse import parse_qsl, urlencode
from typing import Dict
import logging

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class SessionValidationError(Exception):
    """Raised when session data validation fails."""
    pass


class SessionUserDTO(BaseModel):
    user_id: str
    email: str | None = None
    name: str | None = None


def _data_check_string(fields: Dict[str, str]) -> str:
    # Alphabetically sorted key=value pairs
    return '\n'.join(f"{k}={v}" for k, v in sorted(fields.items()))


def _compute_hash(fields: Dict[str, str], secret: str) -> str:
    return hmac.new(
        key=secret.encode('utf-8'),
        msg=_data_check_string(fields).encode('utf-8'),
        digestmod=hashlib.sha256
    ).hexdigest()


def sign_session_data(fields: Dict[str, str], secret: str) -> str:
    """
    Build a signed session string (the auth bridge side of validate_session_data).

    auth_date is added when missing.
    """
    fields = dict(fields)
    fields.setdefault('auth_date', str(int(time.time())))
    fields['hash'] = _compute_hash(fields, secret)
    return urlencode(fields)


def validate_session_data(
    session_data: str,
    secret: str,
    max_age_seconds: int = 86400
) -> Dict[str, str]:
    """
    Validates the HMAC signature of a session string.

    Args:
        session_data: Raw X-Session-Data header value
        secret: AUTH_SESSION_SECRET
        max_age_seconds: Maximum age of the session data (default: 24 hours)

    Returns:
        Dict containing validated fields (user_id, email, name, auth_date)

    Raises:
        SessionValidationError: If validation fails
    """
    if not session_data:
        raise SessionValidationError("No session data provided")

    if not secret:
        raise SessionValidationError("Session secret not configured")

    try:
        parsed = dict(parse_qsl(session_data, keep_blank_values=True, strict_parsing=True))
    except ValueError as e:
        raise SessionValidationError(f"Failed to parse session data: {e}")

    received_hash = parsed.pop('hash', None)
    if not received_hash:
        raise SessionValidationError("No hash in session data")

    # Check timestamp to prevent replay attacks
    try:
        auth_date = int(parsed.get('auth_date', 0))
    except (ValueError, TypeError):
        raise SessionValidationError("Invalid auth_date")

    age_seconds = time.time() - auth_date
    if age_seconds > max_age_seconds:
        raise SessionValidationError(
            f"Session data too old ({int(age_seconds)}s > {max_age_seconds}s max)"
        )

    if age_seconds < -60:  # Allow 60s clock skew
        raise SessionValidationError("Session timestamp is in the future")

    expected_hash = _compute_hash(parsed, secret)

    # Constant-time comparison to prevent timing attacks
    if not hmac.compare_digest(expected_hash, received_hash):
        logger.warning(
            f"Session signature mismatch | "
            f"Expected: {expected_hash[:16]}... | "
            f"Received: {received_hash[:16]}..."
        )
        raise SessionValidationError("Invalid signature")

    return parsed


def extract_user(validated_data: Dict[str, str]) -> SessionUserDTO:
    """
    Extracts the user from validated session data.

    Raises:
        SessionValidationError: If no user id is present
    """
    user_id = validated_data.get('user_id')
    if not user_id:
        raise SessionValidationError("No user_id in session data")
    return SessionUserDTO(
        user_id=user_id,
        email=validated_data.get('email') or None,
        name=validated_data.get('name') or None,
    )
