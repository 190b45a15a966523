"""
X-Session-Data validation tests.

Security scenarios: tampered fields, wrong secret, expired and future
timestamps, missing hash or user id.
"""

import time

import pytest

from utils.session_validator import (
    SessionValidationError,
    sign_session_data,
    validate_session_data,
    extract_user,
)

SECRET = "session_secret_0123456789abcdef0123456789"
FIELDS = {"user_id": "user_1", "email": "jane@example.com", "name": "Jane Builder"}


def test_valid_session_round_trip():
    validated = validate_session_data(sign_session_data(FIELDS, SECRET), SECRET)
    user = extract_user(validated)

    assert user.user_id == "user_1"
    assert user.email == "jane@example.com"
    assert user.name == "Jane Builder"


def test_tampered_user_id_rejected():
    session_data = sign_session_data(FIELDS, SECRET).replace("user_1", "user_2")

    with pytest.raises(SessionValidationError, match="Invalid signature"):
        validate_session_data(session_data, SECRET)


def test_wrong_secret_rejected():
    with pytest.raises(SessionValidationError, match="Invalid signature"):
        validate_session_data(sign_session_data(FIELDS, "another_secret"), SECRET)


def test_expired_session_rejected():
    old = {**FIELDS, "auth_date": str(int(time.time()) - 7200)}

    with pytest.raises(SessionValidationError, match="too old"):
        validate_session_data(sign_session_data(old, SECRET), SECRET, max_age_seconds=3600)


def test_future_session_rejected():
    future = {**FIELDS, "auth_date": str(int(time.time()) + 600)}

    with pytest.raises(SessionValidationError, match="in the future"):
        validate_session_data(sign_session_data(future, SECRET), SECRET)


@pytest.mark.parametrize("session_data,message", [
    ("", "No session data provided"),
    ("user_id=user_1&auth_date=1", "No hash in session data"),
    ("not a query string", "Failed to parse session data"),
])
def test_malformed_sessions(session_data, message):
    with pytest.raises(SessionValidationError, match=message):
        validate_session_data(session_data, SECRET)


def test_unconfigured_secret():
    with pytest.raises(SessionValidationError, match="Session secret not configured"):
        validate_session_data(sign_session_data(FIELDS, SECRET), "")


def test_missing_user_id():
    validated = validate_session_data(sign_session_data({"email": "jane@example.com"}, SECRET), SECRET)

    with pytest.raises(SessionValidationError, match="No user_id"):
        extract_user(validated)


def test_blank_optional_fields_become_none():
    validated = validate_session_data(sign_session_data({"user_id": "user_1", "email": ""}, SECRET), SECRET)

    assert extract_user(validated).email is None
