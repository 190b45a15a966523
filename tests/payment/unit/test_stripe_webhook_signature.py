"""
Stripe webhook signature verification tests.

Security scenarios: missing header, forged signature, replayed (stale)
timestamp, and rotated secrets (several v1 entries).
"""

import time

import pytest

from exceptions.payment import InvalidWebhookSignatureException
from processing.processing import compute_signature, parse_signature_header, verify_stripe_signature

SECRET = "whsec_test_secret"
PAYLOAD = b'{"id":"evt_1","type":"checkout.session.completed","data":{"object":{"id":"cs_1"}}}'


def signed_header(payload: bytes = PAYLOAD, timestamp: int | None = None, secret: str = SECRET) -> str:
    timestamp = int(time.time()) if timestamp is None else timestamp
    return f"t={timestamp},v1={compute_signature(payload, timestamp, secret)}"


class TestSignatureHeaderParsing:

    def test_parses_timestamp_and_signatures(self):
        timestamp, signatures = parse_signature_header("t=1700000000,v1=abc,v0=old,v1=def")

        assert timestamp == 1700000000
        assert signatures == ["abc", "def"]

    @pytest.mark.parametrize("header,reason", [
        ("v1=abc", "missing timestamp"),
        ("t=1700000000", "missing v1 signature"),
        ("t=yesterday,v1=abc", "malformed timestamp"),
    ])
    def test_malformed_headers(self, header, reason):
        with pytest.raises(InvalidWebhookSignatureException) as exc_info:
            parse_signature_header(header)
        assert exc_info.value.reason == reason


class TestVerifySignature:

    def test_valid_signature_passes(self):
        verify_stripe_signature(PAYLOAD, signed_header(), SECRET, 300)

    def test_missing_header_rejected(self):
        with pytest.raises(InvalidWebhookSignatureException, match="missing Stripe-Signature header"):
            verify_stripe_signature(PAYLOAD, None, SECRET, 300)

    def test_wrong_secret_rejected(self):
        with pytest.raises(InvalidWebhookSignatureException, match="signature mismatch"):
            verify_stripe_signature(PAYLOAD, signed_header(secret="whsec_other"), SECRET, 300)

    def test_tampered_payload_rejected(self):
        header = signed_header()

        with pytest.raises(InvalidWebhookSignatureException, match="signature mismatch"):
            verify_stripe_signature(PAYLOAD.replace(b"cs_1", b"cs_2"), header, SECRET, 300)

    def test_stale_timestamp_rejected(self):
        """Replay of an old delivery fails even with a valid signature."""
        header = signed_header(timestamp=1700000000)

        with pytest.raises(InvalidWebhookSignatureException, match="timestamp outside tolerance"):
            verify_stripe_signature(PAYLOAD, header, SECRET, 300, now=1700000000 + 301)

    def test_any_matching_signature_accepted(self):
        timestamp = int(time.time())
        header = f"t={timestamp},v1=deadbeef,v1={compute_signature(PAYLOAD, timestamp, SECRET)}"

        verify_stripe_signature(PAYLOAD, header, SECRET, 300)

    def test_unconfigured_secret_rejected(self):
        with pytest.raises(InvalidWebhookSignatureException, match="webhook secret not configured"):
            verify_stripe_signature(PAYLOAD, signed_header(), "", 300)
