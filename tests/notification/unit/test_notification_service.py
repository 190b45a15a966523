"""
NotificationService Unit Tests

Recipients, subjects and escaping of customer-controlled values.
ResendClient is mocked; delivery errors must propagate to the caller.
"""

from unittest.mock import AsyncMock, patch

import pytest

import config
from clients.api_wrapper import ApiWrapper
from clients.resend_client import ResendClient
from enums.distribution_request_status import DistributionRequestStatus
from exceptions.base import UpstreamServiceException
from exceptions.email import EmailDeliveryException
from models.distribution_request import DistributionRequestDTO
from models.order import OrderDTO, ORDER_SUMMARY_TIER
from services.notification import NotificationService


@pytest.fixture
def send_email():
    with patch.object(ResendClient, "send_email", new_callable=AsyncMock) as send:
        yield send


@pytest.fixture
def summary(shipping_info):
    return OrderDTO(
        id=2,
        user_id="user_1",
        user_email="jane@example.com",
        user_name="Jane <b>Builder</b>",
        quantity=5000,
        tier=ORDER_SUMMARY_TIER,
        total_price=407.09,
        stripe_session_id="cs_test_1",
        shipping_info={**shipping_info, "shipping_option": "UPS Ground", "shipping_cost": 25.5},
    )


@pytest.fixture
def items():
    return [OrderDTO(id=1, quantity=5000, tier="5,000-20,000", total_price=360.0)]


@pytest.fixture
def distribution_request():
    return DistributionRequestDTO(
        id=1,
        unique_id="0b6c2d9e-3c1f-4b8a-9d2e-7f1a2b3c4d5e",
        full_name="Sam Carpenter",
        business_name="Desert <Woodworks>",
        phone_number="6025550199",
        email_address="sam@desertwoodworks.com",
        street="100 W Washington St",
        city="Phoenix",
        state="AZ",
        zip_code="85003",
        territory="Maricopa County",
        status=DistributionRequestStatus.PENDING,
    )


class TestOrderEmails:

    @pytest.mark.asyncio
    async def test_order_confirmation(self, send_email, summary, items):
        await NotificationService.order_confirmation(summary, items)

        kwargs = send_email.await_args.kwargs
        assert kwargs["to"] == ["jane@example.com"]
        assert kwargs["subject"] == "Your Force Dowels Order Confirmation"
        assert "$407.09" in kwargs["html"]
        assert "UPS Ground" in kwargs["html"]
        assert "$25.50" in kwargs["html"]
        assert "Jane &lt;b&gt;Builder&lt;/b&gt;" in kwargs["html"]

    @pytest.mark.asyncio
    async def test_confirmation_skipped_without_email(self, send_email, summary, items):
        await NotificationService.order_confirmation(summary.model_copy(update={"user_email": None}), items)

        send_email.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_admin_notification(self, send_email, summary, items):
        await NotificationService.admin_order_notification(summary, items)

        kwargs = send_email.await_args.kwargs
        assert kwargs["to"] == config.ADMIN_EMAIL_LIST
        assert kwargs["subject"] == "New Force Dowels Order - $407.09"
        assert "cs_test_1" in kwargs["html"]

    @pytest.mark.asyncio
    async def test_delivery_failure_propagates(self, send_email, summary, items):
        send_email.side_effect = EmailDeliveryException("Resend is down")

        with pytest.raises(EmailDeliveryException):
            await NotificationService.admin_order_notification(summary, items)


class TestDistributorEmails:

    @pytest.mark.asyncio
    async def test_application_to_business_with_links(self, send_email, distribution_request):
        await NotificationService.distributor_application(
            distribution_request,
            "https://forcedowels.test/distribution/accept/abc",
            "https://forcedowels.test/distribution/decline/abc",
        )

        kwargs = send_email.await_args.kwargs
        assert kwargs["to"] == config.BUSINESS_EMAIL_LIST
        assert kwargs["subject"] == "New Distributor Application - Desert <Woodworks>"
        assert kwargs["reply_to"] == "sam@desertwoodworks.com"
        assert "Desert &lt;Woodworks&gt;" in kwargs["html"]
        assert 'href="https://forcedowels.test/distribution/accept/abc"' in kwargs["html"]
        assert 'href="https://forcedowels.test/distribution/decline/abc"' in kwargs["html"]

    @pytest.mark.asyncio
    async def test_acceptance_mentions_territory(self, send_email, distribution_request):
        await NotificationService.distributor_accepted(distribution_request)

        kwargs = send_email.await_args.kwargs
        assert kwargs["to"] == ["sam@desertwoodworks.com"]
        assert kwargs["subject"] == "Congratulations! Your Force Dowels Distributor Application Approved"
        assert "Maricopa County" in kwargs["html"]

    @pytest.mark.asyncio
    async def test_confirmation_and_decline_subjects(self, send_email, distribution_request):
        await NotificationService.application_confirmation(distribution_request)
        await NotificationService.distributor_declined(distribution_request)

        subjects = [call.kwargs["subject"] for call in send_email.await_args_list]
        assert subjects == ["Thank you for your Force Dowels Distributor Application"] * 2


class TestResendClient:

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        with patch.object(config, "RESEND_API_KEY", ""):
            with pytest.raises(EmailDeliveryException, match="RESEND_API_KEY is not configured"):
                await ResendClient.send_email(["a@example.com"], "subject", "<p>x</p>")

    @pytest.mark.asyncio
    async def test_sends_payload(self):
        with patch.object(ApiWrapper, "fetch_api_request", new_callable=AsyncMock,
                          return_value={"id": "email_123"}) as fetch:
            message_id = await ResendClient.send_email(["a@example.com"], "subject", "<p>x</p>", reply_to="b@x.com")

        assert message_id == "email_123"
        payload = fetch.await_args.kwargs["json"]
        assert payload["to"] == ["a@example.com"]
        assert payload["reply_to"] == "b@x.com"
        assert payload["from"] == config.EMAIL_FROM

    @pytest.mark.asyncio
    async def test_upstream_error_wrapped(self):
        with patch.object(ApiWrapper, "fetch_api_request", new_callable=AsyncMock,
                          side_effect=UpstreamServiceException("resend", "resend request failed: 422", 422)):
            with pytest.raises(EmailDeliveryException) as exc_info:
                await ResendClient.send_email(["a@example.com"], "subject", "<p>x</p>")

        assert exc_info.value.status_code == 422
        assert exc_info.value.recipients == ["a@example.com"]
