"""
DistributionService Tests

Application intake and the PENDING -> ACCEPTED/DECLINED state machine
against an in-memory SQLite database. Emails and ZIP lookup are mocked.
"""

import asyncio
import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from enums.distribution_request_status import DistributionRequestStatus
from exceptions.distribution import (
    InvalidDistributionRequestIdException,
    DistributionRequestNotFoundException,
    DistributionRequestAlreadyProcessedException,
)
from exceptions.email import EmailDeliveryException
from models.distribution_request import DistributorApplicationRequest
from models.distributor import CoordinatesDTO
from repositories.distribution_request import DistributionRequestRepository
from repositories.distributor import DistributorRepository
from services.distribution import DistributionService
from services.geolocation import GeolocationService
from services.notification import NotificationService

NOTIFICATIONS = (
    "distributor_application",
    "application_confirmation",
    "distributor_accepted",
    "distributor_declined",
)


@pytest.fixture
def mock_notifications():
    patches = [patch.object(NotificationService, name, new_callable=AsyncMock) for name in NOTIFICATIONS]
    mocks = [p.start() for p in patches]
    yield dict(zip(NOTIFICATIONS, mocks))
    for p in patches:
        p.stop()


@pytest.fixture
def mock_geocode():
    with patch.object(GeolocationService, "geocode", new_callable=AsyncMock) as geocode:
        geocode.return_value = CoordinatesDTO(latitude=33.4484, longitude=-112.0740, city="Phoenix", state="AZ")
        yield geocode


@pytest.fixture
def application():
    return DistributorApplicationRequest(
        full_name="Sam Carpenter",
        business_name="Desert Woodworks",
        phone_number="(602) 555-0199",
        email_address="sam@desertwoodworks.com",
        street="100 W Washington St",
        city="Phoenix",
        state="AZ",
        zip_code="85003",
        website="https://desertwoodworks.com",
        business_type="retailer",
        years_in_business=8,
        territory="Maricopa County and northern Arizona",
        purchase_volume="1000-5000",
        sells_similar_products="no",
        hear_about_us="trade-show",
    )


class TestApplicationValidation:

    def test_other_business_type_requires_detail(self, application):
        data = application.model_dump()
        data.update(business_type="other", business_type_other="")

        with pytest.raises(ValueError, match="Please specify your business type"):
            DistributorApplicationRequest(**data)

    def test_short_phone_rejected(self, application):
        data = application.model_dump()
        data.update(phone_number="555-01999")

        with pytest.raises(ValueError):
            DistributorApplicationRequest(**data)

    def test_blank_website_is_none(self, application):
        data = application.model_dump()
        data.update(website="  ")

        assert DistributorApplicationRequest(**data).website is None


class TestSubmitApplication:

    @pytest.mark.asyncio
    async def test_stores_pending_request_and_sends_emails(self, test_session, application, mock_notifications):
        stored, warnings = await DistributionService.submit_application(application, test_session)

        assert stored.status == DistributionRequestStatus.PENDING
        assert DistributionService.is_valid_request_id(stored.unique_id)
        assert stored.website == "https://desertwoodworks.com/"
        assert stored.business_type == "retailer"
        assert warnings == []

        request, accept_url, decline_url = mock_notifications["distributor_application"].await_args.args
        assert accept_url.endswith(f"/distribution/accept/{stored.unique_id}")
        assert decline_url.endswith(f"/distribution/decline/{stored.unique_id}")
        mock_notifications["application_confirmation"].assert_awaited_once()

    @pytest.mark.asyncio
    async def test_email_failure_keeps_request(self, test_session, application, mock_notifications):
        mock_notifications["distributor_application"].side_effect = EmailDeliveryException("Resend is down")

        stored, warnings = await DistributionService.submit_application(application, test_session)

        assert stored.id is not None
        assert warnings == ["Application email to the business failed: Resend is down"]


class TestTransitions:

    @pytest.mark.asyncio
    async def test_accept_creates_distributor(self, test_session, application, mock_notifications, mock_geocode):
        stored, _ = await DistributionService.submit_application(application, test_session)

        outcome = await DistributionService.accept_request(stored.unique_id, test_session)

        assert outcome.request.status == DistributionRequestStatus.ACCEPTED
        assert outcome.request.responded_at is not None
        assert outcome.distributor_id is not None
        assert outcome.warnings == []
        distributor = await DistributorRepository.get_by_distribution_request_id(stored.id, test_session)
        assert distributor.business_name == "Desert Woodworks"
        assert distributor.latitude == 33.4484
        mock_notifications["distributor_accepted"].assert_awaited_once()

    @pytest.mark.asyncio
    async def test_decline_creates_no_distributor(self, test_session, application, mock_notifications):
        stored, _ = await DistributionService.submit_application(application, test_session)

        outcome = await DistributionService.decline_request(stored.unique_id, test_session)

        assert outcome.request.status == DistributionRequestStatus.DECLINED
        assert await DistributorRepository.count(test_session) == 0
        mock_notifications["distributor_declined"].assert_awaited_once()

    @pytest.mark.asyncio
    async def test_second_click_conflicts(self, test_session, application, mock_notifications, mock_geocode):
        stored, _ = await DistributionService.submit_application(application, test_session)
        await DistributionService.accept_request(stored.unique_id, test_session)

        with pytest.raises(DistributionRequestAlreadyProcessedException) as exc_info:
            await DistributionService.decline_request(stored.unique_id, test_session)

        assert exc_info.value.status == "accepted"
        assert exc_info.value.processed_at is not None
        current = await DistributionRequestRepository.get_by_unique_id(stored.unique_id, test_session)
        assert current.status == DistributionRequestStatus.ACCEPTED
        mock_notifications["distributor_declined"].assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrent_click_loses_compare_and_set(self, test_session, application, mock_notifications,
                                                          mock_geocode):
        stored, _ = await DistributionService.submit_application(application, test_session)
        await DistributionService.accept_request(stored.unique_id, test_session)
        accepted = await DistributionRequestRepository.get_by_unique_id(stored.unique_id, test_session)
        # The decline reads the row before the accept lands
        stale = accepted.model_copy(update={"status": DistributionRequestStatus.PENDING, "responded_at": None})
        real_get = DistributionRequestRepository.get_by_unique_id
        reads = []

        async def get_by_unique_id(unique_id, session):
            reads.append(unique_id)
            if len(reads) == 1:
                return stale
            return await real_get(unique_id, session)

        with patch.object(DistributionRequestRepository, "get_by_unique_id", side_effect=get_by_unique_id):
            with pytest.raises(DistributionRequestAlreadyProcessedException) as exc_info:
                await DistributionService.decline_request(stored.unique_id, test_session)

        assert exc_info.value.status == "accepted"
        assert exc_info.value.processed_at == accepted.responded_at
        assert len(reads) == 2
        current = await DistributionRequestRepository.get_by_unique_id(stored.unique_id, test_session)
        assert current.status == DistributionRequestStatus.ACCEPTED
        assert current.responded_at == accepted.responded_at
        mock_notifications["distributor_declined"].assert_not_awaited()

    @pytest.mark.asyncio
    async def test_provider_timeouts_become_warnings(self, test_session, application):
        with patch.object(NotificationService, "distributor_application", new_callable=AsyncMock), \
                patch.object(NotificationService, "application_confirmation", new_callable=AsyncMock):
            stored, _ = await DistributionService.submit_application(application, test_session)

        # ZIP lookup and Resend both time out
        with patch.object(aiohttp.ClientSession, "request", MagicMock(side_effect=asyncio.TimeoutError)):
            outcome = await DistributionService.accept_request(stored.unique_id, test_session)

        assert outcome.request.status == DistributionRequestStatus.ACCEPTED
        assert outcome.distributor_id is not None
        assert outcome.warnings == ["Acceptance email failed: resend request timed out"]
        distributor = await DistributorRepository.get_by_distribution_request_id(stored.id, test_session)
        assert (distributor.latitude, distributor.longitude) == (33.4484, -112.0740)

    @pytest.mark.asyncio
    async def test_invalid_id(self, test_session):
        with pytest.raises(InvalidDistributionRequestIdException):
            await DistributionService.accept_request("not-a-uuid", test_session)

    @pytest.mark.asyncio
    async def test_unknown_id(self, test_session):
        with pytest.raises(DistributionRequestNotFoundException):
            await DistributionService.accept_request(str(uuid.uuid4()), test_session)

    @pytest.mark.asyncio
    async def test_side_effect_failures_become_warnings(self, test_session, application, mock_notifications,
                                                        mock_geocode):
        mock_geocode.side_effect = ValueError("no coordinates")
        mock_notifications["distributor_accepted"].side_effect = EmailDeliveryException("bounced")
        stored, _ = await DistributionService.submit_application(application, test_session)

        outcome = await DistributionService.accept_request(stored.unique_id, test_session)

        assert outcome.request.status == DistributionRequestStatus.ACCEPTED
        assert outcome.distributor_id is None
        assert outcome.warnings == [
            "Distributor record could not be created: no coordinates",
            "Acceptance email failed: bounced",
        ]


class TestDistributorSearch:

    @pytest.mark.asyncio
    async def test_nearby_sorted_by_distance(self, test_session, application, mock_notifications, mock_geocode):
        stored, _ = await DistributionService.submit_application(application, test_session)
        await DistributionService.accept_request(stored.unique_id, test_session)

        mock_geocode.return_value = CoordinatesDTO(latitude=33.3528, longitude=-111.7890)
        second = application.model_copy(update={"business_name": "Gilbert Lumber"})
        stored_second, _ = await DistributionService.submit_application(second, test_session)
        await DistributionService.accept_request(stored_second.unique_id, test_session)

        # From Gilbert: Gilbert Lumber first, Phoenix about 20 miles away
        nearby = await DistributionService.find_distributors_near(33.3528, -111.7890, 50, test_session)

        assert [d.business_name for d in nearby] == ["Gilbert Lumber", "Desert Woodworks"]
        assert nearby[0].distance_miles == 0.0

        assert await DistributionService.find_distributors_near(40.7128, -74.0060, 50, test_session) == []

    @pytest.mark.asyncio
    async def test_clean_distributors(self, test_session, application, mock_notifications, mock_geocode):
        stored, _ = await DistributionService.submit_application(application, test_session)
        await DistributionService.accept_request(stored.unique_id, test_session)

        counts = await DistributionService.clean_distributors(test_session)

        assert counts == {
            "distributors_before": 1,
            "requests_before": 1,
            "distributors_deleted": 1,
            "requests_deleted": 1,
        }
