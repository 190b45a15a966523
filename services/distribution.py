"""
Distribution Service

Distributor applications and their accept/decline workflow.

State machine (terminal states never change again):
    PENDING -> ACCEPTED  (creates a Distributor, sends the approval email)
    PENDING -> DECLINED  (sends the decline email)

The status change is committed first; distributor creation and emails run
afterwards and report failures as warnings instead of failing the request.
"""

import logging
import re
import uuid
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

import config
from db import session_commit
from enums.distribution_request_status import DistributionRequestStatus
from exceptions.base import StorefrontException
from exceptions.distribution import (
    InvalidDistributionRequestIdException,
    DistributionRequestNotFoundException,
    DistributionRequestAlreadyProcessedException,
)
from exceptions.email import EmailDeliveryException
from models.distribution_request import DistributionRequestDTO, DistributorApplicationRequest, DistributionOutcomeDTO
from models.distributor import DistributorDTO, NearbyDistributorDTO
from repositories.distribution_request import DistributionRequestRepository
from repositories.distributor import DistributorRepository
from services.geolocation import GeolocationService
from services.notification import NotificationService

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_RADIUS_MILES = 50.0

UUID4_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE
)


class DistributionService:

    @staticmethod
    def is_valid_request_id(unique_id: str) -> bool:
        return bool(UUID4_PATTERN.match(unique_id or ""))

    @staticmethod
    def accept_url(unique_id: str) -> str:
        return f"{config.SITE_URL}/distribution/accept/{unique_id}"

    @staticmethod
    def decline_url(unique_id: str) -> str:
        return f"{config.SITE_URL}/distribution/decline/{unique_id}"

    @staticmethod
    async def submit_application(application: DistributorApplicationRequest,
                                 session: AsyncSession) -> tuple[DistributionRequestDTO, list[str]]:
        """
        Store an application and notify the business and the applicant.

        Returns:
            Tuple of (stored request, email warnings)
        """
        request_dto = DistributionRequestDTO(
            **application.model_dump(exclude={"website", "business_type", "purchase_volume",
                                              "sells_similar_products", "hear_about_us"}),
            unique_id=str(uuid.uuid4()),
            website=str(application.website) if application.website else None,
            business_type=application.business_type.value,
            purchase_volume=application.purchase_volume.value,
            sells_similar_products=application.sells_similar_products.value,
            hear_about_us=application.hear_about_us.value,
            status=DistributionRequestStatus.PENDING,
        )
        stored = await DistributionRequestRepository.create(request_dto, session)
        await session_commit(session)
        logger.info(f"Distribution request {stored.unique_id} stored for {stored.business_name}")

        warnings = []
        try:
            await NotificationService.distributor_application(
                stored,
                DistributionService.accept_url(stored.unique_id),
                DistributionService.decline_url(stored.unique_id)
            )
        except EmailDeliveryException as e:
            logger.error(f"Application email for request {stored.unique_id} failed: {e.message}")
            warnings.append(f"Application email to the business failed: {e.message}")
        try:
            await NotificationService.application_confirmation(stored)
        except EmailDeliveryException as e:
            logger.warning(f"Confirmation email for request {stored.unique_id} failed: {e.message}")
            warnings.append(f"Confirmation email to the applicant failed: {e.message}")
        return stored, warnings

    @staticmethod
    async def _transition(unique_id: str, new_status: DistributionRequestStatus,
                          session: AsyncSession) -> DistributionRequestDTO:
        """
        Move a pending request to new_status.

        Raises:
            InvalidDistributionRequestIdException: unique_id is not a UUID4
            DistributionRequestNotFoundException: No such request
            DistributionRequestAlreadyProcessedException: Request is not pending anymore
        """
        if not DistributionService.is_valid_request_id(unique_id):
            raise InvalidDistributionRequestIdException(unique_id)

        existing = await DistributionRequestRepository.get_by_unique_id(unique_id, session)
        if existing is None:
            raise DistributionRequestNotFoundException(unique_id)
        if existing.status.is_terminal():
            raise DistributionRequestAlreadyProcessedException(unique_id, existing.status.value, existing.responded_at)

        transitioned = await DistributionRequestRepository.transition_from_pending(
            unique_id, new_status, datetime.now(), session
        )
        await session_commit(session)
        if not transitioned:
            # Lost the race against a concurrent accept/decline
            current = await DistributionRequestRepository.get_by_unique_id(unique_id, session)
            raise DistributionRequestAlreadyProcessedException(unique_id, current.status.value, current.responded_at)

        updated = await DistributionRequestRepository.get_by_unique_id(unique_id, session)
        logger.info(f"Distribution request {unique_id} {new_status.value}")
        return updated

    @staticmethod
    async def create_distributor_from_request(request: DistributionRequestDTO, session: AsyncSession) -> int:
        coordinates = await GeolocationService.geocode(request.street, request.city, request.state, request.zip_code)
        distributor_id = await DistributorRepository.create(DistributorDTO(
            business_name=request.business_name,
            contact_name=request.full_name,
            email=request.email_address,
            phone=request.phone_number,
            website=request.website,
            street=request.street,
            city=request.city,
            state=request.state,
            zip_code=request.zip_code,
            latitude=coordinates.latitude,
            longitude=coordinates.longitude,
            territory=request.territory,
            business_type=request.business_type,
            is_active=True,
            distribution_request_id=request.id,
        ), session)
        await session_commit(session)
        return distributor_id

    @staticmethod
    async def accept_request(unique_id: str, session: AsyncSession) -> DistributionOutcomeDTO:
        request = await DistributionService._transition(unique_id, DistributionRequestStatus.ACCEPTED, session)
        outcome = DistributionOutcomeDTO(request=request)

        try:
            outcome.distributor_id = await DistributionService.create_distributor_from_request(request, session)
            logger.info(f"Distributor {outcome.distributor_id} created from request {unique_id}")
        except (StorefrontException, SQLAlchemyError, ValueError) as e:
            await session.rollback()
            logger.error(f"Failed to create distributor from request {unique_id}: {e}")
            outcome.warnings.append(f"Distributor record could not be created: {e}")

        try:
            await NotificationService.distributor_accepted(request)
        except EmailDeliveryException as e:
            logger.error(f"Acceptance email for request {unique_id} failed: {e.message}")
            outcome.warnings.append(f"Acceptance email failed: {e.message}")
        return outcome

    @staticmethod
    async def decline_request(unique_id: str, session: AsyncSession) -> DistributionOutcomeDTO:
        request = await DistributionService._transition(unique_id, DistributionRequestStatus.DECLINED, session)
        outcome = DistributionOutcomeDTO(request=request)
        try:
            await NotificationService.distributor_declined(request)
        except EmailDeliveryException as e:
            logger.warning(f"Decline email for request {unique_id} failed: {e.message}")
            outcome.warnings.append(f"Decline email failed: {e.message}")
        return outcome

    @staticmethod
    async def get_active_distributors(session: AsyncSession) -> list[DistributorDTO]:
        return await DistributorRepository.get_active(session)

    @staticmethod
    async def find_distributors_near(latitude: float, longitude: float, radius_miles: float,
                                     session: AsyncSession) -> list[NearbyDistributorDTO]:
        """Active distributors within radius_miles, nearest first."""
        nearby = []
        for distributor in await DistributorRepository.get_active(session):
            distance = GeolocationService.calculate_distance(
                latitude, longitude, distributor.latitude, distributor.longitude
            )
            if distance <= radius_miles:
                nearby.append(NearbyDistributorDTO(**distributor.model_dump(), distance_miles=distance))
        return sorted(nearby, key=lambda d: d.distance_miles)

    @staticmethod
    async def clean_distributors(session: AsyncSession) -> dict[str, int]:
        """Remove every distributor and distribution request (admin reset)."""
        distributors_before = await DistributorRepository.count(session)
        requests_before = await DistributionRequestRepository.count(session)
        deleted_distributors = await DistributorRepository.delete_all(session)
        deleted_requests = await DistributionRequestRepository.delete_all(session)
        await session_commit(session)
        logger.warning(f"Cleaned {deleted_distributors} distributor(s) and {deleted_requests} request(s)")
        return {
            "distributors_before": distributors_before,
            "requests_before": requests_before,
            "distributors_deleted": deleted_distributors,
            "requests_deleted": deleted_requests,
        }
