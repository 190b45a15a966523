import logging

from fastapi import APIRouter, Query

from db import get_db_session
from exceptions.base import ValidationException
from models.distribution_request import DistributorApplicationRequest, DistributionOutcomeDTO
from services.distribution import DistributionService, DEFAULT_SEARCH_RADIUS_MILES
from services.geolocation import GeolocationService
from web.dependencies import generate_correlation_id

logger = logging.getLogger(__name__)

distribution_router = APIRouter(tags=["distribution"])


def _outcome_body(outcome: DistributionOutcomeDTO, action: str) -> dict:
    request = outcome.request
    return {
        "success": True,
        "message": f"Distribution request {action} successfully",
        "request": {
            "id": request.id,
            "business_name": request.business_name,
            "contact_name": request.full_name,
            "status": request.status.value,
            f"{action}_at": request.responded_at.isoformat() if request.responded_at else None,
        },
        "distributor_id": outcome.distributor_id,
        "warnings": outcome.warnings,
    }


@distribution_router.post("/distributor-application")
async def submit_distributor_application(payload: DistributorApplicationRequest):
    correlation_id = generate_correlation_id()
    logger.info(f"[{correlation_id}] Distributor application from {payload.business_name}")
    async with get_db_session() as session:
        request, warnings = await DistributionService.submit_application(payload, session)
    logger.info(f"[{correlation_id}] Stored as request {request.unique_id} ({len(warnings)} warning(s))")
    return {
        "success": True,
        "message": "Distributor application submitted successfully",
        "unique_id": request.unique_id,
        "warnings": warnings,
    }


@distribution_router.api_route("/distribution/accept/{unique_id}", methods=["GET", "POST"])
async def accept_distribution_request(unique_id: str):
    """
    Accept a pending application (target of the emailed link).

    Returns:
        200: Accepted; warnings list side effects that failed
        400: Malformed id
        404: Unknown id
        409: Already accepted or declined (body carries status and processed_at)
    """
    correlation_id = generate_correlation_id()
    logger.info(f"[{correlation_id}] Accepting distribution request {unique_id}")
    async with get_db_session() as session:
        outcome = await DistributionService.accept_request(unique_id, session)
    return _outcome_body(outcome, "accepted")


@distribution_router.api_route("/distribution/decline/{unique_id}", methods=["GET", "POST"])
async def decline_distribution_request(unique_id: str):
    correlation_id = generate_correlation_id()
    logger.info(f"[{correlation_id}] Declining distribution request {unique_id}")
    async with get_db_session() as session:
        outcome = await DistributionService.decline_request(unique_id, session)
    return _outcome_body(outcome, "declined")


@distribution_router.get("/distributors")
async def get_distributors(lat: float | None = Query(None, ge=-90, le=90),
                           lng: float | None = Query(None, ge=-180, le=180),
                           radius: float = Query(DEFAULT_SEARCH_RADIUS_MILES, gt=0),
                           zip: str | None = Query(None)):
    """
    Active distributors, optionally near a point (lat/lng) or a ZIP code.

    lat/lng take precedence over zip. Results near a point are sorted by distance.
    """
    async with get_db_session() as session:
        if lat is not None and lng is not None:
            distributors = await DistributionService.find_distributors_near(lat, lng, radius, session)
            return {
                "success": True,
                "distributors": [d.model_dump(mode="json") for d in distributors],
                "search_location": {"latitude": lat, "longitude": lng, "radius": radius},
            }

        if zip:
            location = await GeolocationService.get_zip_code_location(zip)
            if location is None:
                raise ValidationException("Invalid or unknown ZIP code", field="zip")
            distributors = await DistributionService.find_distributors_near(
                location.latitude, location.longitude, radius, session
            )
            return {
                "success": True,
                "distributors": [d.model_dump(mode="json") for d in distributors],
                "search_location": {**location.model_dump(), "radius": radius},
            }

        distributors = await DistributionService.get_active_distributors(session)
        return {"success": True, "distributors": [d.model_dump(mode="json") for d in distributors]}
