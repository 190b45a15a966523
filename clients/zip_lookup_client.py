import logging

import config
from clients.api_wrapper import ApiWrapper
from models.distributor import CoordinatesDTO

logger = logging.getLogger(__name__)


class ZipLookupClient:
    """ZIP code -> coordinates via Zippopotam.us."""

    @staticmethod
    async def lookup(zip_code: str) -> CoordinatesDTO | None:
        response = await ApiWrapper.fetch_api_request(
            f"{config.ZIP_LOOKUP_URL}/{zip_code}",
            service="zippopotam"
        )
        places = response.get("places") or []
        if not places:
            return None
        place = places[0]
        return CoordinatesDTO(
            latitude=float(place["latitude"]),
            longitude=float(place["longitude"]),
            city=place.get("place name"),
            state=place.get("state abbreviation"),
            zip_code=zip_code,
        )
