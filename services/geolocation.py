import logging
import math
import re

from clients.zip_lookup_client import ZipLookupClient
from exceptions.base import UpstreamServiceException
from models.distributor import CoordinatesDTO

logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3959

# Force Dowel Company, Gilbert AZ
DEFAULT_COORDINATES = (33.3528, -111.7890)

CITY_COORDINATES: dict[str, tuple[float, float]] = {
    "phoenix": (33.4484, -112.0740),
    "tucson": (32.2226, -110.9747),
    "mesa": (33.4152, -111.8315),
    "chandler": (33.3062, -111.8413),
    "gilbert": (33.3528, -111.7890),
    "scottsdale": (33.4942, -111.9261),
    "tempe": (33.4255, -111.9400),
    "peoria": (33.5806, -112.2374),
    "los angeles": (34.0522, -118.2437),
    "san diego": (32.7157, -117.1611),
    "san francisco": (37.7749, -122.4194),
    "las vegas": (36.1699, -115.1398),
    "denver": (39.7392, -104.9903),
    "albuquerque": (35.0844, -106.6504),
    "salt lake city": (40.7608, -111.8910),
}

# Approximate state centers
STATE_COORDINATES: dict[str, tuple[float, float]] = {
    "AZ": (34.0489, -111.0937),
    "CA": (36.7783, -119.4179),
    "NV": (38.8026, -116.4194),
    "NM": (34.5199, -105.8701),
    "UT": (39.3210, -111.0937),
    "CO": (39.5501, -105.7821),
    "TX": (31.9686, -99.9018),
}


class GeolocationService:

    @staticmethod
    def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Great-circle distance in miles (haversine), rounded to 2 decimals."""
        d_lat = math.radians(lat2 - lat1)
        d_lon = math.radians(lon2 - lon1)
        a = (math.sin(d_lat / 2) ** 2
             + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2)
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
        return round(EARTH_RADIUS_MILES * c, 2)

    @staticmethod
    def approximate_coordinates(city: str | None, state: str | None) -> tuple[float, float]:
        """
        Best-effort coordinates without a geocoding provider.

        Known city first, then the state's center, then the company location.
        """
        city_key = (city or "").strip().lower()
        if city_key in CITY_COORDINATES:
            return CITY_COORDINATES[city_key]
        state_key = (state or "").strip().upper()
        if state_key in STATE_COORDINATES:
            return STATE_COORDINATES[state_key]
        return DEFAULT_COORDINATES

    @staticmethod
    def clean_zip_code(zip_code: str) -> str | None:
        digits = re.sub(r"\D", "", zip_code or "")[:5]
        return digits if len(digits) == 5 else None

    @staticmethod
    async def get_zip_code_location(zip_code: str) -> CoordinatesDTO | None:
        clean_zip = GeolocationService.clean_zip_code(zip_code)
        if clean_zip is None:
            return None
        try:
            return await ZipLookupClient.lookup(clean_zip)
        except UpstreamServiceException as e:
            # Zippopotam answers 404 for unknown ZIP codes
            logger.info(f"ZIP lookup for {clean_zip} failed: {e.message}")
            return None

    @staticmethod
    async def geocode(street: str, city: str, state: str, zip_code: str) -> CoordinatesDTO:
        """Coordinates for an address: ZIP lookup, then the approximate table."""
        location = await GeolocationService.get_zip_code_location(zip_code)
        if location is not None:
            return location
        latitude, longitude = GeolocationService.approximate_coordinates(city, state)
        logger.info(f"Using approximate coordinates for {city}, {state}")
        return CoordinatesDTO(latitude=latitude, longitude=longitude, city=city, state=state, zip_code=zip_code)
