"""
Reverse geocoding for issue locations.
Uses Google Maps when an API key is configured, OpenStreetMap Nominatim otherwise.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from citypulse.core.config import settings
from citypulse.core.errors import ExternalServiceError

logger = logging.getLogger(__name__)


@dataclass
class GeocodingResult:
    """Result from a reverse geocoding lookup"""
    lat: float
    lng: float
    formatted_address: str
    place_id: Optional[str] = None
    provider: str = "nominatim"


class GeocodingService:
    """Service for turning coordinates into a human-readable address"""

    google_base_url = "https://maps.googleapis.com/maps/api/geocode/json"

    def __init__(
        self,
        google_api_key: Optional[str] = None,
        osm_base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.google_api_key = google_api_key
        self.osm_base_url = (osm_base_url or settings.nominatim_base_url).rstrip("/")
        self.user_agent = user_agent or settings.geocoding_user_agent
        self.timeout = timeout if timeout is not None else settings.geocoding_timeout_s
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            headers={"User-Agent": self.user_agent},
        )

    async def reverse_geocode(self, lat: float, lng: float) -> GeocodingResult:
        """Convert coordinates to an address; raises ExternalServiceError when the lookup fails"""
        try:
            if self.google_api_key:
                return await self._reverse_geocode_google(lat, lng)
            return await self._reverse_geocode_osm(lat, lng)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Reverse geocoding failed", extra={"lat": lat, "lng": lng, "error": str(exc)})
            raise ExternalServiceError("Failed to get address for this location") from exc

    async def _reverse_geocode_google(self, lat: float, lng: float) -> GeocodingResult:
        async with self._client() as client:
            response = await client.get(
                self.google_base_url,
                params={"latlng": f"{lat},{lng}", "key": self.google_api_key},
            )
            response.raise_for_status()
            data = response.json()

        if data.get("status") != "OK" or not data.get("results"):
            raise ValueError(f"Google geocoder returned {data.get('status', 'no status')}")
        result = data["results"][0]
        return GeocodingResult(
            lat=lat,
            lng=lng,
            formatted_address=result["formatted_address"],
            place_id=result.get("place_id"),
            provider="google",
        )

    async def _reverse_geocode_osm(self, lat: float, lng: float) -> GeocodingResult:
        async with self._client() as client:
            response = await client.get(
                f"{self.osm_base_url}/reverse",
                params={"format": "json", "lat": lat, "lon": lng},
            )
            response.raise_for_status()
            data = response.json()

        address = data.get("display_name") if isinstance(data, dict) else None
        if not address:
            raise ValueError(data.get("error", "no address") if isinstance(data, dict) else "no address")
        place_id = data.get("place_id")
        return GeocodingResult(
            lat=lat,
            lng=lng,
            formatted_address=address,
            place_id=str(place_id) if place_id is not None else None,
        )


geocoding_service: Optional[GeocodingService] = None


def get_geocoding_service() -> GeocodingService:
    """Get or create the geocoding service instance"""
    global geocoding_service
    if geocoding_service is None:
        geocoding_service = GeocodingService(settings.google_maps_api_key)
    return geocoding_service
