from fastapi import APIRouter, Depends, Query

from citypulse.core.config import settings
from citypulse.services.geocoding import GeocodingService, get_geocoding_service

router = APIRouter(prefix=f"{settings.api_v1_prefix}/geocode", tags=["Geocoding"])


@router.get("/reverse")
async def reverse_geocode(
    lat: float = Query(ge=-90, le=90),
    lng: float = Query(ge=-180, le=180),
    service: GeocodingService = Depends(get_geocoding_service),
) -> dict:
    result = await service.reverse_geocode(lat, lng)
    return {
        "success": True,
        "lat": result.lat,
        "lng": result.lng,
        "address": result.formatted_address,
        "place_id": result.place_id,
        "provider": result.provider,
    }
