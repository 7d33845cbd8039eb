from typing import List

import structlog
from fastapi import APIRouter, Depends, status, HTTPException, Query

from src.api.auth import verify_token
from src.api.dependencies import get_weather_service
from src.exceptions.weather import ProviderError
from src.models.weather import GeocodingResult
from src.services.weather_service import WeatherService

logger = structlog.get_logger(__name__)

# Create router
router = APIRouter(prefix="/locations", tags=["Locations"])


@router.get("/search", summary="Search Locations", response_model=List[GeocodingResult])
async def search_locations(
    q: str = Query(..., min_length=1, description="Location search text"),
    limit: int = Query(5, ge=1, le=10, description="Maximum number of results"),
    weather_service: WeatherService = Depends(get_weather_service),
    authenticated: bool = Depends(verify_token)
):
    """
    Search for places matching a free-text query.

    Returns the provider's candidates in ranking order; an empty list means
    nothing matched.

    Raises:
        HTTPException: 502 if the geocoding provider fails.
    """
    logger.info("API request: Search locations", query=q, limit=limit, authenticated=authenticated)

    try:
        results = await weather_service.search_locations(q, limit)
    except ProviderError as e:
        logger.warning("Location search failed", query=q, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to search locations"
        )

    logger.info("Location search completed", query=q, result_count=len(results))
    return results
