import structlog
from fastapi import APIRouter, Depends, status, HTTPException, Query

from src.api.auth import verify_token
from src.api.dependencies import get_weather_service
from src.exceptions.weather import LocationNotFoundError, ProviderError
from src.models.weather import MAX_FORECAST_DAYS, NormalizedWeather
from src.services.weather_service import WeatherService

logger = structlog.get_logger(__name__)

# Create router
router = APIRouter(prefix="/weather", tags=["Weather"])


def _to_http_error(city: str, error: Exception) -> HTTPException:
    if isinstance(error, LocationNotFoundError):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"City not found: {city}"
        )
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail="Failed to fetch weather data"
    )


@router.get("/current", summary="Get Current Weather", response_model=NormalizedWeather)
async def get_current_weather(
    city: str = Query(..., min_length=1, description="City name"),
    weather_service: WeatherService = Depends(get_weather_service),
    authenticated: bool = Depends(verify_token)
):
    """
    Get current weather conditions for a city.

    Args:
        city: City name to query.

    Returns:
        Normalized weather record without a forecast.

    Raises:
        HTTPException: 404 if city not found, 502 if the provider fails.
    """
    logger.info("API request: Get current weather", city=city, authenticated=authenticated)

    try:
        weather = await weather_service.get_current_weather(city)
    except (LocationNotFoundError, ProviderError) as e:
        logger.warning("Failed to get current weather", city=city, error=str(e))
        raise _to_http_error(city, e)

    logger.info("Successfully retrieved current weather", city=weather.city, temperature=weather.temperature)
    return weather


@router.get("/forecast", summary="Get Weather Forecast", response_model=NormalizedWeather)
async def get_weather_forecast(
    city: str = Query(..., min_length=1, description="City name"),
    days: int = Query(MAX_FORECAST_DAYS, ge=1, le=MAX_FORECAST_DAYS, description="Number of days"),
    weather_service: WeatherService = Depends(get_weather_service),
    authenticated: bool = Depends(verify_token)
):
    """
    Get current conditions plus a daily forecast for a city.

    Args:
        city: City name to query.
        days: Number of forecast days (1-7).

    Returns:
        Normalized weather record including the daily forecast.

    Raises:
        HTTPException: 404 if city not found, 502 if the provider fails.
    """
    logger.info("API request: Get weather forecast", city=city, days=days, authenticated=authenticated)

    try:
        weather = await weather_service.get_forecast(city, days)
    except (LocationNotFoundError, ProviderError) as e:
        logger.warning("Failed to get weather forecast", city=city, error=str(e))
        raise _to_http_error(city, e)

    logger.info(
        "Successfully retrieved weather forecast",
        city=weather.city,
        forecast_days=len(weather.forecast or [])
    )
    return weather
