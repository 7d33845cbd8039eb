from src.models.weather.normalized_weather import (
    MAX_FORECAST_DAYS,
    DailyForecast,
    GeoPoint,
    NormalizedWeather,
)
from src.models.weather.weather import (
    ForecastResponse,
    ForecastSample,
    GeocodingResult,
    OpenWeatherMapResponse,
)

__all__ = [
    "MAX_FORECAST_DAYS",
    "DailyForecast",
    "GeoPoint",
    "NormalizedWeather",
    "ForecastResponse",
    "ForecastSample",
    "GeocodingResult",
    "OpenWeatherMapResponse",
]
