import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

MAX_FORECAST_DAYS = 7


class GeoPoint(BaseModel):
    """Latitude/longitude pair of the resolved location."""

    lat: float = Field(..., ge=-90, le=90, description="Latitude")
    lon: float = Field(..., ge=-180, le=180, description="Longitude")


class DailyForecast(BaseModel):
    """One calendar day of the normalized forecast."""

    date: datetime.date = Field(..., description="Local calendar date")
    temperature: int = Field(..., description="Temperature in whole degrees Celsius")
    description: str = Field(..., description="Weather description")
    icon: str = Field(..., description="OpenWeatherMap icon code")


class NormalizedWeather(BaseModel):
    """Weather record returned to the chat client and rendered as a weather card."""

    city: str = Field(..., min_length=1, description="City name")
    coordinates: GeoPoint = Field(..., description="Resolved coordinates")
    temperature: int = Field(..., description="Temperature in whole degrees Celsius")
    feels_like: int = Field(..., description="Feels like temperature in whole degrees Celsius")
    description: str = Field(..., description="Weather description")
    humidity: int = Field(..., ge=0, le=100, description="Humidity percentage")
    wind_speed: int = Field(..., ge=0, description="Wind speed in km/h")
    sunrise: str = Field(..., description="Local sunrise time, 12-hour clock")
    sunset: str = Field(..., description="Local sunset time, 12-hour clock")
    observed_on: Optional[datetime.date] = Field(
        None, description="Local calendar date of the current observation"
    )
    forecast: Optional[List[DailyForecast]] = Field(
        None, max_length=MAX_FORECAST_DAYS, description="Daily forecast, earliest first"
    )

    @field_validator("forecast")
    def validate_forecast_order(cls, v):
        """Forecast days must be strictly ascending (one entry per date)."""
        if v:
            for previous, current in zip(v, v[1:]):
                if current.date <= previous.date:
                    raise ValueError("Forecast dates must be unique and ascending")
        return v
