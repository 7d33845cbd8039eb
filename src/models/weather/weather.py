from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class GeocodingResult(BaseModel):
    """Single match from the OpenWeatherMap direct geocoding API."""

    name: str = Field(..., description="Place name")
    country: str = Field(..., description="Country code (e.g., US, GB)")
    state: Optional[str] = Field(None, description="State or region, where available")
    lat: float = Field(..., ge=-90, le=90, description="Latitude")
    lon: float = Field(..., ge=-180, le=180, description="Longitude")
    local_names: Optional[Dict[str, str]] = Field(None, description="Localized place names")

    @property
    def display_name(self) -> str:
        """Human-readable 'Name, State, Country' label."""
        parts = [self.name, self.state, self.country]
        return ", ".join(part for part in parts if part)


class WeatherCondition(BaseModel):
    """Weather condition details."""

    id: int = Field(..., description="Weather condition ID")
    main: str = Field(..., description="Main weather condition (e.g., Rain, Snow, Clear)")
    description: str = Field(..., description="Detailed weather description")
    icon: str = Field(..., description="Weather icon code")


class MainWeatherData(BaseModel):
    """Main weather measurements."""

    temp: float = Field(..., description="Current temperature")
    feels_like: float = Field(..., description="Human perception of temperature")
    temp_min: Optional[float] = Field(None, description="Minimum temperature")
    temp_max: Optional[float] = Field(None, description="Maximum temperature")
    pressure: Optional[int] = Field(None, description="Atmospheric pressure in hPa")
    humidity: int = Field(..., ge=0, le=100, description="Humidity percentage")


class WindData(BaseModel):
    """Wind information."""

    speed: float = Field(..., ge=0, description="Wind speed in provider units")
    deg: Optional[int] = Field(None, ge=0, le=360, description="Wind direction in degrees")
    gust: Optional[float] = Field(None, ge=0, description="Wind gust speed")


class SystemData(BaseModel):
    """System information from API response."""

    country: Optional[str] = Field(None, description="Country code (e.g., US, GB)")
    sunrise: int = Field(..., description="Sunrise time in Unix timestamp")
    sunset: int = Field(..., description="Sunset time in Unix timestamp")


class Coordinates(BaseModel):
    """Geographic coordinates."""

    lat: float = Field(..., ge=-90, le=90, description="Latitude")
    lon: float = Field(..., ge=-180, le=180, description="Longitude")


class OpenWeatherMapResponse(BaseModel):
    """OpenWeatherMap current weather response (fields used by the assistant)."""

    coord: Coordinates = Field(..., description="Geographic coordinates")
    weather: List[WeatherCondition] = Field(..., description="Weather conditions")
    main: MainWeatherData = Field(..., description="Main weather data")
    wind: Optional[WindData] = Field(None, description="Wind information")
    dt: int = Field(..., description="Data calculation time in Unix timestamp")
    sys: SystemData = Field(..., description="System information")
    timezone: int = Field(0, description="Shift in seconds from UTC")
    name: str = Field("", description="City name")


class ForecastSample(BaseModel):
    """One 3-hourly sample of the forecast feed."""

    dt: int = Field(..., description="Forecast time in Unix timestamp")
    main: MainWeatherData = Field(..., description="Main weather data")
    weather: List[WeatherCondition] = Field(..., description="Weather conditions")
    wind: Optional[WindData] = Field(None, description="Wind information")


class ForecastCity(BaseModel):
    """City block of the forecast feed."""

    name: str = Field("", description="City name")
    country: Optional[str] = Field(None, description="Country code")
    timezone: int = Field(0, description="Shift in seconds from UTC")


class ForecastResponse(BaseModel):
    """OpenWeatherMap 5 day / 3 hour forecast response."""

    samples: List[ForecastSample] = Field(
        default_factory=list, alias="list", description="Forecast samples"
    )
    city: ForecastCity = Field(default_factory=ForecastCity, description="City metadata")
