import asyncio
import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

import httpx
import structlog
from pydantic import ValidationError

from src.config.config import Config
from src.exceptions.weather import LocationNotFoundError, ProviderError
from src.models.intent import QueryIntent
from src.models.weather import (
    MAX_FORECAST_DAYS,
    DailyForecast,
    ForecastResponse,
    ForecastSample,
    GeocodingResult,
    GeoPoint,
    NormalizedWeather,
    OpenWeatherMapResponse,
)

logger = structlog.get_logger(__name__)

KELVIN_OFFSET = 273.15
MS_TO_KMH = 3.6
MPH_TO_KMH = 1.609344

_US_SUFFIX = re.compile(
    r",\s*(united states of america|united states|usa|us|america)$", re.IGNORECASE
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))


def to_celsius(value: float, units: str) -> int:
    """
    Convert a provider temperature to whole degrees Celsius.

    Args:
        value: Raw temperature as reported by OpenWeatherMap
        units: Units the request was made in (metric, imperial or standard)

    Returns:
        Temperature rounded to whole degrees Celsius
    """
    if units == "standard":
        value = value - KELVIN_OFFSET
    elif units == "imperial":
        value = (value - 32) * 5 / 9
    return round_half_up(value)


def to_kmh(speed: float, units: str) -> int:
    """Convert a provider wind speed (m/s, or mph for imperial) to whole km/h."""
    factor = MPH_TO_KMH if units == "imperial" else MS_TO_KMH
    return round_half_up(speed * factor)


def format_local_time(timestamp: int, utc_offset: int) -> str:
    """Format a Unix timestamp as a 12-hour clock string in the location's timezone."""
    local_zone = timezone(timedelta(seconds=utc_offset))
    return datetime.fromtimestamp(timestamp, tz=local_zone).strftime("%I:%M %p")


def local_date(timestamp: int, utc_offset: int) -> date:
    """Calendar date of a Unix timestamp in the location's timezone."""
    return datetime.fromtimestamp(timestamp, tz=timezone(timedelta(seconds=utc_offset))).date()


def normalize_location(query: str) -> str:
    """
    Clean up a free-text location before geocoding.

    Collapses whitespace, spells out a leading "St." as "Saint", drops a
    trailing United States country suffix, upper-cases a trailing two-letter
    state code and splits run-together words ("NewYork").
    """
    location = re.sub(r"\s+", " ", query.strip())
    location = re.sub(r"^(st\.?|saint)\s+", "Saint ", location, flags=re.IGNORECASE)
    location = _US_SUFFIX.sub("", location)
    location = re.sub(
        r",\s*([a-z]{2})$",
        lambda match: f", {match.group(1).upper()}",
        location,
        flags=re.IGNORECASE,
    )
    location = re.sub(r"([a-z]{2,})([A-Z][a-z])", r"\1 \2", location)
    return location.strip(" ,")


def collapse_daily_forecast(
    samples: Sequence[ForecastSample],
    utc_offset: int,
    units: str,
    days: int = MAX_FORECAST_DAYS,
) -> List[DailyForecast]:
    """
    Collapse the 3-hourly forecast feed to one entry per local calendar date.

    The first sample of each date wins; the result keeps chronological order
    and holds at most `days` entries.
    """
    daily: Dict[date, DailyForecast] = {}

    for sample in sorted(samples, key=lambda s: s.dt):
        sample_date = local_date(sample.dt, utc_offset)
        if sample_date in daily:
            continue
        condition = sample.weather[0] if sample.weather else None
        daily[sample_date] = DailyForecast(
            date=sample_date,
            temperature=to_celsius(sample.main.temp, units),
            description=condition.description if condition else "No description",
            icon=condition.icon if condition else "",
        )

    return list(daily.values())[: min(days, MAX_FORECAST_DAYS)]


class WeatherService:
    """
    Gateway to the OpenWeatherMap geocoding and weather APIs.

    Resolves a free-text location to coordinates, fetches current conditions
    and, when asked for, the multi-day forecast, and normalizes both into a
    NormalizedWeather record. Nothing is cached; every call hits the provider.
    """

    def __init__(self, config: Config, client: Optional[httpx.AsyncClient] = None):
        """Initialize the weather service."""
        self.base_url = config.openweather_base_url.rstrip("/")
        self.geo_url = config.openweather_geo_url.rstrip("/")
        self.api_key = config.openweather_api_key
        self.units = config.openweather_units

        # HTTP client configuration
        self.timeout = httpx.Timeout(config.request_timeout, connect=min(10.0, config.request_timeout))
        self.retry_attempts = config.retry_attempts
        self.retry_backoff = config.retry_backoff

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.timeout)

    async def aclose(self):
        """Close the underlying HTTP client if this service created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _make_request(self, url: str, params: Dict[str, Any]) -> Any:
        """
        Make an HTTP GET request to OpenWeatherMap with retry logic.

        Timeouts and transport errors are retried with linear backoff; any
        HTTP status other than 200 fails immediately.

        Args:
            url: Absolute endpoint URL
            params: Query parameters (the API key is added here)

        Returns:
            Decoded JSON response

        Raises:
            ProviderError: For non-success statuses, invalid JSON or exhausted retries
        """
        request_params = {**params, "appid": self.api_key}

        for attempt in range(self.retry_attempts):
            try:
                logger.info(
                    "Making API request",
                    url=url,
                    params=params,
                    attempt=attempt + 1
                )
                response = await self._client.get(url, params=request_params)

            except httpx.TimeoutException:
                logger.warning("Request timeout", url=url, attempt=attempt + 1)
                if attempt == self.retry_attempts - 1:
                    raise ProviderError("Request timeout after all retry attempts")
                await asyncio.sleep(self.retry_backoff * (attempt + 1))
                continue

            except httpx.RequestError as e:
                logger.warning("Request error", url=url, error=str(e), attempt=attempt + 1)
                if attempt == self.retry_attempts - 1:
                    raise ProviderError(f"Request failed: {str(e)}")
                await asyncio.sleep(self.retry_backoff * (attempt + 1))
                continue

            if response.status_code == 200:
                try:
                    return response.json()
                except ValueError:
                    raise ProviderError("Received invalid JSON from OpenWeatherMap", status_code=200)
            elif response.status_code == 401:
                raise ProviderError("Invalid API key", status_code=401)
            elif response.status_code == 429:
                raise ProviderError("API rate limit exceeded", status_code=429)

            logger.warning(
                "API request failed",
                url=url,
                status_code=response.status_code,
                response_text=response.text[:200],
            )
            raise ProviderError(
                f"OpenWeatherMap request failed (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        raise ProviderError("All retry attempts failed")

    async def search_locations(self, query: str, limit: int = 5) -> List[GeocodingResult]:
        """
        Look up candidate places for a free-text query.

        Args:
            query: Location text, normalized before the lookup
            limit: Maximum number of candidates (provider ranking order)

        Returns:
            Geocoding matches, best first; empty when nothing matched

        Raises:
            ProviderError: If the geocoding call fails
        """
        location = normalize_location(query)
        if not location:
            return []

        data = await self._make_request(f"{self.geo_url}/direct", {"q": location, "limit": limit})
        if not isinstance(data, list):
            raise ProviderError("Unexpected geocoding response format")

        try:
            return [GeocodingResult(**item) for item in data]
        except (ValidationError, TypeError) as e:
            logger.error("Failed to parse geocoding data", location=location, error=str(e))
            raise ProviderError(f"Invalid geocoding data received for {location}")

    async def geocode(self, location: str) -> GeocodingResult:
        """
        Resolve a location to its single best match.

        Raises:
            LocationNotFoundError: If the provider returns no results
            ProviderError: If the geocoding call fails
        """
        results = await self.search_locations(location, limit=1)
        if not results:
            logger.info("No geocoding results", location=location)
            raise LocationNotFoundError(location)
        return results[0]

    async def get_current_conditions(self, lat: float, lon: float) -> OpenWeatherMapResponse:
        """Fetch the raw current-conditions record for a coordinate pair."""
        data = await self._make_request(
            f"{self.base_url}/weather", {"lat": lat, "lon": lon, "units": self.units}
        )
        try:
            return OpenWeatherMapResponse(**data)
        except (ValidationError, TypeError) as e:
            logger.error("Failed to parse weather data", lat=lat, lon=lon, error=str(e))
            raise ProviderError("Invalid weather data received")

    async def get_forecast_feed(self, lat: float, lon: float) -> ForecastResponse:
        """Fetch the raw 3-hourly forecast feed for a coordinate pair."""
        data = await self._make_request(
            f"{self.base_url}/forecast", {"lat": lat, "lon": lon, "units": self.units}
        )
        try:
            return ForecastResponse(**data)
        except (ValidationError, TypeError) as e:
            logger.error("Failed to parse forecast data", lat=lat, lon=lon, error=str(e))
            raise ProviderError("Invalid forecast data received")

    def _normalize(
        self,
        place: GeocodingResult,
        current: OpenWeatherMapResponse,
        forecast: Optional[List[DailyForecast]],
    ) -> NormalizedWeather:
        condition = current.weather[0] if current.weather else None

        try:
            return NormalizedWeather(
                city=current.name or place.name,
                coordinates=GeoPoint(lat=place.lat, lon=place.lon),
                temperature=to_celsius(current.main.temp, self.units),
                feels_like=to_celsius(current.main.feels_like, self.units),
                description=condition.description if condition else "No description",
                humidity=current.main.humidity,
                wind_speed=to_kmh(current.wind.speed, self.units) if current.wind else 0,
                sunrise=format_local_time(current.sys.sunrise, current.timezone),
                sunset=format_local_time(current.sys.sunset, current.timezone),
                observed_on=local_date(current.dt, current.timezone),
                forecast=forecast,
            )
        except ValidationError as e:
            logger.error("Failed to normalize weather data", city=place.name, error=str(e))
            raise ProviderError(f"Invalid weather data received for {place.name}")

    async def _fetch(self, location: str, include_forecast: bool, days: int) -> NormalizedWeather:
        start_time = datetime.now()
        logger.info("Fetching weather", location=location, include_forecast=include_forecast)

        place = await self.geocode(location)
        current = await self.get_current_conditions(place.lat, place.lon)

        forecast = None
        if include_forecast:
            feed = await self.get_forecast_feed(place.lat, place.lon)
            forecast = collapse_daily_forecast(feed.samples, feed.city.timezone, self.units, days)

        record = self._normalize(place, current, forecast)

        logger.info(
            "Successfully fetched weather",
            location=location,
            city=record.city,
            forecast_days=len(record.forecast) if record.forecast else 0,
            duration_seconds=(datetime.now() - start_time).total_seconds(),
        )
        return record

    async def fetch(self, location: str, intent: QueryIntent) -> NormalizedWeather:
        """
        Resolve a location and fetch normalized weather for a classified intent.

        Current conditions are always fetched; the forecast feed only when the
        intent asks for one.

        Args:
            location: Resolved place name (e.g., "Saint Louis, Missouri")
            intent: Classified query intent, must not be NONE

        Returns:
            NormalizedWeather for the best geocoding match

        Raises:
            LocationNotFoundError: If geocoding yields no results
            ProviderError: If an upstream call fails
        """
        if intent is QueryIntent.NONE:
            raise ValueError("Weather can only be fetched for a weather intent")
        return await self._fetch(location, intent.includes_forecast, MAX_FORECAST_DAYS)

    async def get_current_weather(self, location: str) -> NormalizedWeather:
        """Get current conditions only for a location."""
        return await self._fetch(location, include_forecast=False, days=0)

    async def get_forecast(self, location: str, days: int = MAX_FORECAST_DAYS) -> NormalizedWeather:
        """Get current conditions plus up to `days` daily forecast entries."""
        return await self._fetch(location, include_forecast=True, days=days)
