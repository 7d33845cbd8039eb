from src.exceptions.weather.weather_service_error import WeatherServiceError


class LocationNotFoundError(WeatherServiceError):
    """Exception for locations the geocoding API returns no results for."""

    def __init__(self, location: str):
        self.location = location
        super().__init__(f"Location not found: {location}")
