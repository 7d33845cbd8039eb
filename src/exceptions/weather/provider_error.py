from typing import Optional

from src.exceptions.weather.weather_service_error import WeatherServiceError


class ProviderError(WeatherServiceError):
    """Exception for failed or malformed upstream weather API responses."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
