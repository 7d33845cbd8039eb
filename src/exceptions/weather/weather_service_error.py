from src.exceptions.base import WeatherChatError


class WeatherServiceError(WeatherChatError):
    """Base exception for weather service errors."""

    pass
