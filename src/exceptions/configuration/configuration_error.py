from src.exceptions.base import WeatherChatError


class ConfigurationError(WeatherChatError):
    """Exception raised when required settings are missing or invalid at startup."""

    pass
