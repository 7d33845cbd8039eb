class WeatherChatError(Exception):
    """Base exception for the weather chat assistant."""

    pass
