from src.exceptions.base import WeatherChatError


class ClassificationAmbiguousError(WeatherChatError):
    """Exception raised when the language model output cannot be interpreted."""

    pass
