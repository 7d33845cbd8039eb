from src.exceptions.base import WeatherChatError


class SynthesisError(WeatherChatError):
    """Exception raised when a reply could not be generated by the language model."""

    pass
