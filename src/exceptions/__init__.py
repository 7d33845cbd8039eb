from src.exceptions.base import WeatherChatError
from src.exceptions.classification import ClassificationAmbiguousError
from src.exceptions.configuration import ConfigurationError
from src.exceptions.synthesis import SynthesisError
from src.exceptions.weather import (
    LocationNotFoundError,
    ProviderError,
    WeatherServiceError,
)

__all__ = [
    "WeatherChatError",
    "ClassificationAmbiguousError",
    "ConfigurationError",
    "SynthesisError",
    "LocationNotFoundError",
    "ProviderError",
    "WeatherServiceError",
]
