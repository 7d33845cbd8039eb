from src.exceptions.weather.location_not_found_error import LocationNotFoundError
from src.exceptions.weather.provider_error import ProviderError
from src.exceptions.weather.weather_service_error import WeatherServiceError

__all__ = ["LocationNotFoundError", "ProviderError", "WeatherServiceError"]
