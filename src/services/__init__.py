from src.services.weather_service import WeatherService

__all__ = ["WeatherService"]
