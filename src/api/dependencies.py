from fastapi import Request

from agent.orchestrator import TurnOrchestrator
from src.services.weather_service import WeatherService


def get_orchestrator(request: Request) -> TurnOrchestrator:
    """Turn orchestrator built by the app factory."""
    return request.app.state.orchestrator


def get_weather_service(request: Request) -> WeatherService:
    """Weather gateway built by the app factory."""
    return request.app.state.weather_service
