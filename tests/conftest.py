import pytest
from datetime import date

from agent.intent_classifier import LOCATION_INSTRUCTIONS, NOT_WEATHER_ANSWER
from src.config.config import Config
from src.models.weather import DailyForecast, GeoPoint, NormalizedWeather

# 2023-10-01 00:00:00 UTC
BASE_TIMESTAMP = 1696118400
THREE_HOURS = 3 * 3600


class StubLanguageModel:
    """Deterministic stand-in for the language model port.

    Location prompts are answered from `locations`, keyed by the content of
    the last message; an exception stored there is raised instead. Every
    other prompt gets `reply`.
    """

    def __init__(self, locations=None, reply="", error=None):
        self.locations = locations or {}
        self.reply = reply
        self.error = error
        self.calls = []

    async def complete(self, instructions, messages, *, temperature, max_tokens):
        self.calls.append({
            "instructions": instructions,
            "messages": list(messages),
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if self.error is not None:
            raise self.error
        if instructions == LOCATION_INSTRUCTIONS:
            answer = self.locations.get(messages[-1]["content"], NOT_WEATHER_ANSWER)
            if isinstance(answer, Exception):
                raise answer
            return answer
        return self.reply


@pytest.fixture
def test_config():
    """Explicit settings, independent of the environment and any .env file."""
    return Config(
        _env_file=None,
        openai_api_key="test-openai-key",
        openweather_api_key="test-weather-key",
        retry_backoff=0,
    )


@pytest.fixture
def stub_language_model():
    """Factory for deterministic language model stubs."""
    return StubLanguageModel


@pytest.fixture
def geocoding_response():
    """Sample OpenWeatherMap geocoding response for Paris."""
    return [
        {
            "name": "Paris",
            "local_names": {"fr": "Paris", "en": "Paris"},
            "lat": 48.8588897,
            "lon": 2.3200410,
            "country": "FR",
            "state": "Ile-de-France",
        }
    ]


@pytest.fixture
def current_weather_response():
    """Sample OpenWeatherMap current weather response for Paris (metric units)."""
    return {
        "coord": {"lon": 2.32, "lat": 48.8589},
        "weather": [{"id": 800, "main": "Clear", "description": "clear sky", "icon": "01d"}],
        "base": "stations",
        "main": {
            "temp": 18.4,
            "feels_like": 17.6,
            "temp_min": 16.9,
            "temp_max": 19.8,
            "pressure": 1016,
            "humidity": 62,
        },
        "visibility": 10000,
        "wind": {"speed": 3.5, "deg": 220},
        "clouds": {"all": 0},
        "dt": 1696161600,
        "sys": {
            "type": 2,
            "id": 2041230,
            "country": "FR",
            "sunrise": 1696138800,
            "sunset": 1696182000,
        },
        "timezone": 7200,
        "id": 6545270,
        "name": "Paris",
        "cod": 200,
    }


def _forecast_sample(dt, temp, description, icon):
    return {
        "dt": dt,
        "main": {"temp": temp, "feels_like": temp - 1, "humidity": 55},
        "weather": [{"id": 800, "main": "Clear", "description": description, "icon": icon}],
        "wind": {"speed": 2.5},
    }


@pytest.fixture
def make_forecast_response():
    """Factory for 3-hourly forecast feeds spanning `days` UTC days."""

    def _make(days=5, timezone=0, start=BASE_TIMESTAMP):
        samples = []
        for day in range(days):
            for slot in range(8):
                dt = start + day * 86400 + slot * THREE_HOURS
                description = "light rain" if slot == 0 else "scattered clouds"
                icon = "10d" if slot == 0 else "03d"
                samples.append(_forecast_sample(dt, 10.0 + day + slot * 0.1, description, icon))
        return {
            "cod": "200",
            "cnt": len(samples),
            "list": samples,
            "city": {"id": 2988507, "name": "Paris", "country": "FR", "timezone": timezone},
        }

    return _make


@pytest.fixture
def sample_weather():
    """Normalized Paris record with a three-day forecast."""
    return NormalizedWeather(
        city="Paris",
        coordinates=GeoPoint(lat=48.8589, lon=2.32),
        temperature=18,
        feels_like=18,
        description="clear sky",
        humidity=62,
        wind_speed=13,
        sunrise="07:40 AM",
        sunset="07:40 PM",
        observed_on=date(2023, 10, 1),
        forecast=[
            DailyForecast(date=date(2023, 10, 1), temperature=18, description="clear sky", icon="01d"),
            DailyForecast(date=date(2023, 10, 2), temperature=16, description="light rain", icon="10d"),
            DailyForecast(date=date(2023, 10, 3), temperature=15, description="overcast clouds", icon="04d"),
        ],
    )


@pytest.fixture
def sample_current_weather(sample_weather):
    """Normalized Paris record without a forecast."""
    return sample_weather.model_copy(update={"forecast": None})
