from datetime import date

import pytest

from agent.response_synthesizer import (
    CHAT_FALLBACK_REPLY,
    CHAT_INSTRUCTIONS,
    ResponseSynthesizer,
    build_fallback_reply,
    format_forecast_block,
    weather_emoji,
)
from src.models.chat import ConversationTurn
from src.models.intent import QueryIntent

HISTORY = [ConversationTurn(role="user", content="What's the weather in Paris?")]


class TestFormatting:
    """Test cases for the deterministic formatting helpers."""

    @pytest.mark.parametrize("description,emoji", [
        ("clear sky", "☀️"),
        ("thunderstorm with rain", "⛈️"),
        ("scattered clouds", "☁️"),
        ("light rain", "🌧️"),
        ("light snow", "❄️"),
        ("mist", "🌫️"),
        ("tornado", "🌡️"),
    ])
    def test_weather_emoji(self, description, emoji):
        assert weather_emoji(description) == emoji

    def test_format_forecast_block(self, sample_weather):
        block = format_forecast_block(sample_weather.forecast)

        assert block.splitlines() == [
            "Today (Oct 1): 18°C, clear sky",
            "Tomorrow (Oct 2): 16°C, light rain",
            "Tuesday (Oct 3): 15°C, overcast clouds",
        ]

    def test_format_forecast_block_relative_to_observation_date(self, sample_weather):
        block = format_forecast_block(sample_weather.forecast, today=date(2023, 9, 30))

        assert block.splitlines() == [
            "Tomorrow (Oct 1): 18°C, clear sky",
            "Monday (Oct 2): 16°C, light rain",
            "Tuesday (Oct 3): 15°C, overcast clouds",
        ]

    def test_format_empty_forecast_block(self):
        assert format_forecast_block([]) == "No forecast data available"

    def test_fallback_reply_current(self, sample_current_weather):
        reply = build_fallback_reply(sample_current_weather, QueryIntent.CURRENT)

        assert reply.startswith("☀️ Right now in Paris it's 18°C (feels like 18°C) with clear sky.")
        assert "Humidity is 62%" in reply
        assert "13 km/h" in reply
        assert "Forecast:" not in reply

    def test_fallback_reply_forecast(self, sample_weather):
        reply = build_fallback_reply(sample_weather, QueryIntent.FORECAST)

        assert reply.startswith("☀️ Here's the outlook for Paris. It's currently 18°C (feels like 18°C)")
        assert "Right now" not in reply
        assert "Humidity is 62%" in reply
        assert "13 km/h" in reply
        assert "Sunrise is at 07:40 AM and sunset at 07:40 PM." in reply
        assert "Tomorrow (Oct 2): 16°C, light rain" in reply

    def test_fallback_reply_mixed(self, sample_weather):
        reply = build_fallback_reply(sample_weather, QueryIntent.MIXED)

        assert "Right now in Paris" in reply
        assert "Forecast: Today (Oct 1): 18°C, clear sky" in reply


class TestResponseSynthesizer:
    """Test cases for the ResponseSynthesizer class."""

    def test_instructions_contain_weather_data(self, test_config, stub_language_model, sample_weather):
        synthesizer = ResponseSynthesizer(stub_language_model(), test_config)

        instructions = synthesizer.build_instructions(QueryIntent.FORECAST, sample_weather)

        assert "CURRENT WEATHER IN PARIS" in instructions
        assert "Temperature: 18°C (feels like 18°C)" in instructions
        assert "3-DAY FORECAST FOR PARIS" in instructions
        assert "Tuesday (Oct 3): 15°C, overcast clouds" in instructions
        assert "FORECAST" in instructions

    def test_instructions_without_forecast(self, test_config, stub_language_model, sample_current_weather):
        synthesizer = ResponseSynthesizer(stub_language_model(), test_config)

        instructions = synthesizer.build_instructions(QueryIntent.CURRENT, sample_current_weather)

        assert "No forecast data available" in instructions
        assert "CURRENT conditions" in instructions

    @pytest.mark.asyncio
    async def test_synthesize_returns_model_reply(
            self, test_config, stub_language_model, sample_current_weather
    ):
        model = stub_language_model(reply="It's 18°C and clear in Paris.")
        synthesizer = ResponseSynthesizer(model, test_config)

        reply = await synthesizer.synthesize(HISTORY, QueryIntent.CURRENT, sample_current_weather)

        assert reply == "It's 18°C and clear in Paris."
        assert model.calls[0]["messages"] == [{"role": "user", "content": "What's the weather in Paris?"}]
        assert model.calls[0]["temperature"] == test_config.synthesis_temperature

    @pytest.mark.asyncio
    async def test_synthesize_names_the_city(self, test_config, stub_language_model, sample_current_weather):
        model = stub_language_model(reply="It's 18°C and sunny, enjoy the day!")
        synthesizer = ResponseSynthesizer(model, test_config)

        reply = await synthesizer.synthesize(HISTORY, QueryIntent.CURRENT, sample_current_weather)

        assert reply == "☀️ Paris: It's 18°C and sunny, enjoy the day!"

    @pytest.mark.asyncio
    async def test_synthesize_falls_back_on_failure(
            self, test_config, stub_language_model, sample_current_weather
    ):
        model = stub_language_model(error=RuntimeError("upstream unavailable"))
        synthesizer = ResponseSynthesizer(model, test_config)

        reply = await synthesizer.synthesize(HISTORY, QueryIntent.CURRENT, sample_current_weather)

        assert reply == build_fallback_reply(sample_current_weather, QueryIntent.CURRENT)
        assert "Paris" in reply

    @pytest.mark.asyncio
    async def test_synthesize_falls_back_on_empty_reply(self, test_config, stub_language_model, sample_weather):
        synthesizer = ResponseSynthesizer(stub_language_model(reply=""), test_config)

        reply = await synthesizer.synthesize(HISTORY, QueryIntent.FORECAST, sample_weather)

        assert reply == build_fallback_reply(sample_weather, QueryIntent.FORECAST)

    @pytest.mark.asyncio
    async def test_converse(self, test_config, stub_language_model):
        model = stub_language_model(reply="You're welcome! Anything else about the weather?")
        synthesizer = ResponseSynthesizer(model, test_config)

        reply = await synthesizer.converse([ConversationTurn(role="user", content="thanks")])

        assert reply == "You're welcome! Anything else about the weather?"
        assert model.calls[0]["instructions"] == CHAT_INSTRUCTIONS
        assert model.calls[0]["temperature"] == test_config.chat_temperature

    @pytest.mark.asyncio
    async def test_converse_falls_back_on_failure(self, test_config, stub_language_model):
        synthesizer = ResponseSynthesizer(stub_language_model(error=TimeoutError()), test_config)

        reply = await synthesizer.converse([ConversationTurn(role="user", content="lol")])

        assert reply == CHAT_FALLBACK_REPLY
