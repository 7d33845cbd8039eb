import datetime
from typing import List, Optional, Sequence

import structlog

from agent.language_model import LanguageModel
from src.config.config import Config
from src.exceptions.synthesis import SynthesisError
from src.models.chat import ConversationTurn
from src.models.intent import QueryIntent
from src.models.weather import DailyForecast, NormalizedWeather

logger = structlog.get_logger(__name__)


EMPHASIS = {
    QueryIntent.CURRENT: "The user wants the CURRENT conditions. Lead with them; mention the forecast only if asked.",
    QueryIntent.FORECAST: "The user wants the FORECAST. Walk through the day-by-day outlook relevant to the question.",
    QueryIntent.MIXED: "The user wants the full picture. Cover the current conditions and the day-by-day outlook.",
}

WEATHER_INSTRUCTIONS = """\
You are a weather assistant with REAL, CURRENT weather data for {city}, fetched
just now from OpenWeatherMap. Use it confidently to answer the user's question.

CURRENT WEATHER IN {city_upper}:
{current_block}

{forecast_header}
{forecast_block}

Rules:
- Answer the user's last question directly, using ONLY the data above.
  Never invent values that are not listed.
- Always name {city} in your answer.
- For yes/no questions (e.g. "will it rain tomorrow?") say yes or no first,
  based on the matching day's description.
- {emphasis}
- Be conversational and concise. Weather emojis and practical advice are welcome.
"""

CHAT_INSTRUCTIONS = """\
You are WeatherBot, a friendly assistant specialized in weather. You can look up
live conditions and forecasts for any city when the user names one.

- If the user asks about the weather without naming a place, ask which city they mean.
- For non-weather questions, answer briefly and politely steer back to weather topics.
- Explain weather terms in simple language and suggest weather-appropriate activities.
- Be friendly and conversational.
"""

CHAT_FALLBACK_REPLY = (
    "I'm a weather assistant, so I'm best at weather questions. "
    "Ask me about the current conditions or the forecast for any city!"
)


def weather_emoji(description: str) -> str:
    """Pick an emoji matching a weather description."""
    desc = description.lower()
    if "clear" in desc:
        return "☀️"
    if "thunder" in desc:
        return "⛈️"
    if "cloud" in desc:
        return "☁️"
    if "rain" in desc or "drizzle" in desc:
        return "🌧️"
    if "snow" in desc:
        return "❄️"
    if "mist" in desc or "fog" in desc or "haze" in desc:
        return "🌫️"
    return "🌡️"


def _day_label(index: int, day: DailyForecast, today: Optional[datetime.date] = None) -> str:
    """Name a forecast day relative to the local observation date.

    Without an observation date the first entry is taken to be today.
    """
    offset = (day.date - today).days if today else index
    if offset == 0:
        name = "Today"
    elif offset == 1:
        name = "Tomorrow"
    else:
        name = day.date.strftime("%A")
    return f"{name} ({day.date.strftime('%b')} {day.date.day})"


def format_current_block(weather: NormalizedWeather) -> str:
    return "\n".join([
        f"• Temperature: {weather.temperature}°C (feels like {weather.feels_like}°C)",
        f"• Conditions: {weather.description}",
        f"• Humidity: {weather.humidity}%",
        f"• Wind Speed: {weather.wind_speed} km/h",
        f"• Sunrise: {weather.sunrise}",
        f"• Sunset: {weather.sunset}",
    ])


def format_forecast_block(
        forecast: Sequence[DailyForecast],
        today: Optional[datetime.date] = None
) -> str:
    if not forecast:
        return "No forecast data available"
    return "\n".join(
        f"{_day_label(i, day, today)}: {day.temperature}°C, {day.description}"
        for i, day in enumerate(forecast)
    )


def build_fallback_reply(weather: NormalizedWeather, intent: QueryIntent) -> str:
    """
    Deterministic reply built only from the weather record.

    Used whenever the language model cannot produce an answer.
    """
    emoji = weather_emoji(weather.description)
    sentences: List[str] = []

    if intent is not QueryIntent.FORECAST or not weather.forecast:
        sentences.append(
            f"{emoji} Right now in {weather.city} it's {weather.temperature}°C "
            f"(feels like {weather.feels_like}°C) with {weather.description}."
        )
    else:
        sentences.append(
            f"{emoji} Here's the outlook for {weather.city}. It's currently {weather.temperature}°C "
            f"(feels like {weather.feels_like}°C) with {weather.description}."
        )

    sentences.append(
        f"Humidity is {weather.humidity}% and the wind is blowing at {weather.wind_speed} km/h."
    )
    sentences.append(f"Sunrise is at {weather.sunrise} and sunset at {weather.sunset}.")

    if intent.includes_forecast and weather.forecast:
        days = "; ".join(
            f"{_day_label(i, day, weather.observed_on)}: {day.temperature}°C, {day.description}"
            for i, day in enumerate(weather.forecast)
        )
        sentences.append(f"Forecast: {days}.")

    return " ".join(sentences)


class ResponseSynthesizer:
    """Turns fetched weather data and the conversation into a natural-language reply."""

    def __init__(self, language_model: LanguageModel, config: Config):
        self.language_model = language_model
        self.synthesis_temperature = config.synthesis_temperature
        self.synthesis_max_tokens = config.synthesis_max_tokens
        self.chat_temperature = config.chat_temperature

    def build_instructions(self, intent: QueryIntent, weather: NormalizedWeather) -> str:
        """System instruction grounded strictly in the weather record."""
        has_forecast = bool(weather.forecast)
        return WEATHER_INSTRUCTIONS.format(
            city=weather.city,
            city_upper=weather.city.upper(),
            current_block=format_current_block(weather),
            forecast_header=(
                f"{len(weather.forecast)}-DAY FORECAST FOR {weather.city.upper()}:"
                if has_forecast else "FORECAST:"
            ),
            forecast_block=format_forecast_block(weather.forecast or [], weather.observed_on),
            emphasis=EMPHASIS.get(intent, EMPHASIS[QueryIntent.CURRENT]),
        )

    async def _generate(
            self,
            history: Sequence[ConversationTurn],
            intent: QueryIntent,
            weather: NormalizedWeather
    ) -> str:
        try:
            text = await self.language_model.complete(
                self.build_instructions(intent, weather),
                [turn.as_message() for turn in history],
                temperature=self.synthesis_temperature,
                max_tokens=self.synthesis_max_tokens,
            )
        except Exception as e:
            raise SynthesisError(f"Language model call failed: {str(e)}") from e

        if not text:
            raise SynthesisError("Language model returned an empty reply")
        return text

    async def synthesize(
            self,
            history: Sequence[ConversationTurn],
            intent: QueryIntent,
            weather: NormalizedWeather
    ) -> str:
        """
        Produce a reply to the latest turn grounded in the fetched weather.

        Args:
            history: Conversation, the last entry is the question being answered
            intent: Classified intent; decides what the reply emphasizes
            weather: Normalized record the reply must be based on

        Returns:
            Reply text that names the city. Falls back to a templated summary
            when the language model fails.
        """
        try:
            text = await self._generate(history, intent, weather)
        except SynthesisError as e:
            logger.warning("Synthesis failed, using template reply", city=weather.city, error=str(e))
            return build_fallback_reply(weather, intent)

        if weather.city.lower() not in text.lower():
            text = f"{weather_emoji(weather.description)} {weather.city}: {text}"

        return text

    async def converse(self, history: Sequence[ConversationTurn]) -> str:
        """Reply to a turn that is not a weather query."""
        try:
            text = await self.language_model.complete(
                CHAT_INSTRUCTIONS,
                [turn.as_message() for turn in history],
                temperature=self.chat_temperature,
                max_tokens=self.synthesis_max_tokens,
            )
        except Exception as e:
            logger.warning("General chat reply failed", error=str(e))
            return CHAT_FALLBACK_REPLY

        return text or CHAT_FALLBACK_REPLY
