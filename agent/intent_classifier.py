import re
from typing import List, Optional, Sequence, Tuple

import structlog

from agent.language_model import LanguageModel
from src.config.config import Config
from src.exceptions.classification import ClassificationAmbiguousError
from src.models.chat import ConversationTurn
from src.models.intent import ClassificationResult, QueryIntent

logger = structlog.get_logger(__name__)


WEATHER_KEYWORDS = [
    "weather", "temperature", "temp", "forecast", "rain", "snow", "sunny", "sun",
    "sunshine", "cloud", "cloudy", "hot", "cold", "warm", "cool", "humid", "humidity",
    "wind", "storm", "thunder", "thunderstorm", "lightning", "degrees", "celsius",
    "fahrenheit", "precipitation", "pressure", "sunrise", "sunset", "uv", "visibility",
    "feels like", "wind speed", "drizzle", "fog", "mist", "hail", "freezing", "heat",
    "umbrella", "climate", "muggy", "chilly", "breeze", "breezy", "icy",
]

FORECAST_PHRASES = [
    "tomorrow", "next week", "this week", "weekend", "forecast", "will it", "going to",
    "next few days", "next days", "coming days", "week ahead", "later", "tonight",
    "upcoming", "outlook", "monday", "tuesday", "wednesday", "thursday", "friday",
    "saturday", "sunday",
]

CURRENT_PHRASES = [
    "now", "currently", "current", "today", "right now", "at the moment", "presently",
    "this morning", "this afternoon",
]

MIXED_PHRASES = [
    "full picture", "overall", "current and forecast", "now and later",
    "today and tomorrow",
]

FOLLOW_UP_PHRASES = ["what about", "how about", "and in", "and for", "what of", "same for"]

# Suffixes let "rain" match "rainy"/"raining", "fog" match "foggy" and "hot" match "hotter"
_KEYWORD_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(k) for k in WEATHER_KEYWORDS) + r")(?:s|y|gy|ter|test|er|est|ing|ed|ier|iest)?\b",
    re.IGNORECASE,
)

NOT_WEATHER_ANSWER = "NOT_WEATHER"
NO_LOCATION_ANSWER = "NO_LOCATION"

LOCATION_INSTRUCTIONS = f"""\
You are a weather query detection assistant. Look ONLY at the last user message;
earlier messages are context for deciding whether it is about the weather.

1. If the last message is not clearly asking about weather, temperature, forecast
   or climate, answer {NOT_WEATHER_ANSWER}. Casual replies such as "okay", "cool",
   "thanks", "yes", "no", jokes and greetings are not weather queries.
2. If it is a weather query that names a place, answer with that place only.
   Format US places as "City, State" and international places as "City, Country".
   Spell out abbreviations (St. Louis -> Saint Louis, NYC -> New York City,
   UK -> United Kingdom).
3. If it is a weather query that names no place, answer {NO_LOCATION_ANSWER}.
   Do not take a place from earlier messages.

Answer with the place or one of the two keywords and nothing else.

Examples:
"What's the weather in New York?" -> New York City, New York
"Temperature in London?" -> London, United Kingdom
"Will it rain in St. Louis tomorrow?" -> Saint Louis, Missouri
"What about tomorrow?" (after a weather question) -> {NO_LOCATION_ANSWER}
"thanks" -> {NOT_WEATHER_ANSWER}
"tell me a joke" -> {NOT_WEATHER_ANSWER}
"""

CITY_ABBREVIATIONS = {
    "NYC": "New York City",
    "NY": "New York City",
    "LA": "Los Angeles",
    "SF": "San Francisco",
    "DC": "Washington, D.C.",
    "PHILLY": "Philadelphia",
    "VEGAS": "Las Vegas",
}

COUNTRY_ABBREVIATIONS = {
    "UK": "United Kingdom",
    "U.K.": "United Kingdom",
    "GB": "United Kingdom",
    "UAE": "United Arab Emirates",
    "US": "United States",
    "U.S.": "United States",
    "USA": "United States",
    "U.S.A.": "United States",
}

US_STATES = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas", "CA": "California",
    "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware", "FL": "Florida", "GA": "Georgia",
    "HI": "Hawaii", "ID": "Idaho", "IL": "Illinois", "IN": "Indiana", "IA": "Iowa",
    "KS": "Kansas", "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi",
    "MO": "Missouri", "MT": "Montana", "NE": "Nebraska", "NV": "Nevada",
    "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico", "NY": "New York",
    "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio", "OK": "Oklahoma",
    "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah", "VT": "Vermont",
    "VA": "Virginia", "WA": "Washington", "WV": "West Virginia", "WI": "Wisconsin",
    "WY": "Wyoming",
}

_PREFIX_ABBREVIATIONS = [
    (re.compile(r"^st\.?\s+", re.IGNORECASE), "Saint "),
    (re.compile(r"^ft\.?\s+", re.IGNORECASE), "Fort "),
    (re.compile(r"^mt\.?\s+", re.IGNORECASE), "Mount "),
]

MAX_LOCATION_LENGTH = 100


def _contains_phrase(text: str, phrases: Sequence[str]) -> bool:
    return any(re.search(rf"\b{re.escape(phrase)}\b", text, re.IGNORECASE) for phrase in phrases)


def has_weather_keyword(text: str) -> bool:
    """Whether the text mentions a weather-domain word."""
    return _KEYWORD_PATTERN.search(text) is not None


def is_follow_up(text: str) -> bool:
    """Whether the text reads like a follow-up to an earlier question."""
    return _contains_phrase(
        text, FOLLOW_UP_PHRASES + FORECAST_PHRASES + CURRENT_PHRASES + MIXED_PHRASES
    )


def resolve_intent(text: str) -> QueryIntent:
    """
    Decide between current conditions, forecast, or both from temporal phrases.

    The caller has already established that the text is a weather query, so
    a message without any temporal cue asks for current conditions.
    """
    if _contains_phrase(text, MIXED_PHRASES):
        return QueryIntent.MIXED

    wants_forecast = _contains_phrase(text, FORECAST_PHRASES)
    wants_current = _contains_phrase(text, CURRENT_PHRASES)

    if wants_forecast and wants_current:
        return QueryIntent.MIXED
    if wants_forecast:
        return QueryIntent.FORECAST
    return QueryIntent.CURRENT


def format_location(raw: str) -> str:
    """
    Tidy a model-produced place name into "City, State" / "City, Country".

    Expands common abbreviations in the city part (St. -> Saint, NYC -> New
    York City) and in the trailing region part (UK -> United Kingdom, MO ->
    Missouri).
    """
    parts = [re.sub(r"\s+", " ", part).strip() for part in raw.split(",") if part.strip()]
    if not parts:
        return ""

    city = parts[0]
    if city.upper() in CITY_ABBREVIATIONS:
        city = CITY_ABBREVIATIONS[city.upper()]
    elif len(parts) == 1 and city.upper() in COUNTRY_ABBREVIATIONS:
        city = COUNTRY_ABBREVIATIONS[city.upper()]
    for pattern, replacement in _PREFIX_ABBREVIATIONS:
        city = pattern.sub(replacement, city)

    regions = parts[1:]
    if regions:
        last = regions[-1].upper()
        if last in COUNTRY_ABBREVIATIONS:
            regions[-1] = COUNTRY_ABBREVIATIONS[last]
        elif last in US_STATES:
            regions[-1] = US_STATES[last]

    return ", ".join([city] + regions)


def parse_location_answer(answer: str) -> Tuple[bool, Optional[str]]:
    """
    Interpret the model's answer to the location prompt.

    Returns:
        (is_weather_query, location) where location is None when the query
        names no place

    Raises:
        ClassificationAmbiguousError: If the answer is empty or not a short place name
    """
    cleaned = answer.strip().strip("`'\"").strip()
    cleaned = re.sub(r"^(location|answer)\s*:\s*", "", cleaned, flags=re.IGNORECASE)
    cleaned = cleaned.rstrip(".!").strip("`'\"").strip()

    if not cleaned:
        raise ClassificationAmbiguousError("Empty location answer")

    keyword = cleaned.upper().replace(" ", "_")
    if keyword in (NOT_WEATHER_ANSWER, "NULL", "NONE"):
        return False, None
    if keyword == NO_LOCATION_ANSWER:
        return True, None

    if "\n" in cleaned or len(cleaned) > MAX_LOCATION_LENGTH:
        raise ClassificationAmbiguousError(f"Unparseable location answer: {cleaned[:50]}")

    location = format_location(cleaned)
    if not location:
        raise ClassificationAmbiguousError(f"Unparseable location answer: {cleaned[:50]}")
    return True, location


class IntentClassifier:
    """
    Decides whether the latest turn is a weather query, for which place,
    and whether it asks for current conditions, a forecast, or both.

    A keyword pre-filter runs first so most small talk never reaches the
    language model. Location extraction is delegated to the model; when the
    latest turn names no place the classifier walks back through earlier
    user turns and inherits the most recent place found there.
    """

    def __init__(self, language_model: LanguageModel, config: Config):
        self.language_model = language_model
        self.temperature = config.classifier_temperature
        self.max_tokens = config.classifier_max_tokens
        self.lookback_turns = config.location_lookback_turns

    def passes_prefilter(self, history: Sequence[ConversationTurn]) -> bool:
        """Cheap lexical check run before any language model call."""
        latest = history[-1].content
        if has_weather_keyword(latest):
            return True

        # Follow-ups like "what about tomorrow?" inherit the weather topic
        earlier_weather_turn = any(
            turn.role == "user" and has_weather_keyword(turn.content) for turn in history[:-1]
        )
        return earlier_weather_turn and is_follow_up(latest)

    async def _extract_location(
            self,
            messages: List[dict]
    ) -> Tuple[bool, Optional[str]]:
        answer = await self.language_model.complete(
            LOCATION_INSTRUCTIONS,
            messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        return parse_location_answer(answer)

    async def _inherit_location(self, earlier: Sequence[ConversationTurn]) -> Optional[str]:
        """Most recent place named by an earlier user turn, if any."""
        user_turns = [turn for turn in earlier if turn.role == "user"]
        candidates = list(reversed(user_turns))[: self.lookback_turns]

        for turn in candidates:
            try:
                _, location = await self._extract_location([turn.as_message()])
            except Exception as e:
                logger.warning("Skipping earlier turn during location lookup", error=str(e))
                continue
            if location:
                logger.info("Inherited location from earlier turn", location=location)
                return location
        return None

    async def classify(self, history: Sequence[ConversationTurn]) -> ClassificationResult:
        """
        Classify the last turn of a conversation.

        Args:
            history: Non-empty conversation, the last entry is evaluated

        Returns:
            ClassificationResult; `none`/`none` for non-weather turns, turns
            without a resolvable place, and language model failures
        """
        if not history:
            raise ValueError("Cannot classify an empty conversation")

        latest = history[-1]
        if latest.role != "user" or not self.passes_prefilter(history):
            logger.info("Turn is not a weather query", reason="prefilter")
            return ClassificationResult.not_weather()

        context = [turn.as_message() for turn in history[-(self.lookback_turns + 1):]]

        try:
            is_weather_query, location = await self._extract_location(context)
            if not is_weather_query:
                logger.info("Turn is not a weather query", reason="language_model")
                return ClassificationResult.not_weather()

            if location is None:
                location = await self._inherit_location(history[:-1])

        except ClassificationAmbiguousError as e:
            logger.warning("Ambiguous classification, treating as non-weather", error=str(e))
            return ClassificationResult.not_weather()

        except Exception as e:
            logger.warning("Classification failed, treating as non-weather", error=str(e))
            return ClassificationResult.not_weather()

        if location is None:
            logger.info("Weather query without a resolvable location")
            return ClassificationResult.not_weather()

        intent = resolve_intent(latest.content)
        logger.info("Classified weather query", location=location, intent=intent.value)
        return ClassificationResult(location=location, intent=intent)
