from datetime import datetime
from typing import Optional, Protocol, Sequence

import structlog

from agent.intent_classifier import IntentClassifier
from agent.response_synthesizer import ResponseSynthesizer
from src.exceptions.weather import LocationNotFoundError, ProviderError
from src.models.chat import ConversationTurn
from src.models.intent import QueryIntent
from src.models.orchestrator import OrchestrationResult
from src.models.weather import NormalizedWeather

logger = structlog.get_logger(__name__)


class WeatherGateway(Protocol):
    """What the orchestrator needs from the weather service."""

    async def fetch(self, location: str, intent: QueryIntent) -> NormalizedWeather:
        ...


def apology_for(location: str) -> str:
    return (
        f"I apologize, but I couldn't fetch the weather data for {location} at the moment. "
        "Would you like to try another location or ask me something else?"
    )


class TurnOrchestrator:
    """
    Runs one chat turn: classify, fetch, synthesize, package.

    Holds no state between turns; everything it knows about the conversation
    comes from the history passed to handle_turn.
    """

    def __init__(
            self,
            classifier: IntentClassifier,
            gateway: WeatherGateway,
            synthesizer: ResponseSynthesizer
    ):
        self.classifier = classifier
        self.gateway = gateway
        self.synthesizer = synthesizer

    async def handle_turn(self, history: Sequence[ConversationTurn]) -> OrchestrationResult:
        """
        Produce the assistant reply for the last turn of a conversation.

        Upstream failures never propagate: a failed fetch yields an apology
        naming the location, and a failed synthesis yields a templated reply.

        Args:
            history: Non-empty conversation, oldest first

        Returns:
            OrchestrationResult with weather attached only when it was fetched

        Raises:
            ValueError: If the history is empty
        """
        if not history:
            raise ValueError("Cannot handle a turn without any messages")

        start_time = datetime.now()
        logger.info(
            "Processing chat turn",
            history_length=len(history),
            query_length=len(history[-1].content)
        )

        # Step 1: Classify
        classification = await self.classifier.classify(history)

        if not classification.is_weather_query:
            reply = await self.synthesizer.converse(history)
            return self._package(start_time, reply, None, outcome="general")

        location = classification.location

        # Step 2: Fetch
        try:
            weather = await self.gateway.fetch(location, classification.intent)
        except LocationNotFoundError:
            logger.info("Location not found", location=location)
            return self._package(start_time, apology_for(location), None, outcome="location_not_found")
        except ProviderError as e:
            logger.error(
                "Weather provider failed",
                location=location,
                status_code=e.status_code,
                error=str(e)
            )
            return self._package(start_time, apology_for(location), None, outcome="provider_error")

        # Step 3: Synthesize
        reply = await self.synthesizer.synthesize(history, classification.intent, weather)

        # Step 4: Package
        return self._package(start_time, reply, weather, outcome="weather")

    @staticmethod
    def _package(
            start_time: datetime,
            reply: str,
            weather: Optional[NormalizedWeather],
            outcome: str
    ) -> OrchestrationResult:
        processing_time = (datetime.now() - start_time).total_seconds()
        logger.info(
            "Chat turn processed",
            outcome=outcome,
            has_weather=weather is not None,
            processing_time=processing_time,
            response_length=len(reply)
        )
        return OrchestrationResult(reply_text=reply, weather=weather)
