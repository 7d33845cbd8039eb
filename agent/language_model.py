from typing import Mapping, Optional, Protocol, Sequence

import structlog
from agents import (
    Agent,
    ModelSettings,
    OpenAIChatCompletionsModel,
    Runner,
    set_tracing_disabled
)
from openai import AsyncOpenAI

from src.config.config import Config

logger = structlog.get_logger(__name__)


class LanguageModel(Protocol):
    """Text completion capability shared by the classifier and the synthesizer.

    Implementations take a system instruction plus role/content messages and
    return the model's reply as plain text.
    """

    async def complete(
            self,
            instructions: str,
            messages: Sequence[Mapping[str, str]],
            *,
            temperature: float,
            max_tokens: int,
    ) -> str:
        ...


class AgentsLanguageModel:
    """LanguageModel backed by the OpenAI Agents SDK on any OpenAI-compatible endpoint."""

    def __init__(self, config: Config, client: Optional[AsyncOpenAI] = None):
        """Initialize the chat completions model used by every agent run."""
        self._openai_client = client or AsyncOpenAI(
            api_key=config.openai_api_key,
            base_url=config.openai_base_url
        )
        self.model = OpenAIChatCompletionsModel(
            model=config.openai_model,
            openai_client=self._openai_client
        )

        # Tracing uploads to OpenAI; off unless explicitly enabled
        set_tracing_disabled(not config.agents_tracing)

        logger.info(
            "Language model has been initialized",
            model=config.openai_model,
            base_url=config.openai_base_url or "default"
        )

    async def complete(
            self,
            instructions: str,
            messages: Sequence[Mapping[str, str]],
            *,
            temperature: float,
            max_tokens: int,
    ) -> str:
        """Run a single-turn agent and return its final text output.

        Args:
            instructions: System instruction for this call.
            messages: Conversation as role/content pairs, oldest first.
            temperature: Sampling temperature.
            max_tokens: Completion token limit.

        Returns:
            The stripped final output; empty when the model produced nothing.
        """
        agent = Agent(
            name="Weather Assistant",
            instructions=instructions,
            model=self.model,
            model_settings=ModelSettings(
                temperature=temperature,
                max_tokens=max_tokens,
                top_p=0.9
            )
        )

        result = await Runner.run(
            starting_agent=agent,
            input=[{"role": m["role"], "content": m["content"]} for m in messages]
        )

        return str(result.final_output or "").strip()
