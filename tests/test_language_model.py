from unittest.mock import patch, AsyncMock, MagicMock

import pytest

from agent.language_model import AgentsLanguageModel


@pytest.fixture
def mock_runner_run():
    """Mock the Agents SDK runner so no request leaves the process."""
    with patch("agent.language_model.Runner.run", new_callable=AsyncMock) as mock_run:
        mock_result = MagicMock()
        mock_result.final_output = "  Paris, France \n"
        mock_run.return_value = mock_result
        yield mock_run


class TestAgentsLanguageModel:
    """Test cases for the AgentsLanguageModel class."""

    @pytest.mark.asyncio
    async def test_complete_returns_stripped_output(self, test_config, mock_runner_run):
        model = AgentsLanguageModel(test_config)

        result = await model.complete(
            "Find the location",
            [{"role": "user", "content": "weather in Paris?"}],
            temperature=0.1,
            max_tokens=50,
        )

        assert result == "Paris, France"
        mock_runner_run.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_complete_builds_agent(self, test_config, mock_runner_run):
        model = AgentsLanguageModel(test_config)
        messages = [
            {"role": "user", "content": "weather in Tokyo?"},
            {"role": "assistant", "content": "It's 22°C in Tokyo."},
            {"role": "user", "content": "what about tomorrow?"},
        ]

        await model.complete("Be helpful", messages, temperature=0.3, max_tokens=1024)

        kwargs = mock_runner_run.call_args.kwargs
        agent = kwargs["starting_agent"]
        assert agent.instructions == "Be helpful"
        assert agent.model is model.model
        assert agent.model_settings.temperature == 0.3
        assert agent.model_settings.max_tokens == 1024
        assert kwargs["input"] == messages

    @pytest.mark.asyncio
    async def test_complete_empty_output(self, test_config, mock_runner_run):
        mock_runner_run.return_value.final_output = None
        model = AgentsLanguageModel(test_config)

        result = await model.complete("x", [{"role": "user", "content": "hi"}], temperature=0.7, max_tokens=10)

        assert result == ""

    @pytest.mark.asyncio
    async def test_complete_propagates_errors(self, test_config, mock_runner_run):
        mock_runner_run.side_effect = RuntimeError("model unavailable")
        model = AgentsLanguageModel(test_config)

        with pytest.raises(RuntimeError, match="model unavailable"):
            await model.complete("x", [{"role": "user", "content": "hi"}], temperature=0.7, max_tokens=10)

    def test_tracing_disabled_by_default(self, test_config):
        with patch("agent.language_model.set_tracing_disabled") as mock_disable:
            AgentsLanguageModel(test_config)

        mock_disable.assert_called_once_with(True)

    def test_uses_injected_client(self, test_config):
        client = MagicMock()

        model = AgentsLanguageModel(test_config, client=client)

        assert model._openai_client is client
