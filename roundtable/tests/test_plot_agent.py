"""
Unit tests for PlotAgent and the LLM client factory.

Tests cover:
- One generation call per generate()
- Timeout mapping to GenerationTimeout
- Provider errors mapping to GenerationFailure
- Parse failures passing through
- Provider selection for the plot client
"""

import asyncio

import pytest
from unittest.mock import AsyncMock

from roundtable.agents import (
    CallableLLMClient,
    ClaudeClient,
    OpenAIClient,
    PlotAgent,
    create_plot_llm_client,
)
from roundtable.config import ClaudeConfig, LLMConfiguration, LLMProvider, OpenRouterConfig
from roundtable.core.errors import GenerationFailure, GenerationTimeout, ParseFailure
from roundtable.models import Character, GenerationOptions
from roundtable.prompts import PLOT_SYSTEM_PROMPT

from conftest import ScriptedLLMClient, plot_json


class TestPlotAgentGenerate:
    """Tests for PlotAgent.generate."""

    @pytest.mark.asyncio
    async def test_generates_artifact(self, character, messages):
        client = ScriptedLLMClient(plot_json("[The lamp flickers back on by itself]"))
        agent = PlotAgent(client, timeout_seconds=1.0, temperature=0.6)

        artifact = await agent.generate(character, messages, GenerationOptions(direction="Something is wrong"))

        assert artifact.text == "[The lamp flickers back on by itself]"
        assert artifact.tone == "tense"
        assert len(client.calls) == 1
        assert client.calls[0]["system"] == PLOT_SYSTEM_PROMPT
        assert client.calls[0]["temperature"] == 0.6
        assert "Something is wrong" in client.calls[0]["user"]
        assert "Mira: The lamp went out again." in client.calls[0]["user"]

    @pytest.mark.asyncio
    async def test_timeout_raises_generation_timeout(self, character):
        client = ScriptedLLMClient(plot_json("late"), delay=1.0)
        agent = PlotAgent(client, timeout_seconds=0.05)

        with pytest.raises(GenerationTimeout) as exc_info:
            await agent.generate(character, [])

        assert exc_info.value.timeout_seconds == 0.05
        assert "timed out" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_provider_error_raises_generation_failure(self, character):
        client = AsyncMock()
        client.generate = AsyncMock(side_effect=ConnectionError("provider down"))
        agent = PlotAgent(client, timeout_seconds=1.0)

        with pytest.raises(GenerationFailure) as exc_info:
            await agent.generate(character, [])

        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert client.generate.await_count == 1

    @pytest.mark.asyncio
    async def test_unparseable_response_raises_parse_failure(self, character):
        agent = PlotAgent(ScriptedLLMClient("I'd rather not."), timeout_seconds=1.0)

        with pytest.raises(ParseFailure):
            await agent.generate(character, [])

    @pytest.mark.asyncio
    async def test_empty_response_raises_parse_failure(self, character):
        agent = PlotAgent(ScriptedLLMClient(""), timeout_seconds=1.0)

        with pytest.raises(ParseFailure):
            await agent.generate(character, [])


class TestCallableLLMClient:
    """Tests for the host-supplied text generation adapter."""

    @pytest.mark.asyncio
    async def test_prompts_are_joined(self):
        seen = []

        async def generate_text(prompt):
            seen.append(prompt)
            return plot_json("X")

        client = CallableLLMClient(generate_text)
        result = await client.generate("SYSTEM", "USER")

        assert result == plot_json("X")
        assert seen[0].startswith("SYSTEM")
        assert seen[0].endswith("USER")


class TestCreatePlotLLMClient:
    """Tests for plot client selection."""

    def test_no_provider_raises(self):
        with pytest.raises(ValueError):
            create_plot_llm_client(LLMConfiguration())

    def test_explicit_provider(self):
        config = LLMConfiguration(
            claude=ClaudeConfig(api_key="sk-ant-test"),
            plot_provider=LLMProvider.CLAUDE,
            plot_model="claude-test",
        )
        client = create_plot_llm_client(config)

        assert isinstance(client, ClaudeClient)
        assert client.model == "claude-test"

    def test_openai_compatible_provider_uses_base_url(self):
        config = LLMConfiguration(openrouter=OpenRouterConfig(api_key="sk-or-test"))
        client = create_plot_llm_client(config)

        assert isinstance(client, OpenAIClient)
        assert "openrouter" in client.base_url
