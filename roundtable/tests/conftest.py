"""
Pytest configuration and fixtures for Roundtable tests.

This module provides:
- Network blocking fixture to prevent accidental API calls in CI
- A pushed host with one character and a short conversation
- Scripted plot generators and LLM clients
"""

import asyncio
import json
import socket
import pytest
from unittest.mock import patch

from roundtable.agents import LLMClient
from roundtable.config import LifecycleSettings
from roundtable.models import Character, ChatMessage, GenerationOptions, PlotArtifact
from roundtable.services import PushedHost


class NetworkBlockedError(Exception):
    """Raised when a test attempts to make a network connection."""
    pass


def _block_socket_connect(*args, **kwargs):
    """Block all socket connections to prevent accidental API calls."""
    raise NetworkBlockedError(
        "Network access is blocked in unit tests. "
        "If you need to test network functionality, use mocks. "
        "This prevents accidental OpenAI/Anthropic API calls that cost money."
    )


@pytest.fixture(autouse=True)
def block_network():
    """
    Automatically block all network connections in tests.

    If a test needs to make real network calls (integration tests),
    it should be marked with @pytest.mark.integration and run separately.
    """
    with patch.object(socket.socket, 'connect', _block_socket_connect):
        with patch.object(socket, 'create_connection', _block_socket_connect):
            yield


def plot_json(hook: str, tone: str = "tense", pacing: str = "slow burn") -> str:
    return json.dumps({"plot_hook": hook, "tone_analysis": tone, "pacing_guidance": pacing})


class ScriptedLLMClient(LLMClient):
    """LLM client returning queued responses and recording every call."""

    def __init__(self, *responses: str, delay: float = 0.0):
        self.responses = list(responses)
        self.delay = delay
        self.calls = []

    async def generate(self, system_prompt, user_prompt, temperature=0.7, max_tokens=None):
        self.calls.append({"system": system_prompt, "user": user_prompt, "temperature": temperature})
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self.responses:
            return plot_json(f"Plot {len(self.calls)}")
        return self.responses.pop(0)


class ControlledGenerator:
    """
    Plot generator whose calls resolve only when the test says so.

    Each call waits on its own future; resolve(i, ...) or fail(i, ...) settles it.
    """

    def __init__(self):
        self.calls = []
        self.futures = []

    async def __call__(self, options: GenerationOptions) -> PlotArtifact:
        future = asyncio.get_running_loop().create_future()
        self.calls.append(options)
        self.futures.append(future)
        return await future

    def resolve(self, index: int, text: str) -> None:
        self.futures[index].set_result(PlotArtifact(text=text))

    def fail(self, index: int, error: Exception) -> None:
        self.futures[index].set_exception(error)


async def settle() -> None:
    """Let scheduled callbacks and tasks run."""
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def character():
    return Character(id="mira", name="Mira", personality="Curious, guarded", scenario="A lighthouse on a stormy coast")


@pytest.fixture
def messages():
    return [
        ChatMessage(speaker="You", text="Did you hear that?", is_operator=True),
        ChatMessage(speaker="Mira", text="The lamp went out again."),
    ]


@pytest.fixture
def pushed_host(character, messages):
    host = PushedHost()
    host.update(character_id="mira", conversation_id="conv-1", character=character, messages=messages)
    return host


@pytest.fixture
def fast_lifecycle_settings():
    return LifecycleSettings(auto_commit_ms=1000, countdown_tick_seconds=0.01)
