"""
Base Agent Implementation for Roundtable
LLM client adapters and the common agent base class.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from ..config import LLMConfiguration, LLMProvider

logger = logging.getLogger("roundtable.agents")


class LLMClient(ABC):
    """Abstract base class for LLM clients."""

    @abstractmethod
    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Generate a response from the LLM."""
        pass


class OpenAIClient(LLMClient):
    """OpenAI API client; also serves OpenAI-compatible providers via base_url."""

    def __init__(self, api_key: str, model: str, base_url: str = "https://api.openai.com/v1"):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self._client = None

    async def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> str:
        client = await self._get_client()
        response = await client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content or ""


class ClaudeClient(LLMClient):
    """Anthropic Claude API client implementation."""

    def __init__(self, api_key: str, model: str):
        self.api_key = api_key
        self.model = model
        self._client = None

    async def _get_client(self):
        if self._client is None:
            from anthropic import AsyncAnthropic
            self._client = AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> str:
        client = await self._get_client()
        response = await client.messages.create(
            model=self.model,
            max_tokens=max_tokens or 1024,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=min(temperature, 1.0),
        )
        return response.content[0].text


class GeminiClient(LLMClient):
    """Google Gemini API client implementation."""

    def __init__(self, api_key: str, model: str):
        self.api_key = api_key
        self.model = model
        self._client = None

    async def _get_client(self):
        if self._client is None:
            import google.generativeai as genai
            genai.configure(api_key=self.api_key)
            self._client = genai.GenerativeModel(self.model)
        return self._client

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> str:
        client = await self._get_client()
        full_prompt = f"{system_prompt}\n\n---\n\n{user_prompt}"
        response = await client.generate_content_async(
            full_prompt,
            generation_config={"temperature": temperature, "max_output_tokens": max_tokens},
        )
        return response.text


class CallableLLMClient(LLMClient):
    """
    Wraps an async `prompt -> text` function, e.g. the host's own generator.

    The system and user prompts are joined into one prompt string.
    """

    def __init__(self, generate_text: Callable[[str], Awaitable[str]]):
        self.generate_text = generate_text

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> str:
        return await self.generate_text(f"{system_prompt}\n\n{user_prompt}")


def create_llm_client(
    provider: LLMProvider,
    config: LLMConfiguration,
    model: str,
) -> LLMClient:
    """Factory function to create appropriate LLM client."""

    if provider in (LLMProvider.OPENAI, LLMProvider.OPENROUTER, LLMProvider.DEEPSEEK, LLMProvider.VENICE):
        provider_config = config.get_provider_config(provider)
        if not provider_config:
            raise ValueError(f"{provider.value} configuration not provided")
        return OpenAIClient(
            api_key=provider_config.api_key.get_secret_value(),
            model=model,
            base_url=provider_config.base_url,
        )

    elif provider == LLMProvider.CLAUDE:
        if not config.claude:
            raise ValueError("Claude configuration not provided")
        return ClaudeClient(
            api_key=config.claude.api_key.get_secret_value(),
            model=model,
        )

    elif provider == LLMProvider.GEMINI:
        if not config.gemini:
            raise ValueError("Gemini configuration not provided")
        return GeminiClient(
            api_key=config.gemini.api_key.get_secret_value(),
            model=model,
        )

    else:
        raise ValueError(f"Unsupported provider: {provider}")


def create_plot_llm_client(config: LLMConfiguration) -> LLMClient:
    """Build the client for plot generation from whichever provider is configured."""
    provider = config.resolve_plot_provider()
    if provider is None:
        raise ValueError("No LLM provider configured; set an API key such as OPENAI_API_KEY")
    return create_llm_client(provider, config, config.resolve_plot_model(provider))


class BaseAgent(ABC):
    """Base class for all Roundtable agents."""

    def __init__(
        self,
        name: str,
        llm_client: LLMClient,
        system_prompt: str,
    ):
        self.name = name
        self.llm_client = llm_client
        self.system_prompt = system_prompt

    async def generate_with_logging(
        self,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Generate a raw response and log its size and duration."""
        start_time = time.time()

        result = await self.llm_client.generate(
            system_prompt=self.system_prompt,
            user_prompt=user_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"[generate_with_logging] Agent: {self.name}, prompt_len: {len(user_prompt)}, "
            f"response_len: {len(result or '')}, duration_ms: {duration_ms}"
        )
        return result
