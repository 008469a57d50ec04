"""
LLM Provider Configuration for Roundtable
Bring-your-own-key settings for the text generator behind plot hooks.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, SecretStr


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    OPENROUTER = "openrouter"
    GEMINI = "gemini"
    CLAUDE = "claude"
    DEEPSEEK = "deepseek"
    VENICE = "venice"


# ============================================================================
# Provider Configuration
# ============================================================================

class ProviderConfig(BaseModel):
    """Base configuration for an LLM provider."""
    provider: LLMProvider
    api_key: SecretStr
    base_url: Optional[str] = None
    default_model: str
    enabled: bool = True


class OpenAIConfig(ProviderConfig):
    provider: LLMProvider = LLMProvider.OPENAI
    base_url: str = "https://api.openai.com/v1"
    default_model: str = "gpt-4o-mini"


class OpenRouterConfig(ProviderConfig):
    """OpenRouter speaks the OpenAI wire protocol."""
    provider: LLMProvider = LLMProvider.OPENROUTER
    base_url: str = "https://openrouter.ai/api/v1"
    default_model: str = "anthropic/claude-3.5-sonnet"


class GeminiConfig(ProviderConfig):
    provider: LLMProvider = LLMProvider.GEMINI
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    default_model: str = "gemini-1.5-flash"


class ClaudeConfig(ProviderConfig):
    provider: LLMProvider = LLMProvider.CLAUDE
    base_url: str = "https://api.anthropic.com/v1"
    default_model: str = "claude-3-5-haiku-20241022"


class DeepSeekConfig(ProviderConfig):
    """DeepSeek-specific configuration (OpenAI-compatible API)."""
    provider: LLMProvider = LLMProvider.DEEPSEEK
    base_url: str = "https://api.deepseek.com"
    default_model: str = "deepseek-chat"


class VeniceConfig(ProviderConfig):
    """Venice AI-specific configuration (OpenAI-compatible API)."""
    provider: LLMProvider = LLMProvider.VENICE
    base_url: str = "https://api.venice.ai/api/v1"
    default_model: str = "llama-3.3-70b"


# ============================================================================
# Master Configuration
# ============================================================================

class LLMConfiguration(BaseModel):
    """Provider keys plus the model used for plot generation."""

    openai: Optional[OpenAIConfig] = None
    openrouter: Optional[OpenRouterConfig] = None
    gemini: Optional[GeminiConfig] = None
    claude: Optional[ClaudeConfig] = None
    deepseek: Optional[DeepSeekConfig] = None
    venice: Optional[VeniceConfig] = None

    # Plot generation routing; None model means the provider's default
    plot_provider: Optional[LLMProvider] = None
    plot_model: Optional[str] = None

    temperature: float = Field(default=0.8, ge=0.0, le=2.0)
    max_tokens: int = Field(default=600, ge=64, le=8192)

    def get_provider_config(self, provider: LLMProvider) -> Optional[ProviderConfig]:
        """Get configuration for a specific provider."""
        provider_map = {
            LLMProvider.OPENAI: self.openai,
            LLMProvider.OPENROUTER: self.openrouter,
            LLMProvider.GEMINI: self.gemini,
            LLMProvider.CLAUDE: self.claude,
            LLMProvider.DEEPSEEK: self.deepseek,
            LLMProvider.VENICE: self.venice,
        }
        return provider_map.get(provider)

    def get_enabled_providers(self) -> List[LLMProvider]:
        """Providers with a key configured and not disabled, in preference order."""
        enabled = []
        for provider in LLMProvider:
            config = self.get_provider_config(provider)
            if config and config.enabled:
                enabled.append(provider)
        return enabled

    def resolve_plot_provider(self) -> Optional[LLMProvider]:
        """
        Pick the provider for plot generation.

        The explicitly configured provider wins when it is enabled; otherwise the
        first enabled provider is used. Returns None when no key is configured.
        """
        enabled = self.get_enabled_providers()
        if self.plot_provider and self.plot_provider in enabled:
            return self.plot_provider
        return enabled[0] if enabled else None

    def resolve_plot_model(self, provider: LLMProvider) -> str:
        config = self.get_provider_config(provider)
        if self.plot_model:
            return self.plot_model
        if config is None:
            raise ValueError(f"{provider.value} configuration not provided")
        return config.default_model


# ============================================================================
# Helper Functions
# ============================================================================

def create_default_config_from_env() -> LLMConfiguration:
    """Create configuration from environment variables."""
    import os

    config = LLMConfiguration()

    # OpenAI
    if os.getenv("OPENAI_API_KEY"):
        config.openai = OpenAIConfig(
            api_key=SecretStr(os.getenv("OPENAI_API_KEY")),
        )

    # OpenRouter
    if os.getenv("OPENROUTER_API_KEY"):
        config.openrouter = OpenRouterConfig(
            api_key=SecretStr(os.getenv("OPENROUTER_API_KEY")),
        )

    # Gemini
    if os.getenv("GEMINI_API_KEY"):
        config.gemini = GeminiConfig(
            api_key=SecretStr(os.getenv("GEMINI_API_KEY")),
        )

    # Claude
    if os.getenv("ANTHROPIC_API_KEY"):
        config.claude = ClaudeConfig(
            api_key=SecretStr(os.getenv("ANTHROPIC_API_KEY")),
        )

    # DeepSeek
    if os.getenv("DEEPSEEK_API_KEY"):
        config.deepseek = DeepSeekConfig(
            api_key=SecretStr(os.getenv("DEEPSEEK_API_KEY")),
        )

    # Venice
    if os.getenv("VENICE_API_KEY"):
        config.venice = VeniceConfig(
            api_key=SecretStr(os.getenv("VENICE_API_KEY")),
        )

    provider = os.getenv("ROUNDTABLE_PLOT_PROVIDER")
    if provider:
        config.plot_provider = LLMProvider(provider.lower())
    config.plot_model = os.getenv("ROUNDTABLE_PLOT_MODEL") or None

    return config
