"""
Roundtable Configuration Module
LLM provider configuration and runtime settings.
"""

from .llm_providers import (
    ClaudeConfig,
    DeepSeekConfig,
    GeminiConfig,
    LLMConfiguration,
    # Enums
    LLMProvider,
    OpenAIConfig,
    OpenRouterConfig,
    # Configuration Models
    ProviderConfig,
    VeniceConfig,
    create_default_config_from_env,
)
from .logging_setup import LOGGER_NAME, configure_logging
from .settings import (
    GenerationSettings,
    InjectionSettings,
    LifecycleSettings,
    PersistenceSettings,
    ReadinessSettings,
    RoundtableSettings,
    settings_from_env,
)

__all__ = [
    "LLMProvider",
    "ProviderConfig",
    "OpenAIConfig",
    "OpenRouterConfig",
    "GeminiConfig",
    "ClaudeConfig",
    "DeepSeekConfig",
    "VeniceConfig",
    "LLMConfiguration",
    "create_default_config_from_env",
    "LOGGER_NAME",
    "configure_logging",
    "LifecycleSettings",
    "ReadinessSettings",
    "GenerationSettings",
    "PersistenceSettings",
    "InjectionSettings",
    "RoundtableSettings",
    "settings_from_env",
]
