"""
Roundtable Agents Module
LLM clients and the plot generation agent.
"""

from .base import (
    LLMClient,
    OpenAIClient,
    ClaudeClient,
    GeminiClient,
    CallableLLMClient,
    BaseAgent,
    create_llm_client,
    create_plot_llm_client,
)
from .plot_agent import PlotAgent

__all__ = [
    "LLMClient",
    "OpenAIClient",
    "ClaudeClient",
    "GeminiClient",
    "CallableLLMClient",
    "BaseAgent",
    "create_llm_client",
    "create_plot_llm_client",
    "PlotAgent",
]
