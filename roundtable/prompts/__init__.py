"""
Roundtable Prompts Module
Prompt templates for plot hook generation.
"""

from .plot import (
    DEFAULT_CHARACTER_NAME,
    DEFAULT_DIRECTION,
    NO_HISTORY_PLACEHOLDER,
    NOT_SPECIFIED,
    PLOT_SYSTEM_PROMPT,
    PLOT_USER_PROMPT_TEMPLATE,
)

__all__ = [
    "PLOT_SYSTEM_PROMPT",
    "PLOT_USER_PROMPT_TEMPLATE",
    "DEFAULT_DIRECTION",
    "DEFAULT_CHARACTER_NAME",
    "NOT_SPECIFIED",
    "NO_HISTORY_PLACEHOLDER",
]
