"""
Security Service for Roundtable

Input limits and sanitization for operator- and model-supplied text.
"""

import os
import re
from typing import Any, Optional

# Allowed origins for CORS (the chat host runs locally)
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "ROUNDTABLE_ALLOWED_ORIGINS",
        "http://localhost:8000,http://127.0.0.1:8000",
    ).split(",")
    if origin.strip()
]

# Request size limits
MAX_PLOT_LENGTH = 5000
MAX_DIRECTION_LENGTH = 500
MAX_MESSAGE_LENGTH = 20000
MIN_FREQUENCY = 1
MAX_FREQUENCY = 100
MIN_HISTORY_LIMIT = 1
MAX_HISTORY_LIMIT = 50

ALLOWED_STYLES = ("natural", "dramatic", "romantic", "mysterious", "adventure", "comedy")
ALLOWED_INTENSITIES = ("subtle", "moderate", "strong", "dramatic")

# Control characters except tab, newline and carriage return
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def sanitize_plot_text(text: Optional[str], max_length: int = MAX_PLOT_LENGTH) -> Optional[str]:
    """
    Trim, truncate and strip control characters from plot text.

    Returns None for empty input so callers can reject it.
    """
    if text is None:
        return None
    cleaned = _CONTROL_CHARS.sub("", str(text)).strip()
    if not cleaned:
        return None
    return cleaned[:max_length].rstrip()


def sanitize_direction(text: Optional[str], max_length: int = MAX_DIRECTION_LENGTH) -> str:
    if not text:
        return ""
    cleaned = _CONTROL_CHARS.sub("", str(text)).strip()
    return cleaned[:max_length].rstrip()


def validate_numeric_input(value: Any, min_value: int, max_value: int, default: int) -> int:
    """Parse an integer and clamp it into [min_value, max_value]; default when unparseable."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return max(min_value, min(max_value, number))


def validate_style(style: Optional[str]) -> str:
    return style if style in ALLOWED_STYLES else "natural"


def validate_intensity(intensity: Optional[str]) -> str:
    return intensity if intensity in ALLOWED_INTENSITIES else "moderate"
