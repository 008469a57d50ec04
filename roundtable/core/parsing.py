"""
Plot response parsing for Roundtable.
Recovers the plot JSON object from raw generator output.
"""

import json
import logging
from typing import Any, Dict, Optional

from ..models import PlotArtifact
from .errors import ParseFailure

logger = logging.getLogger("roundtable.parsing")

HOOK_FIELD = "plot_hook"
TONE_FIELD = "tone_analysis"
PACING_FIELD = "pacing_guidance"


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    Extract a JSON object from generator output.

    Tries a strict parse, then the span from the first "{" to the last "}",
    then a raw_decode at every "{" so objects followed by stray braces in
    trailing prose are still found.
    """
    if not text or not text.strip():
        logger.warning("[extract_json_object] Empty text provided")
        return None

    preview = text[:300] + "..." if len(text) > 300 else text
    logger.debug(f"[extract_json_object] Attempting to parse text (len={len(text)}): {preview}")

    # Method 1: Strict parse
    try:
        result = json.loads(text)
        if isinstance(result, dict):
            logger.debug("[extract_json_object] Direct JSON parse succeeded")
            return result
    except json.JSONDecodeError as e:
        logger.debug(f"[extract_json_object] Direct parse failed: {e}")

    # Method 2: First opening brace to last closing brace, inclusive
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        return None
    try:
        result = json.loads(text[start:end + 1])
        if isinstance(result, dict):
            logger.debug("[extract_json_object] Brace span extraction succeeded")
            return result
    except json.JSONDecodeError as e:
        logger.debug(f"[extract_json_object] Brace span extraction failed: {e}")

    # Method 3: raw_decode from each opening brace
    decoder = json.JSONDecoder()
    while start >= 0:
        try:
            result, _ = decoder.raw_decode(text[start:])
            if isinstance(result, dict):
                logger.debug(f"[extract_json_object] raw_decode succeeded at index {start}")
                return result
        except json.JSONDecodeError:
            pass
        start = text.find("{", start + 1)

    return None


def _optional_text(payload: Dict[str, Any], field: str) -> Optional[str]:
    value = payload.get(field)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_plot_response(raw: str) -> PlotArtifact:
    """
    Turn raw generator output into a PlotArtifact.

    Only plot_hook is required; tone and pacing degrade to None.

    Raises:
        ParseFailure: no JSON object could be recovered, or plot_hook is missing
    """
    payload = extract_json_object(raw)
    if payload is None:
        raise ParseFailure("Plot response was not recoverable JSON", raw)

    hook = payload.get(HOOK_FIELD)
    if not isinstance(hook, str) or not hook.strip():
        raise ParseFailure(f"Plot response is missing '{HOOK_FIELD}'", raw)

    return PlotArtifact(
        text=hook.strip(),
        tone=_optional_text(payload, TONE_FIELD),
        pacing=_optional_text(payload, PACING_FIELD),
    )
