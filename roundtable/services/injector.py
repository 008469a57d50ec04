"""
Chat Injector for Roundtable

Approved plots are queued here and written into the host's next outgoing
generation payload. The injector also counts real generation turns so the
orchestrator knows when a fresh plot is due.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .security import MAX_FREQUENCY, MIN_FREQUENCY, sanitize_plot_text, validate_numeric_input

logger = logging.getLogger("roundtable.injector")

# Plain string fields tried last, in order
_FALLBACK_FIELDS = ("text", "content", "message")


@dataclass
class InjectionOutcome:
    injected: bool = False
    strategy: Optional[str] = None
    generation_due: bool = False
    turn: int = 0


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


class ChatInjector:
    """Queues approved plot text and applies it to generation payloads."""

    def __init__(self, frequency: int = 3, enabled: bool = True):
        self.frequency = validate_numeric_input(frequency, MIN_FREQUENCY, MAX_FREQUENCY, 3)
        self.enabled = enabled
        self.pending_text: Optional[str] = None
        self.turn_counter = 0
        self.last_generation_turn = 0

    def set_frequency(self, frequency: Any) -> int:
        self.frequency = validate_numeric_input(frequency, MIN_FREQUENCY, MAX_FREQUENCY, self.frequency)
        return self.frequency

    def inject_into_conversation(self, text: str) -> None:
        """Queue text for the next generation; a newer approval replaces an unsent one."""
        cleaned = sanitize_plot_text(text)
        if cleaned is None:
            logger.warning("[inject_into_conversation] Ignoring empty plot text")
            return
        if self.pending_text is not None:
            logger.info("[inject_into_conversation] Replacing plot that was never sent")
        self.pending_text = cleaned

    def clear(self) -> None:
        self.pending_text = None

    def reset_turns(self) -> None:
        self.turn_counter = 0
        self.last_generation_turn = 0

    @staticmethod
    def is_real_generation(payload: Optional[Dict[str, Any]]) -> bool:
        """Chat loading fires empty generation events; only count ones with content."""
        if not payload:
            return False
        messages = payload.get("messages")
        return (
            _has_text(payload.get("prompt"))
            or (isinstance(messages, list) and len(messages) > 0)
            or _has_text(payload.get("text"))
        )

    @staticmethod
    def inject_plot_context(payload: Dict[str, Any], text: str) -> Optional[str]:
        """
        Prepend the plot to the payload in place.

        Returns the name of the strategy used, or None if no field fit.
        """
        if isinstance(payload.get("prompt"), str) and payload["prompt"]:
            payload["prompt"] = f"{text}\n\n{payload['prompt']}"
            return "prompt"

        if isinstance(payload.get("messages"), list):
            payload["messages"].insert(0, {"role": "system", "content": text})
            return "messages"

        chat = payload.get("chat")
        if isinstance(chat, dict) and isinstance(chat.get("prompt"), str) and chat["prompt"]:
            chat["prompt"] = f"{text}\n\n{chat['prompt']}"
            return "chat.prompt"

        for field in _FALLBACK_FIELDS:
            if isinstance(payload.get(field), str) and payload[field]:
                payload[field] = f"{text}\n\n{payload[field]}"
                return field

        return None

    def apply(self, payload: Dict[str, Any]) -> InjectionOutcome:
        """Count the turn and inject any queued plot into the payload."""
        if not self.enabled or not self.is_real_generation(payload):
            return InjectionOutcome(turn=self.turn_counter)

        self.turn_counter += 1
        outcome = InjectionOutcome(turn=self.turn_counter)
        if self.turn_counter - self.last_generation_turn >= self.frequency:
            self.last_generation_turn = self.turn_counter
            outcome.generation_due = True

        if self.pending_text is None:
            return outcome

        strategy = self.inject_plot_context(payload, self.pending_text)
        if strategy is None:
            logger.error(f"[apply] No injectable field in payload (keys={list(payload.keys())})")
            return outcome

        logger.info(f"[apply] Injected {len(self.pending_text)} chars via {strategy} on turn {self.turn_counter}")
        self.pending_text = None
        outcome.injected = True
        outcome.strategy = strategy
        return outcome
