"""
Plot Agent for Roundtable
Builds the plot prompt, makes one bounded generation call, and parses the result.
"""

import asyncio
import logging
from typing import Optional, Sequence

from ..core.context import build_plot_prompt
from ..core.errors import GenerationFailure, GenerationTimeout
from ..core.parsing import parse_plot_response
from ..models import ArcStatus, Character, ChatMessage, GenerationOptions, PlotArtifact, WorldEntry
from ..prompts.plot import PLOT_SYSTEM_PROMPT
from .base import BaseAgent, LLMClient

logger = logging.getLogger("roundtable.agents.plot")

DEFAULT_TIMEOUT_SECONDS = 45.0


class PlotAgent(BaseAgent):
    """
    Generation pipeline for plot hooks.

    Exactly one call is made per generate(); there is no retry so a slow or
    failing provider surfaces to the operator within the timeout.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        temperature: float = 0.8,
        max_tokens: Optional[int] = 600,
    ):
        super().__init__(
            name="PlotAgent",
            llm_client=llm_client,
            system_prompt=PLOT_SYSTEM_PROMPT,
        )
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def generate(
        self,
        character: Character,
        recent_messages: Sequence[ChatMessage],
        options: Optional[GenerationOptions] = None,
        world_context: Optional[Sequence[WorldEntry]] = None,
        arc_status: Optional[ArcStatus] = None,
        active_characters: Optional[Sequence[Character]] = None,
    ) -> PlotArtifact:
        """
        Generate one plot artifact.

        Raises:
            GenerationTimeout: the call did not settle within timeout_seconds
            GenerationFailure: the provider call raised
            ParseFailure: the response held no usable plot JSON
        """
        prompt = build_plot_prompt(
            character,
            recent_messages,
            options,
            world_context,
            arc_status,
            active_characters=active_characters,
        )
        logger.debug(f"[generate] Prompt built for '{character.name}' (len={len(prompt)})")

        try:
            raw = await asyncio.wait_for(
                self.generate_with_logging(
                    prompt,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(f"[generate] Plot generation timed out after {self.timeout_seconds}s")
            raise GenerationTimeout(self.timeout_seconds)
        except Exception as e:
            logger.error(f"[generate] Plot generation failed: {e}")
            raise GenerationFailure(f"Plot generation failed: {e}") from e

        artifact = parse_plot_response(raw or "")
        logger.info(f"[generate] Plot generated for '{character.name}' ({len(artifact.text)} chars)")
        return artifact
