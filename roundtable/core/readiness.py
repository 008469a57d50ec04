"""
Host Readiness Detector for Roundtable

The host reports intermediate, half-loaded states while switching conversations.
The detector polls until the host looks usable, then samples the message count
until it stops changing, and only then fires the ready callback. Both phases
are bounded so the callback always fires eventually.
"""

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from ..config import ReadinessSettings
from ..models import StorageIdentity

logger = logging.getLogger("roundtable.readiness")

ReadyCallback = Callable[[Optional[StorageIdentity], "ReadinessOutcome"], Union[None, Awaitable[None]]]


class ReadinessOutcome(str, Enum):
    """How a readiness cycle completed."""
    STABLE = "stable"        # message count held steady for the required samples
    FORCED = "forced"        # stability sampling hit its hard cap
    DEGRADED = "degraded"    # host never reported a usable state


class ReadinessDetector:
    """Fires a callback once per activation cycle when the host has settled."""

    def __init__(self, host: Any, settings: Optional[ReadinessSettings] = None):
        self.host = host
        self.settings = settings or ReadinessSettings()
        self._task: Optional[asyncio.Task] = None
        self._cycle = 0
        self.last_outcome: Optional[ReadinessOutcome] = None

    @property
    def is_waiting(self) -> bool:
        return self._task is not None and not self._task.done()

    # ========================================================================
    # Probes
    # ========================================================================

    def _core_ready(self) -> bool:
        """Identity known, message list present, and no save in progress."""
        try:
            if self.host.get_active_identity() is None:
                return False
            if self.host.is_saving():
                return False
            return self.host.get_message_count() is not None
        except Exception as e:
            logger.warning(f"[_core_ready] Host probe failed: {e}")
            return False

    def _sample_count(self) -> int:
        try:
            return self.host.get_message_count() or 0
        except Exception as e:
            logger.warning(f"[_sample_count] Host probe failed: {e}")
            return 0

    def _current_identity(self) -> Optional[StorageIdentity]:
        try:
            return self.host.get_active_identity()
        except Exception as e:
            logger.warning(f"[_current_identity] Host probe failed: {e}")
            return None

    # ========================================================================
    # Cycle
    # ========================================================================

    async def _poll_core(self) -> bool:
        for attempt in range(self.settings.max_poll_attempts):
            if self._core_ready():
                logger.debug(f"[_poll_core] Core ready after {attempt + 1} attempt(s)")
                return True
            await asyncio.sleep(self.settings.poll_interval_seconds)
        return False

    async def _await_stability(self) -> bool:
        """
        Sample the message count until it is unchanged for the required number
        of consecutive samples. An empty list resets the counter. Returns False
        when the hard cap is reached first.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.settings.stability_timeout_seconds
        last_count = -1
        stable_count = 0

        while loop.time() < deadline:
            count = self._sample_count()
            if count == 0:
                last_count = 0
                stable_count = 0
                logger.debug("[_await_stability] Message list empty, waiting for messages to load")
            elif count == last_count:
                stable_count += 1
                logger.debug(
                    f"[_await_stability] Stable at {count} messages "
                    f"(check {stable_count}/{self.settings.stable_checks_required})"
                )
                if stable_count >= self.settings.stable_checks_required:
                    return True
            else:
                logger.debug(f"[_await_stability] Messages loading: {count} (was {last_count})")
                last_count = count
                stable_count = 0

            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            await asyncio.sleep(min(self.settings.stability_interval_seconds, remaining))

        return False

    async def wait_until_ready(self, on_ready: Optional[ReadyCallback] = None) -> ReadinessOutcome:
        """Run one readiness cycle and invoke on_ready exactly once at its end."""
        if not await self._poll_core():
            outcome = ReadinessOutcome.DEGRADED
            logger.warning(
                f"[wait_until_ready] Host not ready after {self.settings.max_poll_attempts} "
                "attempts, continuing in degraded mode"
            )
        elif await self._await_stability():
            outcome = ReadinessOutcome.STABLE
            logger.info(f"[wait_until_ready] Chat stable with {self._sample_count()} messages")
        else:
            outcome = ReadinessOutcome.FORCED
            logger.warning(
                f"[wait_until_ready] Stability timeout reached after "
                f"{self.settings.stability_timeout_seconds:g}s with {self._sample_count()} messages, "
                "initializing anyway"
            )

        self.last_outcome = outcome
        if on_ready is not None:
            try:
                result = on_ready(self._current_identity(), outcome)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"[wait_until_ready] Ready callback failed: {e}")
        return outcome

    def arm(self, on_ready: Optional[ReadyCallback] = None) -> asyncio.Task:
        """Start a readiness cycle in the background, replacing any cycle in flight."""
        self.cancel()
        self._cycle += 1
        self._task = asyncio.create_task(self.wait_until_ready(on_ready))
        logger.debug(f"[arm] Readiness cycle {self._cycle} started")
        return self._task

    def rearm(self, on_ready: Optional[ReadyCallback] = None) -> asyncio.Task:
        return self.arm(on_ready)

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
