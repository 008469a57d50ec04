"""
Plot Lifecycle Controller for Roundtable

Owns the current plot artifact for one (character, conversation) identity and
moves it through pending -> ready -> paused / injected / restored.

Each slot (current and next) has a generation epoch. Every generation request
captures the slot's epoch and its result is discarded if the epoch has moved on
by the time it arrives, so the slot always shows the most recently initiated
generation. The auto-commit countdown is a real asyncio task and is cancelled
whenever the current artifact changes.
"""

import asyncio
import inspect
import logging
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..config import LifecycleSettings
from ..models import (
    GenerationOptions,
    HistoryEntry,
    LifecycleState,
    PlotArtifact,
    PlotSnapshot,
    PlotStatus,
    StorageIdentity,
)
from ..services.security import (
    MAX_HISTORY_LIMIT,
    MIN_HISTORY_LIMIT,
    sanitize_direction,
    sanitize_plot_text,
    validate_numeric_input,
)
from .errors import GenerationFailure, RoundtableError
from .history import PlotHistory, RecentDirections

logger = logging.getLogger("roundtable.lifecycle")

PlotGenerator = Callable[[GenerationOptions], Awaitable[PlotArtifact]]

CURRENT_SLOT = "current"
NEXT_SLOT = "next"

MIN_AUTO_COMMIT_MS = 1000
MAX_AUTO_COMMIT_MS = 600000

# Statuses in which the current artifact can be approved or paused
_ACTIONABLE = (PlotStatus.READY, PlotStatus.RESTORED, PlotStatus.PAUSED)


@dataclass
class GenerationResult:
    """Outcome of one generation request."""
    artifact: Optional[PlotArtifact] = None
    error: Optional[RoundtableError] = None
    stale: bool = False

    @property
    def ok(self) -> bool:
        return self.artifact is not None and self.error is None and not self.stale


class LifecycleController:
    """State machine for the current plot of one identity."""

    def __init__(
        self,
        generator: PlotGenerator,
        identity: Optional[StorageIdentity] = None,
        persistence: Any = None,
        injector: Any = None,
        settings: Optional[LifecycleSettings] = None,
    ):
        self.generator = generator
        self.identity = identity
        self.persistence = persistence
        self.injector = injector
        self.settings = settings or LifecycleSettings()

        self.state = LifecycleState()
        self.history = PlotHistory(self.settings.history_limit)
        self.directions = RecentDirections(self.settings.max_recent_directions)
        self.direction: Optional[str] = None
        self.auto_commit_ms = self.settings.auto_commit_ms

        self._epochs: Dict[str, int] = {CURRENT_SLOT: 0, NEXT_SLOT: 0}
        self._timer_task: Optional[asyncio.Task] = None
        self._history_origin_id: Optional[str] = None
        self._status_before_pending: Optional[PlotStatus] = None
        self._status_before_pause: Optional[PlotStatus] = None
        self._touched = False
        self._closed = False
        self._listeners: Dict[str, List[Callable[..., Any]]] = {
            "status": [],
            "artifact": [],
            "next": [],
            "history": [],
            "countdown": [],
            "error": [],
        }

    # ========================================================================
    # Observers
    # ========================================================================

    def on_status_changed(self, callback: Callable[[Optional[PlotStatus]], Any]) -> None:
        self._listeners["status"].append(callback)

    def on_artifact_changed(self, callback: Callable[[Optional[PlotArtifact]], Any]) -> None:
        self._listeners["artifact"].append(callback)

    def on_next_changed(self, callback: Callable[[Optional[PlotArtifact]], Any]) -> None:
        self._listeners["next"].append(callback)

    def on_history_changed(self, callback: Callable[[List[HistoryEntry]], Any]) -> None:
        self._listeners["history"].append(callback)

    def on_countdown(self, callback: Callable[[int], Any]) -> None:
        self._listeners["countdown"].append(callback)

    def on_error(self, callback: Callable[[RoundtableError], Any]) -> None:
        self._listeners["error"].append(callback)

    def _emit(self, event: str, *args: Any) -> None:
        for callback in list(self._listeners[event]):
            try:
                result = callback(*args)
                if inspect.isawaitable(result):
                    asyncio.ensure_future(result)
            except Exception as e:
                logger.error(f"[_emit] '{event}' observer failed: {e}")

    # ========================================================================
    # Read-only views
    # ========================================================================

    @property
    def status(self) -> Optional[PlotStatus]:
        return self.state.status

    @property
    def current(self) -> Optional[PlotArtifact]:
        return self.state.current

    @property
    def next(self) -> Optional[PlotArtifact]:
        return self.state.next

    @property
    def is_paused(self) -> bool:
        return self.state.paused

    @property
    def history_origin_id(self) -> Optional[str]:
        """Id of the history entry the current artifact was loaded from, if any."""
        return self._history_origin_id

    def epoch(self, slot: str = CURRENT_SLOT) -> int:
        return self._epochs[slot]

    def seconds_left(self) -> Optional[int]:
        """Whole seconds until auto-commit, or None when no countdown is running."""
        if self._timer_task is None or self.state.auto_commit_deadline is None:
            return None
        remaining = self.state.auto_commit_deadline - asyncio.get_running_loop().time()
        return max(0, math.ceil(remaining))

    # ========================================================================
    # Internal state changes
    # ========================================================================

    def _set_status(self, status: Optional[PlotStatus]) -> None:
        if self.state.status == status:
            return
        logger.debug(f"[_set_status] {self.state.status} -> {status}")
        self.state.status = status
        self._emit("status", status)

    def _set_current(self, artifact: Optional[PlotArtifact]) -> None:
        self.state.current = artifact
        self._emit("artifact", artifact)

    def _set_next(self, artifact: Optional[PlotArtifact]) -> None:
        self.state.next = artifact
        self._emit("next", artifact)

    def _history_changed(self) -> None:
        self._emit("history", self.history.entries)

    def _supersede_current(self) -> None:
        """Stop the countdown and invalidate any in-flight generation for the current slot."""
        self._touched = True
        self._cancel_auto_commit()
        self._epochs[CURRENT_SLOT] += 1

    def _enter_ready(self) -> None:
        if self.state.paused:
            self._status_before_pause = PlotStatus.READY
            self._set_status(PlotStatus.PAUSED)
        else:
            self._set_status(PlotStatus.READY)
            self._arm_auto_commit()

    def _save(self) -> None:
        if self.persistence is None or self.identity is None or self._closed:
            return
        try:
            self.persistence.save_in_background(self.identity, self.snapshot())
        except Exception as e:
            logger.warning(f"[_save] Could not schedule snapshot save: {e}")

    # ========================================================================
    # Auto-commit
    # ========================================================================

    def _arm_auto_commit(self) -> None:
        self._cancel_auto_commit()
        duration = self.auto_commit_ms / 1000
        self.state.auto_commit_deadline = asyncio.get_running_loop().time() + duration
        self._timer_task = asyncio.create_task(self._run_auto_commit(duration))

    def _cancel_auto_commit(self) -> None:
        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None
        self.state.auto_commit_deadline = None

    async def _run_auto_commit(self, duration: float) -> None:
        remaining = duration
        tick = self.settings.countdown_tick_seconds
        while remaining > 0:
            self._emit("countdown", math.ceil(remaining))
            step = min(tick, remaining)
            await asyncio.sleep(step)
            remaining -= step

        self._emit("countdown", 0)
        # Detach first so approve_and_inject does not cancel this task
        self._timer_task = None
        self.state.auto_commit_deadline = None
        logger.info("[_run_auto_commit] Countdown finished, auto-injecting plot")
        self.approve_and_inject()

    # ========================================================================
    # Generation
    # ========================================================================

    def _resolve_options(self, options: Optional[GenerationOptions]) -> GenerationOptions:
        options = options or GenerationOptions()
        if options.direction:
            direction = sanitize_direction(options.direction)
            if direction:
                self.directions.add(direction)
            return options.model_copy(update={"direction": direction or None})
        if self.direction:
            return options.model_copy(update={"direction": self.direction})
        return options

    async def _call_generator(self, options: GenerationOptions) -> PlotArtifact:
        try:
            return await self.generator(options)
        except RoundtableError:
            raise
        except Exception as e:
            raise GenerationFailure(f"Plot generation failed: {e}") from e

    async def request_generation(self, options: Optional[GenerationOptions] = None) -> GenerationResult:
        """
        Generate a new current artifact.

        The previous artifact stays displayed until the new one arrives, and
        stays untouched if generation fails. Never raises for generation errors.
        """
        self._touched = True
        options = self._resolve_options(options)
        self._cancel_auto_commit()
        self._epochs[CURRENT_SLOT] += 1
        epoch = self._epochs[CURRENT_SLOT]

        if self.state.status != PlotStatus.PENDING:
            self._status_before_pending = self.state.status
        self._set_status(PlotStatus.PENDING)
        self._save()

        try:
            artifact = await self._call_generator(options)
        except RoundtableError as e:
            if epoch != self._epochs[CURRENT_SLOT]:
                logger.info(f"[request_generation] Discarding stale failure from epoch {epoch}: {e}")
                return GenerationResult(error=e, stale=True)
            logger.warning(f"[request_generation] Generation failed: {e}")
            self._set_status(self._status_before_pending if self.state.current else None)
            self._emit("error", e)
            self._save()
            return GenerationResult(error=e)

        if epoch != self._epochs[CURRENT_SLOT] or self._closed:
            logger.info(
                f"[request_generation] Discarding stale result from epoch {epoch} "
                f"(current epoch {self._epochs[CURRENT_SLOT]})"
            )
            return GenerationResult(artifact=artifact, stale=True)

        self._history_origin_id = None
        self._set_current(artifact)
        self._enter_ready()
        self._save()
        return GenerationResult(artifact=artifact)

    async def skip(self, options: Optional[GenerationOptions] = None) -> GenerationResult:
        """Discard the current artifact and generate a replacement."""
        self._supersede_current()
        self._history_origin_id = None
        self._set_current(None)
        self._status_before_pending = None
        self._set_status(PlotStatus.PENDING)
        return await self.request_generation(options)

    async def regenerate_next(self, options: Optional[GenerationOptions] = None) -> GenerationResult:
        """Pre-compute a look-ahead artifact in the next slot. Never auto-commits."""
        self._touched = True
        options = self._resolve_options(options)
        self._epochs[NEXT_SLOT] += 1
        epoch = self._epochs[NEXT_SLOT]

        try:
            artifact = await self._call_generator(options)
        except RoundtableError as e:
            if epoch != self._epochs[NEXT_SLOT]:
                return GenerationResult(error=e, stale=True)
            logger.warning(f"[regenerate_next] Next plot generation failed: {e}")
            self._emit("error", e)
            return GenerationResult(error=e)

        if epoch != self._epochs[NEXT_SLOT] or self._closed:
            logger.info(f"[regenerate_next] Discarding stale next plot from epoch {epoch}")
            return GenerationResult(artifact=artifact, stale=True)

        self._set_next(artifact)
        return GenerationResult(artifact=artifact)

    # ========================================================================
    # Operator actions
    # ========================================================================

    def approve_and_inject(self) -> bool:
        """
        Commit the current artifact into the conversation.

        Adds it to history unless it was loaded from a history entry. Returns
        False when there is nothing to approve.
        """
        if self.state.current is None or self.state.status not in _ACTIONABLE:
            logger.debug(f"[approve_and_inject] Nothing to approve (status={self.state.status})")
            return False

        self._touched = True
        self._cancel_auto_commit()
        text = self.state.current.text

        if self._history_origin_id and self.history.find(self._history_origin_id):
            logger.debug(f"[approve_and_inject] Re-approving history entry {self._history_origin_id}")
        else:
            self.history.add(text)
            self._history_changed()
        self._history_origin_id = None

        self._set_status(PlotStatus.INJECTED)
        self._inject(text)
        self._save()
        return True

    def _inject(self, text: str) -> None:
        if self.injector is None:
            return
        try:
            result = self.injector.inject_into_conversation(text)
            if inspect.isawaitable(result):
                asyncio.ensure_future(result)
        except Exception as e:
            logger.error(f"[_inject] Injector failed: {e}")

    def edit(self, new_text: str) -> PlotArtifact:
        """
        Replace the current text.

        Edits are in place: an artifact loaded from history updates that entry
        (same id, fresh timestamp) and no new entry is created. Editing an
        already injected plot starts a new, unapproved artifact instead.
        """
        text = sanitize_plot_text(new_text)
        if text is None:
            raise ValueError("Plot text cannot be empty")

        self._supersede_current()
        current = self.state.current

        if current is None:
            artifact = PlotArtifact(text=text)
        elif self.state.status == PlotStatus.INJECTED:
            self._history_origin_id = None
            artifact = PlotArtifact(text=text, tone=current.tone, pacing=current.pacing)
        else:
            artifact = current.model_copy(update={"text": text})
            if self._history_origin_id and self.history.update_in_place(self._history_origin_id, text):
                self._history_changed()

        self._set_current(artifact)
        self._enter_ready()
        self._save()
        return artifact

    def manual_entry(self, text: str) -> PlotArtifact:
        """Use operator-written text as the current artifact."""
        cleaned = sanitize_plot_text(text)
        if cleaned is None:
            raise ValueError("Plot text cannot be empty")

        self._supersede_current()
        self._history_origin_id = None
        artifact = PlotArtifact(text=cleaned)
        self._set_current(artifact)
        self._enter_ready()
        self._save()
        return artifact

    def load_from_history(self, entry_id: str) -> PlotArtifact:
        entry = self.history.find(entry_id)
        if entry is None:
            raise KeyError(f"History entry not found: {entry_id}")

        self._supersede_current()
        self._history_origin_id = entry.id
        artifact = PlotArtifact(text=entry.text)
        self._set_current(artifact)
        self._enter_ready()
        self._save()
        return artifact

    def promote_next(self) -> Optional[PlotArtifact]:
        """Move the look-ahead artifact into the current slot."""
        artifact = self.state.next
        if artifact is None:
            return None

        self._supersede_current()
        self._history_origin_id = None
        self._set_next(None)
        self._set_current(artifact)
        self._enter_ready()
        self._save()
        return artifact

    def toggle_pause(self) -> bool:
        """
        Flip the pause flag; ready and restored plots move to paused and back.

        Resuming does not restart the countdown. Returns the new pause flag.
        """
        self._touched = True
        self.state.paused = not self.state.paused

        if self.state.paused:
            self._cancel_auto_commit()
            if self.state.status in (PlotStatus.READY, PlotStatus.RESTORED):
                self._status_before_pause = self.state.status
                self._set_status(PlotStatus.PAUSED)
        elif self.state.status == PlotStatus.PAUSED:
            self._set_status(self._status_before_pause or PlotStatus.READY)
            self._status_before_pause = None

        logger.info(f"[toggle_pause] Auto-commit {'paused' if self.state.paused else 'resumed'}")
        self._save()
        return self.state.paused

    def set_direction(self, direction: Optional[str]) -> Optional[str]:
        """Set the default direction for later generations; blank clears it."""
        cleaned = sanitize_direction(direction)
        self.direction = cleaned or None
        if cleaned:
            self.directions.add(cleaned)
        self._save()
        return self.direction

    def set_history_limit(self, limit: Any) -> int:
        value = validate_numeric_input(limit, MIN_HISTORY_LIMIT, MAX_HISTORY_LIMIT, self.history.limit)
        self.history.set_limit(value)
        self._history_changed()
        self._save()
        return value

    def set_auto_commit_duration(self, duration_ms: Any) -> int:
        self.auto_commit_ms = validate_numeric_input(
            duration_ms, MIN_AUTO_COMMIT_MS, MAX_AUTO_COMMIT_MS, self.auto_commit_ms
        )
        self._save()
        return self.auto_commit_ms

    # ========================================================================
    # Persistence
    # ========================================================================

    def snapshot(self) -> PlotSnapshot:
        return PlotSnapshot(
            current_text=self.state.current.text if self.state.current else None,
            status=self.state.status,
            history=self.history.entries,
            recent_directions=self.directions.items,
            auto_commit_duration_ms=self.auto_commit_ms,
        )

    def restore_from_persistence(self, snapshot: PlotSnapshot) -> None:
        """
        Seed a fresh controller from a saved snapshot.

        A restored plot behaves like a ready one, but no countdown is armed.
        """
        if self._touched:
            raise RuntimeError("restore_from_persistence is only valid on a fresh controller")

        self.history.replace_all(snapshot.history)
        self.directions = RecentDirections(self.settings.max_recent_directions, snapshot.recent_directions)
        self.auto_commit_ms = validate_numeric_input(
            snapshot.auto_commit_duration_ms, MIN_AUTO_COMMIT_MS, MAX_AUTO_COMMIT_MS, self.auto_commit_ms
        )

        text = sanitize_plot_text(snapshot.current_text)
        if text:
            self._set_current(PlotArtifact(text=text))
            self._set_status(PlotStatus.RESTORED)
        self._history_changed()
        logger.info(
            f"[restore_from_persistence] Restored {'plot' if text else 'no plot'} "
            f"with {len(self.history)} history entries"
        )

    def close(self) -> None:
        """Stop timers; late generation results are discarded."""
        self._cancel_auto_commit()
        self._closed = True
