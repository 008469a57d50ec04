"""
Roundtable Orchestrator
Wires the host bridge, plot agent, lifecycle controller, persistence and injector.
"""

import asyncio
import logging
from typing import Any, List, Optional

from dotenv import load_dotenv

from .agents import LLMClient, PlotAgent, create_plot_llm_client
from .config import (
    LLMConfiguration,
    RoundtableSettings,
    configure_logging,
    create_default_config_from_env,
    settings_from_env,
)
from .core.arc import NarrativeArcTracker
from .core.errors import GenerationFailure, NoCharacterSelected, RoundtableError
from .core.lifecycle import LifecycleController
from .core.readiness import ReadinessDetector, ReadinessOutcome
from .models import ArcStatus, Character, GenerationOptions, PlotArtifact, PlotStatus, StorageIdentity, WorldEntry
from .services import (
    HOST_EVENTS,
    ActiveCharactersSource,
    ArcStatusSource,
    ChatInjector,
    InjectionOutcome,
    LocalFileStore,
    MemoryStore,
    PersistenceAdapter,
    PushedHost,
    RedisSnapshotStore,
    SnapshotBackend,
    SupabaseSnapshotStore,
    WorldContextSource,
)

load_dotenv()

logger = logging.getLogger("roundtable.orchestrator")


class RoundtableOrchestrator:
    """
    Owns one LifecycleController for the host's active identity.

    Host events re-arm the readiness detector; when it fires, the controller
    for the new identity is created and seeded from its persisted snapshot.
    """

    def __init__(
        self,
        settings: Optional[RoundtableSettings] = None,
        llm_config: Optional[LLMConfiguration] = None,
        host: Any = None,
        llm_client: Optional[LLMClient] = None,
        backends: Optional[List[SnapshotBackend]] = None,
    ):
        self.settings = settings or settings_from_env()
        self.llm_config = llm_config or create_default_config_from_env()
        self.host = host if host is not None else PushedHost()
        self.llm_client = llm_client
        self.plot_agent: Optional[PlotAgent] = None
        self.persistence = PersistenceAdapter(backends) if backends is not None else None
        self.injector = ChatInjector(
            frequency=self.settings.injection.frequency,
            enabled=self.settings.injection.enabled,
        )
        self.arc_tracker = NarrativeArcTracker()
        self.readiness = ReadinessDetector(self.host, self.settings.readiness)
        self.controller: Optional[LifecycleController] = None
        self.identity: Optional[StorageIdentity] = None
        self.last_error: Optional[str] = None
        self._redis_store: Optional[RedisSnapshotStore] = None
        self._background: List[asyncio.Task] = []
        self._activation_lock = asyncio.Lock()

    # ========================================================================
    # Startup / shutdown
    # ========================================================================

    async def initialize(self) -> None:
        """Create the plot agent, connect stores and start watching the host."""
        if self.llm_client is None:
            try:
                self.llm_client = create_plot_llm_client(self.llm_config)
            except ValueError as e:
                logger.warning(f"[initialize] {e}; generation will fail until a provider is configured")
        if self.llm_client is not None:
            self.plot_agent = PlotAgent(
                self.llm_client,
                timeout_seconds=self.settings.generation.timeout_seconds,
                temperature=self.llm_config.temperature,
                max_tokens=self.llm_config.max_tokens,
            )

        if self.persistence is None:
            self.persistence = PersistenceAdapter(await self._connect_backends())
        logger.info(f"[initialize] Snapshot backends: {[b.name for b in self.persistence.backends]}")

        for event_name in HOST_EVENTS:
            self.host.subscribe(event_name, self._on_host_event)
        self.readiness.arm(self._on_ready)

    async def _connect_backends(self) -> List[SnapshotBackend]:
        config = self.settings.persistence
        backends: List[SnapshotBackend] = []

        if config.redis_url:
            store = RedisSnapshotStore(config.redis_url, config.redis_ttl_seconds)
            if await store.connect():
                self._redis_store = store
                backends.append(store)

        if config.supabase_url and config.supabase_key:
            store = SupabaseSnapshotStore(config.supabase_url, config.supabase_key.get_secret_value())
            if await store.connect():
                backends.append(store)
            else:
                logger.warning("[_connect_backends] Supabase not available - snapshots stay local")

        backends.append(LocalFileStore(config.cache_dir) if config.cache_dir else MemoryStore())
        return backends

    async def shutdown(self) -> None:
        logger.info("[shutdown] Shutting down Roundtable")
        self.readiness.cancel()
        if self.controller is not None:
            self.controller.close()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
            self._background = []
        if self.persistence is not None:
            await self.persistence.flush()
        if self._redis_store is not None:
            await self._redis_store.disconnect()

    # ========================================================================
    # Identity handling
    # ========================================================================

    def _host_identity(self) -> Optional[StorageIdentity]:
        try:
            return self.host.get_active_identity()
        except Exception as e:
            logger.warning(f"[_host_identity] Host probe failed: {e}")
            return None

    def _deactivate(self) -> None:
        """Drop the active controller without saving it."""
        if self.controller is not None:
            self.controller.close()
            self.controller = None
        self.injector.clear()
        self.injector.reset_turns()

    def _on_host_event(self, event_name: str, data: Any) -> None:
        identity = self._host_identity()
        if identity != self.identity:
            logger.info(f"[_on_host_event] {event_name}: identity {self.identity and self.identity.key} -> {identity and identity.key}")
            self._deactivate()
            self.identity = identity
            if identity is None:
                self.readiness.cancel()
                return
            self.readiness.rearm(self._on_ready)
        elif identity is not None and self.controller is None and not self.readiness.is_waiting:
            self.readiness.rearm(self._on_ready)

    async def _on_ready(self, identity: Optional[StorageIdentity], outcome: ReadinessOutcome) -> None:
        if identity is None:
            logger.warning(f"[_on_ready] Host ready ({outcome.value}) without an identity; state stays in memory")
        await self.activate(identity)

    async def activate(self, identity: Optional[StorageIdentity]) -> LifecycleController:
        """
        Create the controller for an identity and restore its snapshot, if any.

        A controller already active for the same identity was loaded the same
        way and is kept.
        """
        async with self._activation_lock:
            if self.controller is not None and self.controller.identity == identity and identity == self.identity:
                return self.controller
            return await self._activate(identity)

    async def _activate(self, identity: Optional[StorageIdentity]) -> LifecycleController:
        self._deactivate()
        self.identity = identity
        controller = self._new_controller(identity)

        snapshot = await self.persistence.load(identity) if self.persistence else None
        if self.identity != identity:
            # Identity changed while loading; a newer cycle owns activation
            controller.close()
            return controller

        if snapshot is not None:
            controller.restore_from_persistence(snapshot)
        self.controller = controller
        logger.info(f"[activate] Active identity: {identity.key if identity else 'none (in-memory)'}")
        return controller

    def _new_controller(self, identity: Optional[StorageIdentity]) -> LifecycleController:
        controller = LifecycleController(
            generator=self._generate,
            identity=identity,
            persistence=self.persistence,
            injector=self.injector,
            settings=self.settings.lifecycle,
        )
        controller.on_error(self._record_error)
        controller.on_artifact_changed(self._clear_error)
        return controller

    async def ensure_controller(self) -> LifecycleController:
        """
        The active controller. When none exists yet it is activated for the
        current host identity, loading its snapshot first.
        """
        while self.controller is None:
            # Activation is abandoned when the host identity changes mid-load
            await self.activate(self._host_identity())
        return self.controller

    def _record_error(self, error: RoundtableError) -> None:
        self.last_error = f"Generation failed: {error}"

    def _clear_error(self, artifact: Optional[PlotArtifact]) -> None:
        if artifact is not None:
            self.last_error = None

    # ========================================================================
    # Generation
    # ========================================================================

    def _world_context(self) -> Optional[List[WorldEntry]]:
        if not isinstance(self.host, WorldContextSource):
            return None
        try:
            return self.host.get_world_context()
        except Exception as e:
            logger.warning(f"[_world_context] World context unavailable: {e}")
            return None

    def _active_characters(self) -> Optional[List[Character]]:
        if not isinstance(self.host, ActiveCharactersSource):
            return None
        try:
            return self.host.get_active_characters()
        except Exception as e:
            logger.warning(f"[_active_characters] Group members unavailable: {e}")
            return None

    def _arc_status(self) -> Optional[ArcStatus]:
        if isinstance(self.host, ArcStatusSource):
            try:
                return self.host.get_arc_status()
            except Exception as e:
                logger.warning(f"[_arc_status] Host arc status unavailable: {e}")
                return None
        return self.arc_tracker.get_arc_status()

    async def _generate(self, options: GenerationOptions) -> PlotArtifact:
        identity = self.identity or self._host_identity()
        character = self.host.get_character(identity.character_id) if identity else None
        if character is None:
            raise NoCharacterSelected("No character selected")
        if self.plot_agent is None:
            raise GenerationFailure("No LLM provider configured")

        limit = options.message_limit or self.settings.generation.message_limit
        messages = self.host.get_recent_messages(identity.conversation_id, limit)
        return await self.plot_agent.generate(
            character,
            messages,
            options.model_copy(update={"message_limit": limit}),
            world_context=self._world_context(),
            arc_status=self._arc_status(),
            active_characters=self._active_characters(),
        )

    def check_character(self) -> None:
        """Raise NoCharacterSelected before a generation that cannot succeed."""
        identity = self.identity or self._host_identity()
        if identity is None or self.host.get_character(identity.character_id) is None:
            error = NoCharacterSelected("No character selected")
            self._record_error(error)
            raise error

    async def handle_generation_payload(self, payload: dict) -> InjectionOutcome:
        """
        Apply any queued plot to the host's outgoing payload. When the turn
        count says a fresh plot is due and none is waiting, start one.
        """
        outcome = self.injector.apply(payload)
        controller = self.controller
        if outcome.generation_due and controller is not None and controller.status in (None, PlotStatus.INJECTED):
            self._background = [task for task in self._background if not task.done()]
            self._background.append(asyncio.ensure_future(controller.request_generation()))
            logger.info(f"[handle_generation_payload] Turn {outcome.turn}: requesting a fresh plot")
        return outcome


def main() -> None:
    """Run the Roundtable HTTP service."""
    settings = settings_from_env()
    configure_logging(settings.debug)

    import uvicorn
    from .api import app

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
