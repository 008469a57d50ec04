"""
HTTP API for Roundtable
The host-side extension pushes chat state here and drives the plot preview UI.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .core.errors import NoCharacterSelected
from .core.lifecycle import GenerationResult, LifecycleController
from .main import RoundtableOrchestrator
from .models import (
    ArcStatus,
    Character,
    ChatMessage,
    GenerationOptions,
    HistoryEntry,
    PlotArtifact,
    PlotStatus,
    WorldEntry,
)
from .services import PushedHost
from .services.security import (
    ALLOWED_ORIGINS,
    MAX_DIRECTION_LENGTH,
    MAX_PLOT_LENGTH,
    validate_intensity,
    validate_style,
)

logger = logging.getLogger("roundtable.api")

# Initialize rate limiter
limiter = Limiter(key_func=get_remote_address)


# ============================================================================
# Request / Response Models
# ============================================================================

class HostStateRequest(BaseModel):
    """Full host state as seen by the extension."""
    character_id: Optional[str] = None
    conversation_id: Optional[str] = None
    character: Optional[Character] = None
    messages: Optional[List[ChatMessage]] = None
    saving: bool = False
    world_entries: Optional[List[WorldEntry]] = None
    group_members: Optional[List[Character]] = None


class EditRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=MAX_PLOT_LENGTH * 2)


class DirectionRequest(BaseModel):
    direction: str = Field("", max_length=MAX_DIRECTION_LENGTH * 2)


class SettingsRequest(BaseModel):
    history_limit: Optional[int] = None
    auto_commit_ms: Optional[int] = None
    frequency: Optional[int] = None


class ArcStartRequest(BaseModel):
    arc_type: str
    character_name: Optional[str] = None


class ArcChoiceRequest(BaseModel):
    choice_type: str = "branching"
    choice: str


class GenerationResultResponse(BaseModel):
    ok: bool
    stale: bool = False
    error: Optional[str] = None


class PlotStateResponse(BaseModel):
    identity: Optional[str] = None
    status: Optional[PlotStatus] = None
    current: Optional[PlotArtifact] = None
    next: Optional[PlotArtifact] = None
    paused: bool = False
    seconds_left: Optional[int] = None
    history: List[HistoryEntry] = Field(default_factory=list)
    recent_directions: List[str] = Field(default_factory=list)
    direction: Optional[str] = None
    auto_commit_ms: int
    last_error: Optional[str] = None
    result: Optional[GenerationResultResponse] = None


def _result_response(result: GenerationResult) -> GenerationResultResponse:
    return GenerationResultResponse(
        ok=result.ok,
        stale=result.stale,
        error=str(result.error) if result.error else None,
    )


def _state_response(
    orchestrator: RoundtableOrchestrator,
    controller: LifecycleController,
    result: Optional[GenerationResult] = None,
) -> PlotStateResponse:
    return PlotStateResponse(
        identity=controller.identity.key if controller.identity else None,
        status=controller.status,
        current=controller.current,
        next=controller.next,
        paused=controller.is_paused,
        seconds_left=controller.seconds_left(),
        history=controller.history.entries,
        recent_directions=controller.directions.items,
        direction=controller.direction,
        auto_commit_ms=controller.auto_commit_ms,
        last_error=orchestrator.last_error,
        result=_result_response(result) if result else None,
    )


# ============================================================================
# Routes
# ============================================================================

router = APIRouter()


def get_orchestrator(request: Request) -> RoundtableOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Roundtable not initialized")
    return orchestrator


def get_pushed_host(orchestrator: RoundtableOrchestrator) -> PushedHost:
    if not isinstance(orchestrator.host, PushedHost):
        raise HTTPException(status_code=400, detail="Host state is not pushed over HTTP")
    return orchestrator.host


@router.get("/health")
async def health():
    return {"status": "ok", "service": "roundtable-plot-engine"}


# ============================================================================
# Host bridge
# ============================================================================

@router.post("/host/state")
async def push_host_state(state: HostStateRequest, request: Request):
    """Replace host state; identity changes re-arm readiness."""
    orchestrator = get_orchestrator(request)
    host = get_pushed_host(orchestrator)
    events = host.update(
        character_id=state.character_id,
        conversation_id=state.conversation_id,
        character=state.character,
        messages=state.messages,
        saving=state.saving,
        world_entries=state.world_entries,
        group_members=state.group_members,
    )
    await host.drain()
    return {"events": events, "identity": orchestrator.identity.key if orchestrator.identity else None}


@router.post("/host/events/{event_name}")
async def push_host_event(event_name: str, request: Request):
    orchestrator = get_orchestrator(request)
    host = get_pushed_host(orchestrator)
    host.emit(event_name, {})
    await host.drain()
    return {"event": event_name}


@router.post("/inject")
async def inject(payload: Dict[str, Any], request: Request):
    """Apply any queued plot to the host's outgoing generation payload."""
    orchestrator = get_orchestrator(request)
    outcome = await orchestrator.handle_generation_payload(payload)
    return {
        "payload": payload,
        "injected": outcome.injected,
        "strategy": outcome.strategy,
        "generation_due": outcome.generation_due,
        "turn": outcome.turn,
    }


# ============================================================================
# Plot lifecycle
# ============================================================================

@router.get("/plot", response_model=PlotStateResponse)
async def get_plot(request: Request):
    orchestrator = get_orchestrator(request)
    return _state_response(orchestrator, await orchestrator.ensure_controller())


def _prepare_options(options: Optional[GenerationOptions]) -> GenerationOptions:
    options = options or GenerationOptions()
    return options.model_copy(update={
        "style": validate_style(options.style),
        "intensity": validate_intensity(options.intensity),
    })


@router.post("/plot/generate", response_model=PlotStateResponse)
@limiter.limit("30/minute")
async def generate_plot(request: Request, options: Optional[GenerationOptions] = None):
    orchestrator = get_orchestrator(request)
    try:
        orchestrator.check_character()
    except NoCharacterSelected as e:
        raise HTTPException(status_code=409, detail=str(e))
    controller = await orchestrator.ensure_controller()
    result = await controller.request_generation(_prepare_options(options))
    return _state_response(orchestrator, controller, result)


@router.post("/plot/skip", response_model=PlotStateResponse)
@limiter.limit("30/minute")
async def skip_plot(request: Request, options: Optional[GenerationOptions] = None):
    orchestrator = get_orchestrator(request)
    try:
        orchestrator.check_character()
    except NoCharacterSelected as e:
        raise HTTPException(status_code=409, detail=str(e))
    controller = await orchestrator.ensure_controller()
    result = await controller.skip(_prepare_options(options))
    return _state_response(orchestrator, controller, result)


@router.post("/plot/next", response_model=PlotStateResponse)
@limiter.limit("30/minute")
async def generate_next_plot(request: Request, options: Optional[GenerationOptions] = None):
    orchestrator = get_orchestrator(request)
    try:
        orchestrator.check_character()
    except NoCharacterSelected as e:
        raise HTTPException(status_code=409, detail=str(e))
    controller = await orchestrator.ensure_controller()
    result = await controller.regenerate_next(_prepare_options(options))
    return _state_response(orchestrator, controller, result)


@router.post("/plot/next/promote", response_model=PlotStateResponse)
async def promote_next_plot(request: Request):
    orchestrator = get_orchestrator(request)
    controller = await orchestrator.ensure_controller()
    if controller.promote_next() is None:
        raise HTTPException(status_code=409, detail="No next plot to promote")
    return _state_response(orchestrator, controller)


@router.post("/plot/edit", response_model=PlotStateResponse)
async def edit_plot(edit: EditRequest, request: Request):
    orchestrator = get_orchestrator(request)
    controller = await orchestrator.ensure_controller()
    try:
        controller.edit(edit.text)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _state_response(orchestrator, controller)


@router.post("/plot/pause", response_model=PlotStateResponse)
async def toggle_pause(request: Request):
    orchestrator = get_orchestrator(request)
    controller = await orchestrator.ensure_controller()
    controller.toggle_pause()
    return _state_response(orchestrator, controller)


@router.post("/plot/approve", response_model=PlotStateResponse)
async def approve_plot(request: Request):
    orchestrator = get_orchestrator(request)
    controller = await orchestrator.ensure_controller()
    if not controller.approve_and_inject():
        raise HTTPException(status_code=409, detail="No plot ready to approve")
    return _state_response(orchestrator, controller)


@router.post("/plot/direction", response_model=PlotStateResponse)
async def set_direction(body: DirectionRequest, request: Request):
    orchestrator = get_orchestrator(request)
    controller = await orchestrator.ensure_controller()
    controller.set_direction(body.direction)
    return _state_response(orchestrator, controller)


@router.post("/plot/history/{entry_id}/load", response_model=PlotStateResponse)
async def load_history_entry(entry_id: str, request: Request):
    orchestrator = get_orchestrator(request)
    controller = await orchestrator.ensure_controller()
    try:
        controller.load_from_history(entry_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="History entry not found")
    return _state_response(orchestrator, controller)


@router.post("/plot/settings", response_model=PlotStateResponse)
async def update_settings(body: SettingsRequest, request: Request):
    orchestrator = get_orchestrator(request)
    controller = await orchestrator.ensure_controller()
    if body.history_limit is not None:
        controller.set_history_limit(body.history_limit)
    if body.auto_commit_ms is not None:
        controller.set_auto_commit_duration(body.auto_commit_ms)
    if body.frequency is not None:
        orchestrator.injector.set_frequency(body.frequency)
    return _state_response(orchestrator, controller)


# ============================================================================
# Narrative arc
# ============================================================================

@router.get("/arc", response_model=ArcStatus)
async def get_arc(request: Request):
    return get_orchestrator(request).arc_tracker.get_arc_status()


@router.post("/arc/start", response_model=ArcStatus)
async def start_arc(body: ArcStartRequest, request: Request):
    tracker = get_orchestrator(request).arc_tracker
    if not tracker.start_arc(body.arc_type, body.character_name):
        raise HTTPException(status_code=400, detail=f"Unknown arc type: {body.arc_type}")
    return tracker.get_arc_status()


@router.post("/arc/advance", response_model=ArcStatus)
async def advance_arc(request: Request):
    tracker = get_orchestrator(request).arc_tracker
    if not tracker.advance_phase():
        raise HTTPException(status_code=409, detail="No active arc")
    return tracker.get_arc_status()


@router.post("/arc/choice", response_model=ArcStatus)
async def choose_arc_branch(body: ArcChoiceRequest, request: Request):
    tracker = get_orchestrator(request).arc_tracker
    if not tracker.make_choice(body.choice_type, body.choice):
        raise HTTPException(status_code=409, detail="No active arc")
    return tracker.get_arc_status()


@router.post("/arc/reset", response_model=ArcStatus)
async def reset_arc(request: Request):
    tracker = get_orchestrator(request).arc_tracker
    tracker.reset()
    return tracker.get_arc_status()


# ============================================================================
# Application
# ============================================================================

def create_app(orchestrator_factory: Optional[Callable[[], RoundtableOrchestrator]] = None) -> FastAPI:
    """Build the FastAPI app; the factory is called once at startup."""
    factory = orchestrator_factory or RoundtableOrchestrator

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        orchestrator = factory()
        await orchestrator.initialize()
        app.state.orchestrator = orchestrator
        try:
            yield
        finally:
            await orchestrator.shutdown()

    app = FastAPI(title="Roundtable Plot Engine", lifespan=lifespan)

    # Add rate limiter to app state
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(router)
    return app


app = create_app()
