"""
Pydantic data models for Roundtable.
Plot artifacts, lifecycle state, persisted snapshots and the host-side records
the prompt is built from.
"""

import time
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _now_ms() -> int:
    return int(time.time() * 1000)


class PlotStatus(str, Enum):
    """Lifecycle status of the current plot artifact."""
    PENDING = "pending"
    READY = "ready"
    PAUSED = "paused"
    INJECTED = "injected"
    RESTORED = "restored"


# ============================================================================
# Plot Models
# ============================================================================

class PlotArtifact(BaseModel):
    """
    A generated plot hook.

    Artifacts are immutable; an edit produces a new artifact via model_copy.
    """
    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1)
    tone: Optional[str] = None
    pacing: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class HistoryEntry(BaseModel):
    """An approved plot kept in the per-identity ring buffer."""
    text: str
    timestamp: int = Field(default_factory=_now_ms)  # epoch ms
    id: str = Field(default_factory=lambda: f"plot_{uuid.uuid4().hex[:12]}")


class LifecycleState(BaseModel):
    """Mutable state owned by one LifecycleController."""
    status: Optional[PlotStatus] = None  # None until the first artifact or request
    current: Optional[PlotArtifact] = None
    next: Optional[PlotArtifact] = None
    paused: bool = False
    auto_commit_deadline: Optional[float] = None  # loop clock seconds


class StorageIdentity(BaseModel):
    """The (character, conversation) pair that scopes lifecycle state."""
    model_config = ConfigDict(frozen=True)

    character_id: str
    conversation_id: str

    @property
    def key(self) -> str:
        return f"{self.character_id}:{self.conversation_id}"

    @classmethod
    def derive(
        cls,
        character_id: Optional[object],
        conversation_id: Optional[object],
    ) -> Optional["StorageIdentity"]:
        """Build an identity, or None when either part is missing or blank."""
        if character_id is None or conversation_id is None:
            return None
        character_id = str(character_id).strip()
        conversation_id = str(conversation_id).strip()
        if not character_id or not conversation_id:
            return None
        return cls(character_id=character_id, conversation_id=conversation_id)


class PlotSnapshot(BaseModel):
    """
    Persisted per-identity state.

    Serialized with camelCase keys; snake_case keys are accepted on read.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_text: Optional[str] = None
    status: Optional[PlotStatus] = None
    history: List[HistoryEntry] = Field(default_factory=list)
    recent_directions: List[str] = Field(default_factory=list)
    auto_commit_duration_ms: int = 5000
    timestamp: int = Field(default_factory=_now_ms)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


# ============================================================================
# Host Context Models
# ============================================================================

class Character(BaseModel):
    id: Optional[str] = None
    name: str = ""
    personality: Optional[str] = None
    description: Optional[str] = None
    scenario: Optional[str] = None
    group_role: Optional[str] = None


class ChatMessage(BaseModel):
    speaker: str = ""
    text: str = ""
    is_operator: bool = False


class WorldEntry(BaseModel):
    """A world-info entry, already categorized by the host."""
    name: str
    category: str = "lore"  # location, organization, item, lore, rule
    content: Optional[str] = None


class ArcStatus(BaseModel):
    """Narrative arc summary fed into the prompt."""
    has_active_arc: bool = False
    arc_type: Optional[str] = None
    arc_name: Optional[str] = None
    current_phase: Optional[str] = None
    current_phase_description: Optional[str] = None
    progress: int = 0
    total_phases: int = 0
    current_phase_index: int = 0
    completed_arcs: int = 0
    arc_guidance: Optional[str] = None
    available_choices: int = 0


class GenerationOptions(BaseModel):
    """Operator steering for one generation."""
    direction: Optional[str] = None
    style: str = "natural"
    intensity: str = "moderate"
    template: Optional[str] = None
    guidance: Optional[str] = None
    message_limit: Optional[int] = Field(default=None, ge=1, le=100)
