"""
Roundtable Data Models Module
Pydantic schemas for plot generation and lifecycle state.
"""

from .schemas import (
    ArcStatus,
    # Host Context Models
    Character,
    ChatMessage,
    GenerationOptions,
    HistoryEntry,
    LifecycleState,
    # Plot Models
    PlotArtifact,
    PlotSnapshot,
    # Enums
    PlotStatus,
    StorageIdentity,
    WorldEntry,
)

__all__ = [
    "PlotStatus",
    "PlotArtifact",
    "HistoryEntry",
    "LifecycleState",
    "StorageIdentity",
    "PlotSnapshot",
    "Character",
    "ChatMessage",
    "WorldEntry",
    "ArcStatus",
    "GenerationOptions",
]
