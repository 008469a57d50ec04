"""
Roundtable Services Module
Host bridge, snapshot persistence and chat injection.
"""

from .host import (
    CHARACTER_CHANGED,
    CONVERSATION_CHANGED,
    HOST_EVENTS,
    MESSAGES_LOADED,
    ActiveCharactersSource,
    ArcStatusSource,
    HostContext,
    PushedHost,
    WorldContextSource,
)
from .injector import ChatInjector, InjectionOutcome
from .persistence import LocalFileStore, MemoryStore, PersistenceAdapter, SnapshotBackend
from .redis_store import RedisSnapshotStore
from .supabase_store import SupabaseSnapshotStore

__all__ = [
    "HostContext",
    "WorldContextSource",
    "ArcStatusSource",
    "ActiveCharactersSource",
    "PushedHost",
    "CONVERSATION_CHANGED",
    "CHARACTER_CHANGED",
    "MESSAGES_LOADED",
    "HOST_EVENTS",
    "ChatInjector",
    "InjectionOutcome",
    "SnapshotBackend",
    "MemoryStore",
    "LocalFileStore",
    "PersistenceAdapter",
    "RedisSnapshotStore",
    "SupabaseSnapshotStore",
]
