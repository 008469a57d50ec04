"""
Host bridge for Roundtable.

The chat host is modelled as an injected capability object. HostContext is the
read surface the engine relies on; PushedHost is the in-process implementation
that the HTTP API keeps up to date from the host-side extension.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from ..models import ArcStatus, Character, ChatMessage, StorageIdentity, WorldEntry

logger = logging.getLogger("roundtable.host")

# Host lifecycle events; they only hint that readiness should be re-checked
CONVERSATION_CHANGED = "conversation_changed"
CHARACTER_CHANGED = "character_changed"
MESSAGES_LOADED = "messages_loaded"
HOST_EVENTS = (CONVERSATION_CHANGED, CHARACTER_CHANGED, MESSAGES_LOADED)

EventHandler = Callable[[str, Dict[str, Any]], Any]


@runtime_checkable
class HostContext(Protocol):
    def get_active_identity(self) -> Optional[StorageIdentity]:
        ...

    def get_character(self, character_id: str) -> Optional[Character]:
        ...

    def get_recent_messages(self, conversation_id: str, limit: int) -> List[ChatMessage]:
        ...

    def get_message_count(self) -> Optional[int]:
        """Length of the loaded message list, or None while it is not a list yet."""
        ...

    def is_saving(self) -> bool:
        ...

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        ...


@runtime_checkable
class WorldContextSource(Protocol):
    def get_world_context(self) -> List[WorldEntry]:
        ...


@runtime_checkable
class ArcStatusSource(Protocol):
    def get_arc_status(self) -> Optional[ArcStatus]:
        ...


@runtime_checkable
class ActiveCharactersSource(Protocol):
    def get_active_characters(self) -> List[Character]:
        """Every character taking part in the conversation, the active one included."""
        ...


def group_role_for(character: Character) -> str:
    """Rough group role read from personality keywords."""
    if character.group_role:
        return character.group_role
    personality = (character.personality or "").lower()
    if "leader" in personality:
        return "leader"
    if "follower" in personality or "support" in personality:
        return "supporter"
    if "wise" in personality or "mentor" in personality:
        return "mentor"
    return "member"


class PushedHost:
    """
    Host state held in memory and replaced wholesale by push updates.

    Handlers may be plain functions or coroutines; coroutine handlers are
    scheduled on the running loop.
    """

    def __init__(self):
        self.character_id: Optional[str] = None
        self.conversation_id: Optional[str] = None
        self.character: Optional[Character] = None
        self.messages: Optional[List[ChatMessage]] = None
        self.saving = False
        self.world_entries: List[WorldEntry] = []
        self.group_members: List[Character] = []
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._pending_tasks: List[asyncio.Task] = []

    # ========================================================================
    # HostContext
    # ========================================================================

    def get_active_identity(self) -> Optional[StorageIdentity]:
        return StorageIdentity.derive(self.character_id, self.conversation_id)

    def get_character(self, character_id: str) -> Optional[Character]:
        if self.character is None or character_id != self.character_id:
            return None
        return self.character

    def get_recent_messages(self, conversation_id: str, limit: int) -> List[ChatMessage]:
        if conversation_id != self.conversation_id or not self.messages:
            return []
        return list(self.messages[-limit:])

    def get_message_count(self) -> Optional[int]:
        if self.messages is None:
            return None
        return len(self.messages)

    def is_saving(self) -> bool:
        return self.saving

    def get_world_context(self) -> List[WorldEntry]:
        return list(self.world_entries)

    def get_active_characters(self) -> List[Character]:
        if self.group_members:
            return [m.model_copy(update={"group_role": group_role_for(m)}) for m in self.group_members]
        return [self.character] if self.character is not None else []

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event_name, []).append(handler)

    # ========================================================================
    # Push updates
    # ========================================================================

    def update(
        self,
        character_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
        character: Optional[Character] = None,
        messages: Optional[List[ChatMessage]] = None,
        saving: bool = False,
        world_entries: Optional[List[WorldEntry]] = None,
        group_members: Optional[List[Character]] = None,
    ) -> List[str]:
        """
        Replace host state and emit the events implied by the change.

        Returns the names of the emitted events.
        """
        events = []
        if conversation_id != self.conversation_id:
            events.append(CONVERSATION_CHANGED)
        if character_id != self.character_id:
            events.append(CHARACTER_CHANGED)
        previous_count = self.get_message_count()

        self.character_id = character_id
        self.conversation_id = conversation_id
        self.character = character
        self.messages = messages
        self.saving = saving
        if world_entries is not None:
            self.world_entries = list(world_entries)
        self.group_members = list(group_members or [])

        if messages is not None and len(messages) != (previous_count or 0):
            events.append(MESSAGES_LOADED)

        for event_name in events:
            self.emit(event_name, {"character_id": character_id, "conversation_id": conversation_id})
        return events

    def emit(self, event_name: str, data: Optional[Dict[str, Any]] = None) -> None:
        for handler in list(self._handlers.get(event_name, [])):
            try:
                result = handler(event_name, data or {})
                if inspect.isawaitable(result):
                    self._pending_tasks.append(asyncio.ensure_future(result))
            except Exception as e:
                logger.error(f"[emit] Handler for '{event_name}' failed: {e}")

    async def drain(self) -> None:
        """Wait for coroutine handlers scheduled by emit()."""
        if self._pending_tasks:
            await asyncio.gather(*self._pending_tasks, return_exceptions=True)
            self._pending_tasks.clear()
