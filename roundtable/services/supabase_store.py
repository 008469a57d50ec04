"""
Supabase Snapshot Store for Roundtable

Optional shared store for plot snapshots. Expects a table:

    create table plot_snapshots (
        identity_key text primary key,
        character_id text,
        conversation_id text,
        snapshot jsonb not null,
        updated_at timestamptz default now()
    );
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Optional

from ..core.errors import PersistenceUnavailable
from .persistence import SnapshotBackend

logger = logging.getLogger("roundtable.supabase")

TABLE_NAME = "plot_snapshots"


class SupabaseSnapshotStore(SnapshotBackend):
    """Snapshot backend on a Supabase table keyed by identity key."""

    name = "supabase"

    def __init__(self, supabase_url: Optional[str] = None, supabase_key: Optional[str] = None):
        """
        Args:
            supabase_url: Supabase project URL
            supabase_key: Supabase service role key (for server-side operations)
        """
        self.supabase_url = supabase_url or os.getenv("SUPABASE_URL")
        self.supabase_key = supabase_key or os.getenv("SUPABASE_SERVICE_KEY")
        self.client = None
        self._connected = False

    async def connect(self) -> bool:
        """
        Connect to Supabase.

        Returns:
            True if connection successful, False otherwise
        """
        if not self.supabase_url or not self.supabase_key:
            return False

        try:
            from supabase import create_client
            self.client = create_client(self.supabase_url, self.supabase_key)
            self._connected = True
            return True
        except Exception as e:
            logger.warning(f"[connect] Failed to connect to Supabase: {e}")
            self._connected = False
            return False

    @property
    def is_connected(self) -> bool:
        """Check if connected to Supabase."""
        return self._connected and self.client is not None

    @property
    def is_available(self) -> bool:
        return self.is_connected

    async def save(self, key: str, payload: str) -> None:
        character_id, _, conversation_id = key.partition(":")
        data = {
            "identity_key": key,
            "character_id": character_id,
            "conversation_id": conversation_id,
            "snapshot": json.loads(payload),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self.client.table(TABLE_NAME).upsert(data).execute()
        except Exception as e:
            raise PersistenceUnavailable(f"Supabase upsert failed: {e}") from e

    async def load(self, key: str) -> Optional[str]:
        try:
            result = (
                self.client.table(TABLE_NAME)
                .select("snapshot")
                .eq("identity_key", key)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise PersistenceUnavailable(f"Supabase select failed: {e}") from e

        if not result.data:
            return None
        return json.dumps(result.data[0]["snapshot"])

    async def delete(self, key: str) -> None:
        try:
            self.client.table(TABLE_NAME).delete().eq("identity_key", key).execute()
        except Exception as e:
            raise PersistenceUnavailable(f"Supabase delete failed: {e}") from e
