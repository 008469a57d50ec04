"""
Snapshot Persistence for Roundtable

One adapter over a priority-ordered list of snapshot backends. Shared stores
come first; the local cache comes last and is always written. Nothing in here
raises to the caller: a lost snapshot only costs a regeneration.
"""

import asyncio
import hashlib
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from pydantic import ValidationError

from ..core.errors import PersistenceUnavailable
from ..models import PlotSnapshot, StorageIdentity

logger = logging.getLogger("roundtable.persistence")


class SnapshotBackend(ABC):
    """A store for serialized snapshots keyed by identity key."""

    name = "backend"

    @property
    def is_available(self) -> bool:
        return True

    @abstractmethod
    async def save(self, key: str, payload: str) -> None:
        """Store a serialized snapshot. Raises PersistenceUnavailable on failure."""
        pass

    @abstractmethod
    async def load(self, key: str) -> Optional[str]:
        """Return the serialized snapshot, or None when absent."""
        pass

    async def delete(self, key: str) -> None:
        pass


class MemoryStore(SnapshotBackend):
    """In-process store; used in tests and when no cache directory is configured."""

    name = "memory"

    def __init__(self):
        self.data: Dict[str, str] = {}

    async def save(self, key: str, payload: str) -> None:
        self.data[key] = payload

    async def load(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


class LocalFileStore(SnapshotBackend):
    """One JSON file per identity, written atomically."""

    name = "local"

    def __init__(self, cache_dir: str):
        self.cache_dir = cache_dir

    def path_for(self, key: str) -> str:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]
        return os.path.join(self.cache_dir, f"plot_{digest}.json")

    async def save(self, key: str, payload: str) -> None:
        path = self.path_for(key)
        try:
            os.makedirs(self.cache_dir, exist_ok=True)
            # Temp file in the same directory, then replace, so readers never see a partial file
            fd, tmp_path = tempfile.mkstemp(dir=self.cache_dir, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_path, path)
            except BaseException:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
                raise
        except OSError as e:
            raise PersistenceUnavailable(f"Local cache write failed: {e}") from e

    async def load(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as fh:
                return fh.read()
        except OSError as e:
            raise PersistenceUnavailable(f"Local cache read failed: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            os.unlink(self.path_for(key))
        except FileNotFoundError:
            pass


class PersistenceAdapter:
    """Best-effort snapshot save/load across backends in priority order."""

    def __init__(self, backends: Sequence[SnapshotBackend]):
        self.backends: List[SnapshotBackend] = list(backends)
        self._pending_saves: List[asyncio.Task] = []

    async def save(self, identity: Optional[StorageIdentity], snapshot: PlotSnapshot) -> int:
        """
        Write the snapshot to every available backend.

        Returns the number of backends written; 0 for an absent identity.
        """
        if identity is None:
            return 0

        payload = snapshot.to_json()
        written = 0
        for backend in self.backends:
            if not backend.is_available:
                continue
            try:
                await backend.save(identity.key, payload)
                written += 1
            except Exception as e:
                logger.warning(f"[save] {backend.name} save failed for {identity.key}: {e}")
        return written

    async def load(self, identity: Optional[StorageIdentity]) -> Optional[PlotSnapshot]:
        """Return the first snapshot found in priority order, or None."""
        if identity is None:
            return None

        for backend in self.backends:
            if not backend.is_available:
                continue
            try:
                payload = await backend.load(identity.key)
            except Exception as e:
                logger.warning(f"[load] {backend.name} load failed for {identity.key}: {e}")
                continue
            if not payload:
                continue
            try:
                snapshot = PlotSnapshot.model_validate_json(payload)
            except (ValidationError, json.JSONDecodeError, ValueError) as e:
                logger.warning(f"[load] {backend.name} returned an unreadable snapshot for {identity.key}: {e}")
                continue
            logger.debug(f"[load] Snapshot for {identity.key} loaded from {backend.name}")
            return snapshot
        return None

    def save_in_background(self, identity: Optional[StorageIdentity], snapshot: PlotSnapshot) -> Optional[asyncio.Task]:
        """Fire-and-forget save; call flush() to wait for outstanding writes."""
        if identity is None:
            return None
        self._pending_saves = [task for task in self._pending_saves if not task.done()]
        task = asyncio.ensure_future(self.save(identity, snapshot))
        self._pending_saves.append(task)
        return task

    async def flush(self) -> None:
        if self._pending_saves:
            await asyncio.gather(*self._pending_saves, return_exceptions=True)
            self._pending_saves = []
