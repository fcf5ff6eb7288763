"""
Two-tier cache for assembled Pokémon records.

The first tier is an unbounded in-memory dict living as long as the
process. The second is a durable key-value storage holding one JSON
entry per id, stamped with the time it was written and valid for
``ttl`` seconds (seven days by default). Expired or unreadable durable
entries are deleted when they are read.

Durable writes are best effort: when the storage refuses a write the
record stays cached in memory, the failure is logged and counted, and
the caller never sees it. Storages that batch their writes persist them
on ``flush()``, which fails the same quiet way.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from pydantic import ValidationError

from ..storage import KeyValueStorage, MemoryStorage
from .errors import StorageWriteFailure
from .schemas import CacheStats, Pokemon


logger = logging.getLogger(__name__)

CACHE_NAMESPACE = "pokemon_cache_v1"
CACHE_TTL_SECONDS = 7 * 24 * 60 * 60


@dataclass(frozen=True)
class WriteOutcome:
    """Result of a durable write attempt."""

    ok: bool
    error: Optional[StorageWriteFailure] = None


class RecordStore:
    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        namespace: str = CACHE_NAMESPACE,
        ttl: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.storage = storage if storage is not None else MemoryStorage()
        self.namespace = namespace
        self.ttl = ttl
        self._clock = clock
        self._memory: Dict[int, Pokemon] = {}
        self._write_failures = 0

    def _key(self, pokemon_id: int) -> str:
        return f"{self.namespace}_{pokemon_id}"

    def _owns(self, key: str) -> bool:
        return key.startswith(f"{self.namespace}_")

    def get(self, pokemon_id: int) -> Optional[Pokemon]:
        """Return the cached record or ``None`` when absent or expired."""
        record = self._memory.get(pokemon_id)
        if record is not None:
            return record

        key = self._key(pokemon_id)
        raw = self.storage.get(key)
        if raw is None:
            return None
        try:
            entry = json.loads(raw)
            timestamp = float(entry["timestamp"])
            record = Pokemon.model_validate(entry["data"])
        except (ValueError, KeyError, TypeError, ValidationError) as exc:
            logger.warning("Dropping unreadable cache entry %s: %s", key, exc)
            self._evict(key)
            return None

        if self._clock() - timestamp > self.ttl:
            logger.debug("Cache entry %s expired", key)
            self._evict(key)
            return None

        self._memory[pokemon_id] = record
        return record

    def _evict(self, key: str) -> None:
        try:
            self.storage.delete(key)
        except StorageWriteFailure as exc:
            logger.warning("Could not evict cache entry %s: %s", key, exc)

    def put(self, pokemon_id: int, record: Pokemon) -> None:
        self._memory[pokemon_id] = record
        outcome = self._persist(pokemon_id, record)
        if not outcome.ok:
            self._write_failures += 1
            logger.warning(
                "Failed to cache Pokemon %s durably, keeping it in memory only: %s",
                pokemon_id,
                outcome.error,
            )

    def _persist(self, pokemon_id: int, record: Pokemon) -> WriteOutcome:
        payload = json.dumps(
            {"data": record.model_dump(mode="json"), "timestamp": self._clock()}
        )
        try:
            self.storage.set(self._key(pokemon_id), payload)
        except StorageWriteFailure as exc:
            return WriteOutcome(ok=False, error=exc)
        return WriteOutcome(ok=True)

    def clear(self) -> None:
        """Empty the memory tier and every durable key in this namespace."""
        self._memory.clear()
        self.storage.delete_many([k for k in self.storage.keys() if self._owns(k)])
        self.flush()

    def flush(self) -> None:
        """Write pending durable entries out; a refused write is logged and counted."""
        try:
            self.storage.flush()
        except StorageWriteFailure as exc:
            self._write_failures += 1
            logger.warning("Failed to persist the record cache, entries stay in memory: %s", exc)

    def stats(self) -> CacheStats:
        return CacheStats(
            memory_count=len(self._memory),
            durable_count=sum(1 for k in self.storage.keys() if self._owns(k)),
            write_failures=self._write_failures,
        )
