# pokedex/storage.py
"""
Durable key-value storage used by the record cache.

Values are plain strings. Both backends can be given a ``max_entries``
quota; writing a new key past the quota raises ``StorageWriteFailure``,
the same way a browser's local storage refuses writes once full.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


class StorageWriteFailure(Exception):
    """A durable storage write was refused (quota exceeded, disk error...)."""


class KeyValueStorage:
    """Interface of a namespaced string store."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError

    def delete_many(self, keys: Iterable[str]) -> None:
        for key in list(keys):
            self.delete(key)

    def flush(self) -> None:
        """Persist pending writes. Backends that write through do nothing."""


class MemoryStorage(KeyValueStorage):
    def __init__(self, max_entries: Optional[int] = None):
        self._data: Dict[str, str] = {}
        self.max_entries = max_entries

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        _check_quota(self._data, key, self.max_entries)
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class JsonFileStorage(KeyValueStorage):
    """All entries kept in one JSON object on disk.

    Every read and write goes through a ``threading.Lock``. The file is
    read on first access; afterwards the in-process copy is
    authoritative. Mutations only mark it dirty and ``flush()`` rewrites
    the file, so a batch of writes costs a single rewrite.
    """

    def __init__(self, path: Path, max_entries: Optional[int] = None):
        self.path = Path(path)
        self.max_entries = max_entries
        self._lock = threading.Lock()
        # serialises file rewrites without holding up readers
        self._write_lock = threading.Lock()
        self._data: Optional[Dict[str, str]] = None
        self._dirty = False

    def _load(self) -> Dict[str, str]:
        if self._data is not None:
            return self._data
        data: Dict[str, str] = {}
        if self.path.exists():
            try:
                with self.path.open("r", encoding="utf-8") as f:
                    raw = json.load(f)
                if isinstance(raw, dict):
                    data = {str(k): v for k, v in raw.items() if isinstance(v, str)}
            except (OSError, ValueError) as exc:
                logger.warning("Ignoring unreadable cache file %s: %s", self.path, exc)
        self._data = data
        return data

    def _flush(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
        except OSError as exc:
            raise StorageWriteFailure(f"Cannot write {self.path}: {exc}") from exc

    @property
    def dirty(self) -> bool:
        return self._dirty

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            _check_quota(data, key, self.max_entries)
            data[key] = value
            self._dirty = True

    def delete(self, key: str) -> None:
        self.delete_many([key])

    def delete_many(self, keys: Iterable[str]) -> None:
        with self._lock:
            data = self._load()
            for key in list(keys):
                if data.pop(key, None) is not None:
                    self._dirty = True

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._load())

    def flush(self) -> None:
        """Rewrite the file if anything changed since the last flush.

        On failure the pending changes stay marked dirty and
        ``StorageWriteFailure`` is raised.
        """
        with self._write_lock:
            with self._lock:
                if not self._dirty:
                    return
                snapshot = dict(self._load())
                self._dirty = False
            try:
                self._flush(snapshot)
            except StorageWriteFailure:
                with self._lock:
                    self._dirty = True
                raise
            logger.debug("Wrote %s cache entries to %s", len(snapshot), self.path)


def _check_quota(data: Dict[str, str], key: str, max_entries: Optional[int]) -> None:
    if max_entries is not None and key not in data and len(data) >= max_entries:
        raise StorageWriteFailure(f"Storage quota of {max_entries} entries exceeded")
