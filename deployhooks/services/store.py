"""Key-value stores with per-key expiry.

The deployment cache is written against `KeyValueStore` so it can run on the
database in production and on a plain dict in tests.
"""

import json
import threading
import time
from typing import Any, Callable, Optional, Protocol

from sqlalchemy.orm import sessionmaker

from deployhooks.logging_config import get_logger
from deployhooks.models.cache_entry import CacheEntry

logger = get_logger(__name__)

Clock = Callable[[], float]


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None: ...

    def delete(self, key: str) -> bool: ...


class MemoryStore:
    """In-process store. Expired entries are dropped on read."""

    def __init__(self, clock: Clock = time.time):
        self._clock = clock
        self._data: dict[str, tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and expires_at <= self._clock():
                del self._data[key]
                return None
        return json.loads(value)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        expires_at = self._clock() + ttl if ttl else None
        # Serialize so callers never share a mutable object with the store
        serialized = json.dumps(value)
        with self._lock:
            self._data[key] = (serialized, expires_at)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None


class DatabaseStore:
    """Store backed by the `cache_entries` table, one session per call."""

    def __init__(self, session_factory: sessionmaker, clock: Clock = time.time):
        self._session_factory = session_factory
        self._clock = clock

    def get(self, key: str) -> Optional[Any]:
        db = self._session_factory()
        try:
            entry = db.get(CacheEntry, key)
            if entry is None:
                return None
            if entry.expires_at is not None and entry.expires_at <= self._clock():
                db.delete(entry)
                db.commit()
                logger.debug("[Store] Evicted expired entry", cache_key=key)
                return None
            return json.loads(entry.value)
        finally:
            db.close()

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        expires_at = self._clock() + ttl if ttl else None
        db = self._session_factory()
        try:
            # merge() is an upsert on the primary key
            db.merge(CacheEntry(key=key, value=json.dumps(value), expires_at=expires_at))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def delete(self, key: str) -> bool:
        db = self._session_factory()
        try:
            entry = db.get(CacheEntry, key)
            if entry is None:
                return False
            db.delete(entry)
            db.commit()
            return True
        finally:
            db.close()
