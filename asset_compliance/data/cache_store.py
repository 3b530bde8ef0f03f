"""
Cache store collaborator
Key-value store with per-entry TTL sitting in front of the system of record.

Implementations may raise on any call; callers in the business layer treat
those failures as non-fatal.
"""

import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple


class CacheStore(ABC):
    """Interface to the key-value cache"""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the raw cached value or None on a miss"""
        pass

    @abstractmethod
    def set(self, key: str, raw: Any, ttl_seconds: int) -> None:
        """Store a raw value that expires after ttl_seconds"""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key; removing a missing key is not an error"""
        pass


class RedisCacheStore(CacheStore):
    """
    Cache store backed by a redis client.

    The client is built and closed by the host application (see create_app);
    this class only adapts it to the CacheStore interface.
    """

    def __init__(self, client):
        self.client = client

    def get(self, key):
        return self.client.get(key)

    def set(self, key, raw, ttl_seconds):
        self.client.setex(key, ttl_seconds, raw)

    def delete(self, key):
        self.client.delete(key)


class InMemoryCacheStore(CacheStore):
    """
    Process-local cache store with lazy expiry.

    Used for development and tests when no redis server is configured.
    """

    def __init__(self, clock=time.monotonic):
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key):
        with self._lock:
            hit = self._entries.get(key)
            if hit is None:
                return None
            value, expires_at = hit
            if self._clock() > expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key, raw, ttl_seconds):
        with self._lock:
            self._entries[key] = (raw, self._clock() + ttl_seconds)

    def delete(self, key):
        with self._lock:
            self._entries.pop(key, None)

    def keys(self):
        """Keys currently held, including ones that have expired but not been read"""
        with self._lock:
            return set(self._entries)
