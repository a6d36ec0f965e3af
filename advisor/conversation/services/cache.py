"""
Service: Cache backends

InMemoryTTLCache     thread-safe dict of key -> (deadline, value) with TTL
                     expiry and a max-entries bound (oldest deadline evicted).
FailSafeCache        wraps any Cache so that a missing or failing backend
                     behaves as a permanent cache miss.

Values are deep-copied on the way in and out so callers can never mutate
a cached entry in place.
"""

# Python Packages
import copy
import threading
import time
from typing import Any, Dict, Optional, Tuple

# Constants
from ...base import constants

# Logger
from ...util.logger import get_logger


logger = get_logger(__name__)





class InMemoryTTLCache:

    def __init__(self, max_entries: int = constants.CACHE_MAX_ENTRIES, default_ttl: int = 3600):
        self.max_entries = max(1, int(max_entries))
        self.default_ttl = default_ttl
        self._lock = threading.RLock()
        self._entries: Dict[str, Tuple[float, Any]] = {}



    def get(self, key: str) -> Optional[Any]:
        now = time.monotonic()
        with self._lock:
            cached = self._entries.get(key)
            if cached is None:
                return None
            deadline, value = cached
            if deadline <= now:
                self._entries.pop(key, None)
                return None
            return copy.deepcopy(value)



    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= 0:
            return

        deadline = time.monotonic() + ttl
        snapshot = copy.deepcopy(value)
        with self._lock:
            self._entries[key] = (deadline, snapshot)
            self._purge_expired()
            while len(self._entries) > self.max_entries:
                oldest_key = min(self._entries.items(), key = lambda item: item[1][0])[0]
                self._entries.pop(oldest_key, None)



    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)



    def clear(self) -> None:
        with self._lock:
            self._entries.clear()



    def __len__(self) -> int:
        with self._lock:
            self._purge_expired()
            return len(self._entries)



    def _purge_expired(self) -> None:
        now = time.monotonic()
        expired = [key for key, (deadline, _) in self._entries.items() if deadline <= now]
        for key in expired:
            self._entries.pop(key, None)





class FailSafeCache:
    """
    Cache adapter that never raises. With backend=None every lookup misses
    and every write is dropped.
    """

    def __init__(self, backend = None):
        self.backend = backend



    @property
    def enabled(self) -> bool:
        return self.backend is not None



    def get(self, key: str) -> Optional[Any]:
        if self.backend is None:
            return None
        try:
            return self.backend.get(key)
        except Exception as exc:
            logger.warning("Cache get failed, treating as miss", extra = {"payload": {"key": key, "error": str(exc)}})
            return None



    def set(self, key: str, value: Any, ttl: int) -> None:
        if self.backend is None:
            return
        try:
            self.backend.set(key, value, ttl)
        except Exception as exc:
            logger.warning("Cache set failed, value not cached", extra = {"payload": {"key": key, "error": str(exc)}})



    def clear(self) -> None:
        if self.backend is None:
            return
        try:
            self.backend.clear()
        except Exception as exc:
            logger.warning("Cache clear failed", extra = {"payload": {"error": str(exc)}})



    def size(self) -> int:
        if self.backend is None:
            return 0
        try:
            return len(self.backend)
        except Exception:
            return 0
