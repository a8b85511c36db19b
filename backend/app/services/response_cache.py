import copy
import threading
import time
from typing import Any, Callable

try:
    from backend.app.config import CACHE_TTL_SECONDS
except ModuleNotFoundError:
    from app.config import CACHE_TTL_SECONDS


class ResponseCache:
    """
    In-memory key -> value store with a fixed TTL per entry.

    Expired entries are dropped lazily, on the first read at or after their
    expiry. Nothing sweeps them in the background and the store has no size
    cap, so keys that are never read again stay until overwritten.
    """

    def __init__(self, ttl_seconds: float = CACHE_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: str) -> Any | None:
        with self._lock:
            hit = self._entries.get(key)
            if hit is None:
                return None
            expires_at, value = hit
            if self._clock() >= expires_at:
                self._entries.pop(key, None)
                return None
        return copy.deepcopy(value)

    def set(self, key: str, value: Any) -> None:
        stored = copy.deepcopy(value)
        with self._lock:
            self._entries[key] = (self._clock() + self._ttl, stored)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
