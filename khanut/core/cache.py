"""
khanut/core/cache.py
═══════════════════════════════════════════════════════════════════════════
In-memory TTL cache for analytics responses.
  • One TTLCache is built at startup and handed to the services that use it
  • Expiry is lazy: an entry is checked (and dropped) when it is read
  • An entry is valid while  now - timestamp <= expires_in
  • put() always replaces → last write for a key wins
  • All access goes through a threading lock
═══════════════════════════════════════════════════════════════════════════
"""

import time
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

from khanut.core.config import DEFAULT_TTL_MS


def _now_ms() -> int:
    return int(time.time() * 1000)


def cache_key(metric: str, business_id: str, period: Optional[str] = None) -> str:
    """'revenue', 'abc123', 'week' → 'revenue_abc123_week'"""
    if period:
        return f"{metric}_{business_id}_{period}"
    return f"{metric}_{business_id}"


@dataclass
class CacheEntry:
    data:       Any
    timestamp:  int   # ms since epoch
    expires_in: int   # ms

    def is_valid(self, now: int) -> bool:
        return now - self.timestamp <= self.expires_in


class TTLCache:
    def __init__(self, clock: Callable[[], int] = _now_ms):
        self._store: dict[str, CacheEntry] = {}
        self._lock  = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Optional[Any]:
        """Return the cached payload, or None if missing or expired."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if not entry.is_valid(self._clock()):
                del self._store[key]
                return None
            return entry.data

    def put(self, key: str, data: Any, expires_in: int = DEFAULT_TTL_MS) -> None:
        with self._lock:
            self._store[key] = CacheEntry(data=data, timestamp=self._clock(), expires_in=expires_in)

    def sweep(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        with self._lock:
            now = self._clock()
            stale = [k for k, e in self._store.items() if not e.is_valid(now)]
            for k in stale:
                del self._store[k]
            return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def summary(self) -> dict:
        """Metadata only, safe to expose in /health."""
        with self._lock:
            now = self._clock()
            return {
                k: {"age_ms": now - e.timestamp, "expires_in_ms": e.expires_in}
                for k, e in self._store.items()
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
