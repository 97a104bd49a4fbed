"""In-memory TTL cache for display metrics.

One instance is created per application (see ``backend.main``) and handed to
routes through ``get_metrics_cache``.
"""

import math
import random
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable

from fastapi import Request

ACTIVE_USERS_KEY = 'active_users'


@dataclass
class CacheEntry:
    value: int
    expires_at: float


class MetricsCache:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = Lock()

    def set(self, key: str, value: int, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)

    def get(self, key: str) -> int | None:
        cached = self.get_with_expiry(key)
        return cached[0] if cached else None

    def get_with_expiry(self, key: str) -> tuple[int, int] | None:
        """Return ``(value, seconds_left)``, dropping the entry once it has expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            now = self._clock()
            if now > entry.expires_at:
                del self._entries[key]
                return None

            remaining = entry.expires_at - now
            return entry.value, max(0, math.ceil(remaining))

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


def generate_active_users(minimum: int, maximum: int) -> int:
    return random.randint(minimum, maximum)


def get_metrics_cache(request: Request) -> MetricsCache:
    return request.app.state.metrics_cache
