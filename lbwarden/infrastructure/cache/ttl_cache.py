"""
TTL Cache

Architectural Intent:
- Shields the remote API from redundant lookups across reconciliation passes
- Entries expire a fixed TTL after insertion; expiry is passive (checked on
  read, never swept)
- A hit is returned verbatim, without re-validation against the remote

Design Decisions:
- No size bound: keys are bounded by the number of cloud resources this
  controller touches, not by request volume
- A single lock guards the store so passes running in threads and passes
  running on the event loop can share one instance
- The clock is injectable so expiry can be tested without sleeping
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable
import logging
import threading
import time

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60.0


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    expires_at: float


class TTLCache:
    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ValueError(f"TTL must be positive, got {ttl}")
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: Any) -> None:
        entry = CacheEntry(key=key, value=value, expires_at=self._clock() + self.ttl)
        with self._lock:
            self._entries[key] = entry

    def get(self, key: str) -> tuple[Any, bool]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None, False
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                logger.debug("Cache entry expired: %s", key)
                return None, False
            return entry.value, True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
