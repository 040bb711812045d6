"""In-memory cache for AI generation results."""
from __future__ import annotations

import hashlib
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_SECONDS = 5 * 60
DEFAULT_MAX_SIZE = 100


@dataclass(frozen=True)
class CacheEntry:
    response: str
    provider: str
    model: str
    stored_at: float


class ResponseCache:
    """Bounded, time-limited cache keyed on (user message, system prompt).

    Entries older than ``max_age`` are dropped on read. When full, the entry
    inserted first is evicted.
    """

    def __init__(
        self,
        max_age: float = DEFAULT_MAX_AGE_SECONDS,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_age = max_age
        self.max_size = max_size
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(message: str, system_prompt: str) -> str:
        content = f"{message}|{system_prompt}".lower()
        return hashlib.sha256(content.encode("utf-8")).hexdigest()

    def get(self, message: str, system_prompt: str) -> Optional[CacheEntry]:
        key = self._key(message, system_prompt)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.stored_at > self.max_age:
                del self._entries[key]
                return None
        logger.debug("Response cache hit")
        return entry

    def set(self, message: str, system_prompt: str, response: str, provider: str, model: str) -> None:
        key = self._key(message, system_prompt)
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self.max_size:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
            self._entries[key] = CacheEntry(response, provider, model, self._clock())
            size = len(self._entries)
        logger.debug("Response cached (%d/%d entries)", size, self.max_size)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict:
        with self._lock:
            return {"size": len(self._entries), "max_size": self.max_size, "max_age": self.max_age}


response_cache = ResponseCache()
