import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

LATEST_KEY = "latest"


def comic_key(comic_id: int) -> str:
    return f"comic-{comic_id}"


@dataclass
class CacheEntry:
    key: str
    value: Any
    fetched_at: float


class CacheStore:
    """In-memory map of key -> CacheEntry with a fixed freshness window.

    Entries are never evicted; a stale entry stays in place until the next
    successful fetch for its key overwrites it.
    """

    def __init__(self, ttl_seconds: float = 300, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def is_fresh(self, entry: CacheEntry, now: Optional[float] = None) -> bool:
        if now is None:
            now = self._clock()
        return now - entry.fetched_at < self.ttl_seconds

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def get(self, key: str) -> Optional[Any]:
        entry = self.get_entry(key)
        if entry is None or not self.is_fresh(entry):
            return None
        return entry.value

    def put(self, key: str, value: Any) -> CacheEntry:
        entry = CacheEntry(key=key, value=value, fetched_at=self._clock())
        with self._lock:
            self._entries[key] = entry
        return entry

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
