"""In-process response cache with freshness windows and tag invalidation."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

GLOBAL_TAG = "drupal"


def path_tag(path: str) -> str:
    return f"path:{path}"


@dataclass
class CacheEntry:
    value: Any
    expires_at: float
    tags: frozenset[str] = field(default_factory=frozenset)


class ResponseCache:
    """Thread-safe mapping of request keys to parsed backend payloads.

    Entries expire after their freshness window and can be dropped early by
    any of their tags. Only anonymous backend responses are ever stored here.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: Any, *, max_age: float, tags: Iterable[str] = ()) -> None:
        if max_age <= 0:
            return
        entry = CacheEntry(value=value, expires_at=self._clock() + max_age, tags=frozenset(tags))
        with self._lock:
            self._entries[key] = entry

    def invalidate_tags(self, tags: Iterable[str]) -> int:
        """Drop every entry carrying one of ``tags``; returns the number dropped."""

        wanted = set(tags)
        if not wanted:
            return 0
        with self._lock:
            stale = [key for key, entry in self._entries.items() if entry.tags & wanted]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
