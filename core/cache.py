"""Tag-invalidated TTL cache for read endpoints.

The cache is an explicit collaborator: the app owns one instance on
``app.state.cache`` and routers receive it through ``get_cache``. Mutating
services call ``invalidate`` with the tags of whatever they touched.
"""
from __future__ import annotations

import threading
import time
from typing import Any, Callable, Hashable, Iterable, Optional

from fastapi import Request

TIMESHEETS_TAG = "timesheets"


def shift_tag(shift_id: int) -> str:
    return f"shift:{shift_id}"


def job_tag(job_id: int) -> str:
    return f"job:{job_id}"


def cache_key(entity: str, filters: dict, actor_id: Optional[int]) -> tuple:
    return (entity, tuple(sorted(filters.items())), actor_id)


class TaggedCache:
    def __init__(self, ttl_seconds: float = 30, *, clock: Callable[[], float] = time.monotonic):
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[Hashable, tuple[float, Any, frozenset[str]]] = {}

    def get(self, key: Hashable, default: Any = None) -> Any:
        with self._lock:
            hit = self._entries.get(key)
            if hit is None:
                return default
            expires_at, value, _ = hit
            if expires_at <= self._clock():
                del self._entries[key]
                return default
            return value

    def set(self, key: Hashable, value: Any, *, tags: Iterable[str] = ()) -> None:
        if self._ttl <= 0:
            return
        with self._lock:
            self._entries[key] = (self._clock() + self._ttl, value, frozenset(tags))

    def get_or_set(self, key: Hashable, factory: Callable[[], Any], *, tags: Iterable[str] = ()) -> Any:
        marker = object()
        value = self.get(key, marker)
        if value is marker:
            value = factory()
            self.set(key, value, tags=tags)
        return value

    def invalidate(self, *tags: str) -> int:
        """Drop every entry carrying any of ``tags``; returns how many went."""
        wanted = set(tags)
        with self._lock:
            stale = [k for k, (_, _, entry_tags) in self._entries.items() if entry_tags & wanted]
            for k in stale:
                del self._entries[k]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def invalidate_shift(cache: Optional[TaggedCache], shift) -> None:
    if cache is None or shift is None:
        return
    cache.invalidate(shift_tag(shift.id), job_tag(shift.job_id), TIMESHEETS_TAG)


def get_cache(request: Request) -> TaggedCache:
    return request.app.state.cache
