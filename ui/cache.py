"""Time-based cache for rendered pages with explicit per-path invalidation."""

from __future__ import annotations

from dataclasses import dataclass
import threading
import time
from typing import Callable


@dataclass
class _Entry:
    body: str
    stored_at: float


class PageCache:
    """Serve a rendered page until it is ``ttl_seconds`` old or invalidated."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def get(self, path: str) -> str | None:
        with self._lock:
            entry = self._entries.get(path)
            if entry is None:
                return None
            if self._clock() - entry.stored_at >= self.ttl_seconds:
                self._entries.pop(path, None)
                return None
            return entry.body

    def put(self, path: str, body: str) -> None:
        if self.ttl_seconds <= 0:
            return
        with self._lock:
            self._entries[path] = _Entry(body=body, stored_at=self._clock())

    def get_or_render(self, path: str, render: Callable[[], str]) -> str:
        cached = self.get(path)
        if cached is not None:
            return cached
        body = render()
        self.put(path, body)
        return body

    def invalidate(self, path: str) -> bool:
        with self._lock:
            return self._entries.pop(path, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
