from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from .models import JobPosting


@dataclass(frozen=True)
class CachedSession:
    """Full result list of one scrape session, kept for continuation pages."""

    session_id: str
    postings: tuple[JobPosting, ...]
    platform_stats: dict[str, int] = field(default_factory=dict)
    duplicates_filtered: int = 0
    stored_at: float = 0.0


class SessionCache:
    """
    In-process, TTL-bounded map of session id -> CachedSession.

    Entries expire `ttl` seconds after they are stored; a ttl of 0 disables
    caching entirely (every continuation re-scrapes). Expired entries are
    pruned lazily on access.
    """

    def __init__(self, ttl: float = 3600.0, *, clock: Callable[[], float] = time.monotonic):
        self.ttl = float(ttl)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, CachedSession] = {}

    def put(
        self,
        session_id: str,
        postings: list[JobPosting],
        platform_stats: dict[str, int],
        duplicates_filtered: int,
    ) -> None:
        if self.ttl <= 0 or not session_id:
            return
        entry = CachedSession(
            session_id=session_id,
            postings=tuple(postings),
            platform_stats=dict(platform_stats),
            duplicates_filtered=duplicates_filtered,
            stored_at=self._clock(),
        )
        with self._lock:
            self._prune_locked()
            self._entries[session_id] = entry

    def get(self, session_id: str | None) -> CachedSession | None:
        if not session_id or self.ttl <= 0:
            return None
        with self._lock:
            self._prune_locked()
            return self._entries.get(session_id)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            self._prune_locked()
            return len(self._entries)

    def _prune_locked(self) -> None:
        cutoff = self._clock() - self.ttl
        for key in [k for k, v in self._entries.items() if v.stored_at < cutoff]:
            del self._entries[key]
