from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any, Callable, Dict, Iterator, List, Optional

from .keys import KeyPrefix, QueryKey

logger = logging.getLogger(__name__)


class CacheStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class CacheEntry:
    """One cached read. Entries are immutable; every change is a new entry."""

    data: Any = None
    fetched_at: Optional[float] = None
    stale_after: float = 0.0
    status: CacheStatus = CacheStatus.IDLE
    in_flight_request_id: Optional[int] = None
    error: Optional[BaseException] = None

    @property
    def has_data(self) -> bool:
        return self.fetched_at is not None

    def is_fresh(self, now: float, stale_after: Optional[float] = None) -> bool:
        window = self.stale_after if stale_after is None else stale_after
        return (
            self.status is CacheStatus.SUCCESS
            and self.fetched_at is not None
            and now - self.fetched_at < window
        )

    def evolve(self, **changes: Any) -> "CacheEntry":
        return replace(self, **changes)


Subscriber = Callable[[QueryKey, Optional[CacheEntry]], None]


class CacheStore:
    """Process-wide keyed map of query key -> cache entry.

    Pure state container: no I/O and no timers. Every write synchronously
    notifies the subscribers of the affected key with the new entry (or
    ``None`` once purged).
    """

    def __init__(self) -> None:
        self._store: Dict[QueryKey, CacheEntry] = {}
        self._subs: Dict[QueryKey, List[Subscriber]] = {}
        self._purge_listeners: List[Callable[[QueryKey], None]] = []

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def get(self, key: QueryKey) -> Optional[CacheEntry]:
        return self._store.get(key)

    def set(self, key: QueryKey, entry: CacheEntry) -> None:
        self._store[key] = entry
        self._notify(key, entry)

    def keys(self, prefix: Optional[KeyPrefix] = None) -> Iterator[QueryKey]:
        for key in list(self._store):
            if prefix is None or key.matches(prefix):
                yield key

    def mark_stale(self, prefix: KeyPrefix) -> List[QueryKey]:
        """Force a refetch on next read for every key under ``prefix``.

        Data stays in place so it can still be served while the refetch runs.
        Returns the keys whose entry changed.
        """
        changed: List[QueryKey] = []
        for key in self.keys(prefix):
            entry = self._store[key]
            if entry.status is CacheStatus.IDLE and entry.in_flight_request_id is None:
                continue
            self.set(key, entry.evolve(status=CacheStatus.IDLE, in_flight_request_id=None))
            changed.append(key)
        if changed:
            logger.debug("Marked %d entries stale under %s", len(changed), prefix)
        return changed

    def purge(self, key: QueryKey) -> bool:
        existed = self._store.pop(key, None) is not None
        if existed:
            logger.debug("Purged cache entry", extra={"query_key": key})
            for listener in list(self._purge_listeners):
                listener(key)
            self._notify(key, None)
        return existed

    def clear(self) -> None:
        for key in list(self._store):
            self.purge(key)

    def on_purge(self, listener: Callable[[QueryKey], None]) -> None:
        """Register a hook run for every purged key, before subscribers hear of it."""
        self._purge_listeners.append(listener)

    def subscribe(self, key: QueryKey, callback: Subscriber) -> Callable[[], None]:
        self._subs.setdefault(key, []).append(callback)

        def unsubscribe() -> None:
            subs = self._subs.get(key)
            if not subs:
                return
            try:
                subs.remove(callback)
            except ValueError:
                return
            if not subs:
                del self._subs[key]

        return unsubscribe

    def subscriber_count(self, key: QueryKey) -> int:
        return len(self._subs.get(key, ()))

    def _notify(self, key: QueryKey, entry: Optional[CacheEntry]) -> None:
        for callback in list(self._subs.get(key, ())):
            try:
                callback(key, entry)
            except Exception:
                # A broken view must not stop the others from seeing the update
                logger.exception("Cache subscriber failed", extra={"query_key": key})


__all__ = ["CacheStatus", "CacheEntry", "CacheStore", "Subscriber"]
