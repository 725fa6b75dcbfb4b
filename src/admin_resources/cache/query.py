"""Read path: fresh-cache hits, request coalescing and retried fetches."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from admin_resources.exceptions import classify_error

from .keys import QueryKey
from .retry import RetryPolicy, Sleep, run_with_retry
from .store import CacheEntry, CacheStatus, CacheStore

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]
Clock = Callable[[], float]


@dataclass
class _InFlight:
    request_id: int
    future: "asyncio.Future[Any]"


class QueryExecutor:
    """Resolves reads against a ``CacheStore``.

    Concurrent readers of the same key await the same future, so a burst of
    reads costs one transport call. Readers are shielded from the fetch, so a
    reader that gets cancelled (its view went away) leaves the fetch running
    for everybody else.

    A read that arrives after the entry was marked stale does not join the
    fetch already running: that fetch was sent before the write and may carry
    pre-write data. It dispatches a new one instead, so two fetches for one key
    can overlap for a moment. Only the newest may settle the entry; older
    responses are dropped by request id. Purging a key or seeding it with
    ``set_data`` likewise retires every fetch sent before.
    """

    def __init__(
        self,
        store: CacheStore,
        *,
        retry: Optional[RetryPolicy] = None,
        clock: Clock = time.monotonic,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.store = store
        self.retry = retry or RetryPolicy()
        self._clock = clock
        self._sleep = sleep
        self._last_id = 0
        self._inflight: Dict[QueryKey, _InFlight] = {}
        # fetches started and not yet finished, per key
        self._outstanding: Dict[QueryKey, int] = {}
        # responses with an id at or below this floor are ignored, per key
        self._applied: Dict[QueryKey, int] = {}
        store.on_purge(self._on_purge)

    def peek(self, key: QueryKey) -> Any:
        entry = self.store.get(key)
        return entry.data if entry is not None else None

    def is_fetching(self, key: QueryKey) -> bool:
        return key in self._inflight

    async def read(
        self,
        key: QueryKey,
        fetcher: Fetcher,
        stale_after: float,
        *,
        retry: Optional[RetryPolicy] = None,
    ) -> Any:
        entry = self.store.get(key)
        if entry is not None and entry.is_fresh(self._clock(), stale_after):
            logger.debug("Cache hit", extra={"query_key": key})
            return entry.data

        inflight = self._inflight.get(key)
        if (
            inflight is not None
            and entry is not None
            and entry.in_flight_request_id == inflight.request_id
        ):
            logger.debug("Joining in-flight fetch", extra={"query_key": key, "request_id": inflight.request_id})
            return await asyncio.shield(inflight.future)

        return await asyncio.shield(self._dispatch(key, fetcher, stale_after, retry or self.retry))

    def _dispatch(
        self,
        key: QueryKey,
        fetcher: Fetcher,
        stale_after: float,
        retry: RetryPolicy,
    ) -> "asyncio.Future[Any]":
        self._last_id += 1
        request_id = self._last_id
        self._outstanding[key] = self._outstanding.get(key, 0) + 1
        entry = self.store.get(key) or CacheEntry(stale_after=stale_after)
        self.store.set(
            key,
            entry.evolve(
                status=CacheStatus.LOADING,
                in_flight_request_id=request_id,
                stale_after=stale_after,
            ),
        )
        logger.info("Fetching", extra={"query_key": key, "request_id": request_id})

        future = asyncio.ensure_future(self._fetch(key, fetcher, request_id, retry))
        self._inflight[key] = _InFlight(request_id, future)
        future.add_done_callback(lambda f: self._forget(key, request_id, f))
        return future

    def _forget(self, key: QueryKey, request_id: int, future: "asyncio.Future[Any]") -> None:
        if not future.cancelled():
            # mark retrieved; readers that are still around get it via shield
            future.exception()
        current = self._inflight.get(key)
        if current is not None and current.request_id == request_id:
            del self._inflight[key]

        remaining = self._outstanding.get(key, 0) - 1
        if remaining > 0:
            self._outstanding[key] = remaining
            return
        self._outstanding.pop(key, None)
        if key not in self.store:
            self._applied.pop(key, None)

    def _on_purge(self, key: QueryKey) -> None:
        if key in self._outstanding:
            # fetches sent before the purge must not resurrect the entry
            self._applied[key] = self._last_id
        else:
            self._applied.pop(key, None)

    def set_data(self, key: QueryKey, data: Any) -> None:
        """Write ``data`` as the fresh value of ``key``, retiring older fetches."""
        entry = self.store.get(key) or CacheEntry()
        self._applied[key] = self._last_id
        self.store.set(
            key,
            entry.evolve(
                data=data,
                fetched_at=self._clock(),
                status=CacheStatus.SUCCESS,
                in_flight_request_id=None,
                error=None,
            ),
        )

    async def _fetch(self, key: QueryKey, fetcher: Fetcher, request_id: int, retry: RetryPolicy) -> Any:
        log_extra = {"query_key": key, "request_id": request_id}
        try:
            data = await run_with_retry(fetcher, retry, sleep=self._sleep, log_extra=log_extra)
        except asyncio.CancelledError:
            self._apply_failure(key, request_id, None)
            raise
        except Exception as exc:
            error = classify_error(exc)
            self._apply_failure(key, request_id, error)
            logger.error("Fetch failed: %s", error.message, extra=log_extra)
            if error is exc:
                raise
            raise error from exc
        self._apply_success(key, request_id, data)
        return data

    def _apply_success(self, key: QueryKey, request_id: int, data: Any) -> None:
        entry = self.store.get(key)
        if entry is None:
            # purged while in flight (e.g. the record was deleted)
            logger.debug("Dropping response for purged key", extra={"query_key": key, "request_id": request_id})
            return
        if request_id <= self._applied.get(key, 0):
            logger.debug("Dropping superseded response", extra={"query_key": key, "request_id": request_id})
            return
        self._applied[key] = request_id

        if entry.in_flight_request_id == request_id:
            new_entry = entry.evolve(
                data=data,
                fetched_at=self._clock(),
                status=CacheStatus.SUCCESS,
                in_flight_request_id=None,
                error=None,
            )
        else:
            # Invalidated or superseded after dispatch: keep the newer status so
            # the next read still refetches.
            new_entry = entry.evolve(data=data, fetched_at=self._clock(), error=None)
        self.store.set(key, new_entry)

    def _apply_failure(self, key: QueryKey, request_id: int, error: Optional[BaseException]) -> None:
        entry = self.store.get(key)
        if entry is None or entry.in_flight_request_id != request_id:
            return
        if error is None:
            self.store.set(key, entry.evolve(status=CacheStatus.IDLE, in_flight_request_id=None))
            return
        self.store.set(
            key,
            entry.evolve(status=CacheStatus.ERROR, in_flight_request_id=None, error=error),
        )

__all__ = ["QueryExecutor", "Fetcher", "Clock"]
