from __future__ import annotations

import time
from typing import Any, Callable, Optional

from admin_resources.app.settings import ResourceSettings, get_resource_settings
from admin_resources.notify import LoggingNotificationSink, NotificationSink

from .keys import KeyPrefix, QueryKey
from .mutation import MutationExecutor, MutationRequest
from .query import Clock, Fetcher, QueryExecutor
from .retry import RetryPolicy, Sleep
from .store import CacheEntry, CacheStore, Subscriber


class QueryClient:
    """Owns the process-wide cache and the executors that touch it.

    Build one per process with ``get_query_client()``; tests build their own
    instance (or call ``reset_query_client()``) so no state leaks between them.
    """

    def __init__(
        self,
        *,
        store: Optional[CacheStore] = None,
        sink: Optional[NotificationSink] = None,
        retry: Optional[RetryPolicy] = None,
        list_stale_after: float = 600.0,
        detail_stale_after: float = 300.0,
        clock: Clock = time.monotonic,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.store = store or CacheStore()
        self.queries = QueryExecutor(self.store, retry=retry, clock=clock, sleep=sleep)
        self.mutations = MutationExecutor(self.store, sink, self.queries)
        self.list_stale_after = list_stale_after
        self.detail_stale_after = detail_stale_after

    @classmethod
    def from_settings(
        cls,
        settings: Optional[ResourceSettings] = None,
        *,
        sink: Optional[NotificationSink] = None,
        **kwargs: Any,
    ) -> "QueryClient":
        s = settings or get_resource_settings()
        retry = RetryPolicy(
            retries=s.retry_attempts,
            base_delay=s.retry_base_delay,
            max_delay=s.retry_max_delay,
        )
        return cls(
            sink=sink or LoggingNotificationSink(),
            retry=retry,
            list_stale_after=s.list_stale_after,
            detail_stale_after=s.detail_stale_after,
            **kwargs,
        )

    @property
    def sink(self) -> NotificationSink:
        return self.mutations.sink

    async def read(
        self,
        key: QueryKey,
        fetcher: Fetcher,
        stale_after: float,
        *,
        retry: Optional[RetryPolicy] = None,
    ) -> Any:
        return await self.queries.read(key, fetcher, stale_after, retry=retry)

    def peek(self, key: QueryKey) -> Any:
        return self.queries.peek(key)

    def entry(self, key: QueryKey) -> Optional[CacheEntry]:
        return self.store.get(key)

    async def mutate(self, request: MutationRequest, transport: Any) -> Any:
        return await self.mutations.mutate(request, transport)

    def set_data(self, key: QueryKey, data: Any) -> None:
        self.queries.set_data(key, data)

    def subscribe(self, key: QueryKey, callback: Subscriber) -> Callable[[], None]:
        return self.store.subscribe(key, callback)

    def invalidate(self, prefix: KeyPrefix) -> list[QueryKey]:
        return self.store.mark_stale(prefix)

    def remove(self, key: QueryKey) -> bool:
        return self.store.purge(key)

    def clear(self) -> None:
        self.store.clear()


_client: Optional[QueryClient] = None


def get_query_client() -> QueryClient:
    """Process-wide client, created from settings on first use."""
    global _client
    if _client is None:
        _client = QueryClient.from_settings()
    return _client


def set_query_client(client: QueryClient) -> QueryClient:
    global _client
    _client = client
    return client


def reset_query_client() -> None:
    global _client
    if _client is not None:
        _client.clear()
    _client = None


__all__ = [
    "QueryClient",
    "get_query_client",
    "set_query_client",
    "reset_query_client",
]
