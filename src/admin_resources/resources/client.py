"""Typed per-entity bundle of reads and writes over the shared query cache."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional

from admin_resources.cache.client import QueryClient, get_query_client
from admin_resources.cache.keys import KeyPrefix, QueryKey, QueryKind, detail_key, entity_prefix, list_key
from admin_resources.cache.mutation import Operation, build_action_request, build_request
from admin_resources.cache.retry import RetryPolicy
from admin_resources.cache.store import Subscriber
from admin_resources.exceptions import ConfigurationError

from .transport import Page, normalize_page, supports_restore


class _Disabled:
    """Result of a read that was not issued (e.g. ``get_by_id("")``)."""

    _instance: Optional["_Disabled"] = None

    def __new__(cls) -> "_Disabled":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "DISABLED"


DISABLED = _Disabled()


@dataclass(frozen=True)
class ResourceKeys:
    entity: str

    @property
    def prefix(self) -> tuple[str, ...]:
        return entity_prefix(self.entity)

    @property
    def lists(self) -> tuple[str, ...]:
        return entity_prefix(self.entity, QueryKind.LIST)

    def list(self, params: Optional[Mapping[str, Any]] = None) -> QueryKey:
        return list_key(self.entity, params)

    def detail(self, id: Any) -> QueryKey:
        return detail_key(self.entity, id)


@dataclass(frozen=True)
class ResourceClient:
    """
    Reads and writes for one entity, bound to its key namespace.

    Reads go through the shared ``QueryClient`` (cached, coalesced, retried);
    writes carry their invalidation footprint and report to the sink under
    ``label``.
    """

    entity: str
    label: str
    transport: Any
    query_client: QueryClient
    list_stale_after: Optional[float] = None
    detail_stale_after: Optional[float] = None
    retry: Optional[RetryPolicy] = None

    @property
    def keys(self) -> ResourceKeys:
        return ResourceKeys(self.entity)

    @property
    def supports_restore(self) -> bool:
        return supports_restore(self.transport)

    def _list_window(self) -> float:
        if self.list_stale_after is not None:
            return self.list_stale_after
        return self.query_client.list_stale_after

    def _detail_window(self) -> float:
        if self.detail_stale_after is not None:
            return self.detail_stale_after
        return self.query_client.detail_stale_after

    # Reads

    async def list(self, params: Optional[Mapping[str, Any]] = None) -> Page[Any]:
        query = dict(params or {})

        async def fetch() -> Page[Any]:
            return normalize_page(await self.transport.list(query))

        return await self.query_client.read(
            self.keys.list(query), fetch, self._list_window(), retry=self.retry
        )

    async def search(self, term: Optional[str], params: Optional[Mapping[str, Any]] = None) -> Page[Any]:
        query = dict(params or {})
        if term:
            query["search"] = term
        return await self.list(query)

    async def get_by_id(self, id: Any) -> Any:
        if not id:
            return DISABLED
        record_id = str(id)
        return await self.query_client.read(
            self.keys.detail(record_id),
            lambda: self.transport.get_by_id(record_id),
            self._detail_window(),
            retry=self.retry,
        )

    def peek_list(self, params: Optional[Mapping[str, Any]] = None) -> Optional[Page[Any]]:
        return self.query_client.peek(self.keys.list(params))

    def peek(self, id: Any) -> Any:
        if not id:
            return DISABLED
        return self.query_client.peek(self.keys.detail(id))

    def subscribe(self, key: QueryKey, callback: Subscriber) -> Callable[[], None]:
        return self.query_client.subscribe(key, callback)

    # Writes

    async def _mutate(self, operation: Operation, *, target_id: Any = None, payload: Any = None) -> Any:
        request = build_request(
            self.entity,
            operation,
            label=self.label,
            target_id=target_id,
            payload=payload,
        )
        return await self.query_client.mutate(request, self.transport)

    async def create(self, data: Any) -> Any:
        return await self._mutate(Operation.CREATE, payload=data)

    async def update(self, id: Any, data: Any) -> Any:
        return await self._mutate(Operation.UPDATE, target_id=id, payload=data)

    async def delete(self, id: Any) -> None:
        await self._mutate(Operation.DELETE, target_id=id)

    async def restore(self, id: Any) -> Any:
        return await self._mutate(Operation.RESTORE, target_id=id)

    async def action(
        self,
        name: str,
        id: Any = None,
        payload: Any = None,
        *,
        method: str = "POST",
        seeds_detail: bool = False,
        also_invalidates: Iterable[KeyPrefix] = (),
    ) -> Any:
        """Run an entity-specific write such as ``PUT /service-orders/{id}/status``.

        Invalidates like ``update``. Pass ``seeds_detail=True`` when the
        endpoint returns the updated record so the detail is served without a
        refetch.
        """
        target = None if id is None else str(id)

        async def call(transport: Any) -> Any:
            run = getattr(transport, "action", None)
            if not callable(run):
                raise ConfigurationError(f"{self.label} does not support custom actions")
            return await run(name, target, payload, method=method)

        request = build_action_request(
            self.entity,
            name,
            call,
            label=self.label,
            target_id=target,
            payload=payload,
            seeds_detail=seeds_detail,
            also_invalidates=also_invalidates,
        )
        return await self.query_client.mutate(request, self.transport)


def build_resource_client(
    entity_name: str,
    transport: Any,
    *,
    label: Optional[str] = None,
    query_client: Optional[QueryClient] = None,
    list_stale_after: Optional[float] = None,
    detail_stale_after: Optional[float] = None,
    retry: Optional[RetryPolicy] = None,
) -> ResourceClient:
    if not entity_name:
        raise ValueError("entity_name is required")
    return ResourceClient(
        entity=entity_name,
        label=label or entity_name.replace("_", " ").replace("-", " ").capitalize(),
        transport=transport,
        query_client=query_client or get_query_client(),
        list_stale_after=list_stale_after,
        detail_stale_after=detail_stale_after,
        retry=retry,
    )


__all__ = ["DISABLED", "ResourceKeys", "ResourceClient", "build_resource_client"]
