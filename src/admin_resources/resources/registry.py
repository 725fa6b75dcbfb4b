"""Per-entity configuration for the console's resources.

One generic client per entity, configured by data instead of one module per
entity.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

from admin_resources.cache.client import QueryClient
from admin_resources.cache.retry import RetryPolicy

from .client import ResourceClient, build_resource_client


@dataclass(frozen=True)
class EntityConfig:
    name: str
    label: str
    endpoint: str
    supports_restore: bool = False
    # False when the API returns records bare instead of {"data": ...}
    envelope: bool = True
    list_stale_after: Optional[float] = None
    detail_stale_after: Optional[float] = None
    retry: Optional[RetryPolicy] = None


ENTITIES: Dict[str, EntityConfig] = {
    cfg.name: cfg
    for cfg in (
        EntityConfig("clients", "Client", "/clients", supports_restore=True),
        EntityConfig("products", "Product", "/products"),
        EntityConfig("services", "Service", "/services"),
        EntityConfig("service_orders", "Service order", "/service-orders", detail_stale_after=300.0),
        EntityConfig("aircraft", "Aircraft", "/aircraft"),
        EntityConfig("categories", "Category", "/categories"),
        EntityConfig("service_objects", "Service object", "/service-objects", envelope=False),
        EntityConfig("partners", "Partner", "/partners", supports_restore=True),
        EntityConfig("financial_categories", "Financial category", "/financial/categories"),
    )
}


def get_entity(name: str) -> EntityConfig:
    try:
        return ENTITIES[name]
    except KeyError:
        raise KeyError(f"Unknown entity '{name}'. Known: {', '.join(sorted(ENTITIES))}") from None


TransportFactory = Callable[[EntityConfig], Any]


def build_client(
    config: EntityConfig,
    transport_factory: TransportFactory,
    *,
    query_client: Optional[QueryClient] = None,
) -> ResourceClient:
    return build_resource_client(
        config.name,
        transport_factory(config),
        label=config.label,
        query_client=query_client,
        list_stale_after=config.list_stale_after,
        detail_stale_after=config.detail_stale_after,
        retry=config.retry,
    )


def build_clients(
    transport_factory: TransportFactory,
    *,
    query_client: Optional[QueryClient] = None,
    entities: Optional[Iterable[EntityConfig]] = None,
) -> Dict[str, ResourceClient]:
    """Build every configured client, all sharing one query cache."""
    return {
        cfg.name: build_client(cfg, transport_factory, query_client=query_client)
        for cfg in (entities if entities is not None else ENTITIES.values())
    }


__all__ = [
    "EntityConfig",
    "ENTITIES",
    "get_entity",
    "build_client",
    "build_clients",
]
