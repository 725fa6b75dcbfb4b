from __future__ import annotations

import pytest

from admin_resources.resources.registry import ENTITIES, EntityConfig, build_client, build_clients, get_entity
from tests.conftest import InMemoryTransport, RestorableTransport


def _factory(config: EntityConfig):
    return RestorableTransport() if config.supports_restore else InMemoryTransport()


def test_known_entities():
    assert {"clients", "products", "services", "service_orders", "partners"} <= set(ENTITIES)
    assert get_entity("service_orders").endpoint == "/service-orders"
    assert get_entity("clients").supports_restore is True
    assert get_entity("service_objects").envelope is False


def test_unknown_entity_lists_known_ones():
    with pytest.raises(KeyError) as exc_info:
        get_entity("invoices")
    assert "clients" in str(exc_info.value)


def test_build_client_uses_config(query_client):
    client = build_client(get_entity("partners"), _factory, query_client=query_client)
    assert client.label == "Partner"
    assert client.supports_restore is True


def test_build_clients_share_one_cache(query_client):
    built = build_clients(_factory, query_client=query_client)
    assert set(built) == set(ENTITIES)
    assert all(c.query_client is query_client for c in built.values())


def test_entity_windows_override_client_defaults(query_client):
    config = EntityConfig("audits", "Audit", "/audits", list_stale_after=5.0)
    client = build_clients(_factory, query_client=query_client, entities=[config])["audits"]
    assert client._list_window() == 5.0
    assert client._detail_window() == query_client.detail_stale_after
