from .client import DISABLED, ResourceClient, ResourceKeys, build_resource_client
from .http import HttpTransport, RestorableHttpTransport, build_http_client, http_transport_factory
from .registry import ENTITIES, EntityConfig, build_client, build_clients, get_entity
from .transport import BackendTransport, Page, normalize_page, supports_restore

__all__ = [
    # Client factory
    "DISABLED",
    "ResourceClient",
    "ResourceKeys",
    "build_resource_client",
    # Transport interface
    "BackendTransport",
    "Page",
    "normalize_page",
    "supports_restore",
    # Registry
    "EntityConfig",
    "ENTITIES",
    "get_entity",
    "build_client",
    "build_clients",
    # HTTP
    "HttpTransport",
    "RestorableHttpTransport",
    "build_http_client",
    "http_transport_factory",
]
