"""REST transport over ``httpx``.

Talks to the console API the way the web client does: JSON in and out,
bearer auth, ``{"data": ...}`` envelopes, and list endpoints whose paging
shape varies per resource.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from admin_resources.app.settings import ResourceSettings, get_resource_settings
from admin_resources.exceptions import TransientError, error_for_status

from .registry import EntityConfig, TransportFactory
from .transport import Page, normalize_page

logger = logging.getLogger(__name__)


def build_http_client(
    settings: Optional[ResourceSettings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    s = settings or get_resource_settings()
    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    if s.api_token:
        headers["Authorization"] = f"Bearer {s.api_token}"
    return httpx.AsyncClient(
        base_url=s.resolved_base_url,
        headers=headers,
        timeout=s.http_timeout,
        transport=transport,
    )


def clean_params(params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Drop None and empty-string values; the API treats them as absent."""
    if not params:
        return {}
    return {k: v for k, v in params.items() if v is not None and v != ""}


class HttpTransport:
    def __init__(self, client: httpx.AsyncClient, config: EntityConfig):
        self._client = client
        self.config = config

    @property
    def endpoint(self) -> str:
        return self.config.endpoint

    def _url(self, id: Optional[str] = None, suffix: str = "") -> str:
        url = self.endpoint
        if id is not None:
            url = f"{url}/{id}"
        return url + suffix

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            raise TransientError(str(exc) or type(exc).__name__) from exc

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            raise error_for_status(response.status_code, body, reason=response.reason_phrase)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _unwrap(self, body: Any) -> Any:
        if self.config.envelope and isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    async def list(self, params: Optional[Mapping[str, Any]] = None) -> Page[Any]:
        body = await self._request("GET", self._url(), params=clean_params(params))
        return normalize_page(body)

    async def get_by_id(self, id: str) -> Any:
        return self._unwrap(await self._request("GET", self._url(id)))

    async def create(self, data: Any) -> Any:
        return self._unwrap(await self._request("POST", self._url(), json=data))

    async def update(self, id: str, data: Any) -> Any:
        return self._unwrap(await self._request("PUT", self._url(id), json=data))

    async def delete(self, id: str) -> None:
        await self._request("DELETE", self._url(id))

    async def action(self, name: str, id: Optional[str] = None, data: Any = None, *, method: str = "POST") -> Any:
        """Call ``{endpoint}/{id}/{name}``, e.g. ``PUT /service-orders/7/status``."""
        kwargs: Dict[str, Any] = {} if data is None else {"json": data}
        return self._unwrap(await self._request(method.upper(), self._url(id, f"/{name}"), **kwargs))


class RestorableHttpTransport(HttpTransport):
    """Transport for entities with soft delete."""

    async def restore(self, id: str) -> Any:
        return self._unwrap(await self._request("PUT", self._url(id, "/restore")))


def http_transport_factory(client: httpx.AsyncClient) -> TransportFactory:
    def factory(config: EntityConfig) -> HttpTransport:
        cls = RestorableHttpTransport if config.supports_restore else HttpTransport
        return cls(client, config)

    return factory


__all__ = [
    "HttpTransport",
    "RestorableHttpTransport",
    "build_http_client",
    "clean_params",
    "http_transport_factory",
]
