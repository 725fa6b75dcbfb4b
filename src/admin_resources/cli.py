from __future__ import annotations

import asyncio
import json
from dataclasses import asdict
from typing import Any, Optional

import typer

from admin_resources.app.logging import setup_logging
from admin_resources.app.settings import ResourceSettings, get_resource_settings
from admin_resources.cache.client import QueryClient
from admin_resources.exceptions import ResourceError
from admin_resources.resources.http import build_http_client, http_transport_factory
from admin_resources.resources.registry import ENTITIES, build_client, get_entity

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Read console resources through the cached resource clients.",
)


def _settings(api_url: Optional[str], token: Optional[str], tenant: Optional[str]) -> ResourceSettings:
    return get_resource_settings(api_url=api_url, api_token=token, tenant_id=tenant)


def _entity(name: str):
    try:
        return get_entity(name.replace("-", "_"))
    except KeyError as exc:
        raise typer.BadParameter(str(exc.args[0]), param_hint="ENTITY") from None


def _dump(value: Any) -> None:
    if hasattr(value, "__dataclass_fields__"):
        value = asdict(value)
    typer.echo(json.dumps(value, indent=2, ensure_ascii=False, default=str))


async def _run(settings: ResourceSettings, config, call):
    async with build_http_client(settings) as http:
        query_client = QueryClient.from_settings(settings)
        client = build_client(config, http_transport_factory(http), query_client=query_client)
        return await call(client)


def _execute(settings: ResourceSettings, entity_name: str, call) -> None:
    config = _entity(entity_name)
    try:
        result = asyncio.run(_run(settings, config, call))
    except ResourceError as exc:
        typer.echo(f"{type(exc).__name__}: {exc.message}", err=True)
        raise typer.Exit(code=1)
    _dump(result)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Overrides ADMIN_LOG_LEVEL."),
):
    setup_logging(level=log_level)


@app.command("entities")
def entities():
    """List the configured entities and their endpoints."""
    for cfg in ENTITIES.values():
        restore = " (restore)" if cfg.supports_restore else ""
        typer.echo(f"{cfg.name}\t{cfg.endpoint}\t{cfg.label}{restore}")


@app.command("list")
def list_cmd(
    entity: str = typer.Argument(..., help="Entity name, e.g. clients or service-orders."),
    search: Optional[str] = typer.Option(None, "--search", help="Free-text search term."),
    page: Optional[int] = typer.Option(None, "--page", min=1),
    per_page: Optional[int] = typer.Option(None, "--per-page", min=1),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Overrides ADMIN_API_URL."),
    token: Optional[str] = typer.Option(None, "--token", help="Overrides ADMIN_API_TOKEN."),
    tenant: Optional[str] = typer.Option(None, "--tenant", help="Overrides ADMIN_TENANT_ID."),
):
    """Fetch one page of ENTITY as JSON."""
    params = {"page": page, "per_page": per_page}
    _execute(_settings(api_url, token, tenant), entity, lambda c: c.search(search, params))


@app.command("get")
def get_cmd(
    entity: str = typer.Argument(..., help="Entity name, e.g. clients."),
    id: str = typer.Argument(..., help="Record id."),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Overrides ADMIN_API_URL."),
    token: Optional[str] = typer.Option(None, "--token", help="Overrides ADMIN_API_TOKEN."),
    tenant: Optional[str] = typer.Option(None, "--tenant", help="Overrides ADMIN_TENANT_ID."),
):
    """Fetch a single ENTITY record by ID as JSON."""
    _execute(_settings(api_url, token, tenant), entity, lambda c: c.get_by_id(id))


if __name__ == "__main__":  # pragma: no cover
    app()
