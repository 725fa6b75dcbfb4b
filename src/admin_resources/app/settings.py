from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ResourceSettings(BaseSettings):
    """
    Resource client settings.

    Env support (prefix ADMIN_):
      ADMIN_API_URL, ADMIN_API_VERSION, ADMIN_TENANT_ID, ADMIN_API_TOKEN,
      ADMIN_LIST_STALE_AFTER, ADMIN_DETAIL_STALE_AFTER, ADMIN_RETRY_ATTEMPTS, ...
    Durations are seconds.
    """

    api_url: str = Field(default="http://{tenant_id}.localhost:8000/api")
    api_version: str = Field(default="/v1")
    tenant_id: str = Field(default="default")
    api_token: Optional[str] = Field(default=None)
    http_timeout: float = Field(default=30.0)

    list_stale_after: float = Field(default=600.0)
    detail_stale_after: float = Field(default=300.0)

    retry_attempts: int = Field(default=1, ge=0)
    retry_base_delay: float = Field(default=1.0, ge=0)
    retry_max_delay: float = Field(default=30.0, ge=0)

    debounce_quiet_period: float = Field(default=0.3, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="ADMIN_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def resolved_base_url(self) -> str:
        url = self.api_url
        if "{tenant_id}" in url:
            url = url.replace("{tenant_id}", self.tenant_id or "default")
        version = self.api_version or ""
        if version and not version.startswith("/"):
            version = "/" + version
        return url.rstrip("/") + version


@lru_cache
def get_resource_settings(**kwargs) -> ResourceSettings:
    # Only include kwargs that are not None, so defaults in ResourceSettings are used
    filtered = {k: v for k, v in kwargs.items() if v is not None}
    return ResourceSettings(**filtered)
