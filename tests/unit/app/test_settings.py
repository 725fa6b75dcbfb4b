from __future__ import annotations

import pytest

from admin_resources.app.env import Env, get_env, is_prod
from admin_resources.app.settings import ResourceSettings, get_resource_settings


@pytest.fixture(autouse=True)
def _fresh_caches():
    get_resource_settings.cache_clear()
    yield
    get_resource_settings.cache_clear()


class TestResourceSettings:
    def test_defaults(self):
        s = ResourceSettings()
        assert s.list_stale_after == 600.0
        assert s.detail_stale_after == 300.0
        assert s.retry_attempts == 1
        assert s.debounce_quiet_period == 0.3
        assert s.resolved_base_url == "http://default.localhost:8000/api/v1"

    def test_tenant_substitution(self):
        s = ResourceSettings(tenant_id="acme", api_version="v2")
        assert s.resolved_base_url == "http://acme.localhost:8000/api/v2"

    def test_fixed_url_without_version(self):
        s = ResourceSettings(api_url="https://api.example.com/", api_version="")
        assert s.resolved_base_url == "https://api.example.com"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("ADMIN_LIST_STALE_AFTER", "30")
        monkeypatch.setenv("ADMIN_RETRY_ATTEMPTS", "3")
        monkeypatch.setenv("ADMIN_API_TOKEN", "secret")

        s = get_resource_settings()

        assert s.list_stale_after == 30.0
        assert s.retry_attempts == 3
        assert s.api_token == "secret"

    def test_getter_ignores_none_overrides(self):
        s = get_resource_settings(api_token=None, tenant_id="beta")
        assert s.api_token is None
        assert s.tenant_id == "beta"

    def test_negative_retries_rejected(self):
        with pytest.raises(ValueError):
            ResourceSettings(retry_attempts=-1)


class TestEnv:
    def test_admin_env_wins(self, monkeypatch):
        monkeypatch.setenv("ADMIN_ENV", "production")
        monkeypatch.setenv("APP_ENV", "dev")
        assert get_env() is Env.PROD
        assert is_prod()

    def test_app_env_fallback(self, monkeypatch):
        monkeypatch.delenv("ADMIN_ENV", raising=False)
        monkeypatch.setenv("APP_ENV", "staging")
        assert get_env() is Env.TEST
        assert not is_prod()

    def test_unknown_or_unset_is_local(self, monkeypatch):
        monkeypatch.delenv("ADMIN_ENV", raising=False)
        monkeypatch.setenv("APP_ENV", "moon")
        assert get_env() is Env.LOCAL
        monkeypatch.delenv("APP_ENV")
        assert get_env() is Env.LOCAL

