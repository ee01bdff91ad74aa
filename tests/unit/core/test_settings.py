"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from rentbase.core.config import DEFAULT_SECRET_KEY, Settings


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestSettings:
    def test_defaults(self):
        settings = _settings()
        assert settings.tenant_guard_mode == "strict"
        assert settings.tenant_header == "X-Tenant-Id"
        assert settings.business_unit_header == "X-Business-Unit-Id"
        assert settings.trusted_context_paths == ["/api/v1/system"]
        assert settings.permission_cache_ttl_seconds == 300
        assert settings.uses_sqlite is True

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("RENTBASE_TENANT_GUARD_MODE", "permissive")
        assert _settings().tenant_guard_mode == "permissive"

    def test_unknown_guard_mode_rejected(self):
        with pytest.raises(ValidationError):
            _settings(tenant_guard_mode="off")

    def test_trusted_paths_comma_separated(self):
        settings = _settings(trusted_context_paths="/api/v1/system, /internal")
        assert settings.trusted_context_paths == ["/api/v1/system", "/internal"]

    def test_root_trusted_path_rejected(self):
        with pytest.raises(ValidationError):
            _settings(trusted_context_paths=["/"])

    def test_relative_trusted_path_rejected(self):
        with pytest.raises(ValidationError):
            _settings(trusted_context_paths=["api/v1/system"])

    def test_production_requires_secret_key(self):
        with pytest.raises(ValidationError):
            _settings(environment="production", secret_key=DEFAULT_SECRET_KEY)
        assert _settings(environment="production", secret_key="x" * 40).is_production

    def test_sqlite_rejects_multiple_workers(self):
        with pytest.raises(ValidationError):
            _settings(workers=4)
        settings = _settings(workers=4, database_url="postgresql+asyncpg://u:p@localhost/rentbase")
        assert settings.workers == 4
