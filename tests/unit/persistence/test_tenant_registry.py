"""Unit tests for the tenant model registry."""

import pytest
from sqlalchemy import Column, MetaData, String, Table
from structlog.testing import capture_logs

from rentbase.core.exceptions import TenantRegistryError
from rentbase.infrastructure.persistence import models  # noqa: F401
from rentbase.infrastructure.persistence.database import Base
from rentbase.infrastructure.persistence.tenant_registry import (
    EnforcementStrategy,
    TenantModelRegistry,
    default_tenant_registry,
)


class TestTenantModelRegistry:
    def test_default_registry_matches_schema(self):
        default_tenant_registry().validate(Base.metadata)

    def test_enforcement_strategy(self):
        registry = default_tenant_registry()
        assert registry.enforcement_strategy("assets") == EnforcementStrategy.BUSINESS_UNIT
        assert registry.enforcement_strategy("users") == EnforcementStrategy.TENANT
        assert registry.enforcement_strategy("permissions") == EnforcementStrategy.GLOBAL
        assert registry.enforcement_strategy("roles") == EnforcementStrategy.SPECIAL
        assert registry.enforcement_strategy("rental_quotes") == EnforcementStrategy.UNREGISTERED

    def test_overlapping_categories_rejected(self):
        registry = TenantModelRegistry(
            tenant_scoped=frozenset({"users"}),
            global_tables=frozenset({"users"}),
        )
        with pytest.raises(TenantRegistryError):
            registry.validate()

    def test_business_unit_tables_must_be_tenant_scoped(self):
        registry = TenantModelRegistry(
            tenant_scoped=frozenset({"users"}),
            business_unit_scoped=frozenset({"assets"}),
        )
        with pytest.raises(TenantRegistryError):
            registry.validate()

    def test_missing_tenant_column_rejected(self):
        metadata = MetaData()
        Table("notes", metadata, Column("id", String, primary_key=True))
        registry = TenantModelRegistry(tenant_scoped=frozenset({"notes"}))
        with pytest.raises(TenantRegistryError):
            registry.validate(metadata)

    def test_unmapped_table_rejected(self):
        registry = TenantModelRegistry(tenant_scoped=frozenset({"ghosts"}))
        with pytest.raises(TenantRegistryError):
            registry.validate(MetaData())

    def test_unregistered_tables_are_reported(self):
        metadata = MetaData()
        Table("notes", metadata, Column("id", String, primary_key=True))
        with capture_logs() as logs:
            TenantModelRegistry(tenant_scoped=frozenset()).validate(metadata)
        assert logs[0]["event"] == "Table not registered with the tenant guard"
        assert logs[0]["table"] == "notes"
