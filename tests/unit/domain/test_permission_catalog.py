"""Unit tests for the permission catalog and system role policy."""

import pytest

from rentbase.domain.entities.role import PermissionKey, PermissionScope, SystemRole
from rentbase.domain.services.permission_catalog import (
    DEFAULT_CATALOG,
    CatalogEntry,
    PermissionCatalog,
    system_role_permissions,
)


class TestPermissionKey:
    def test_parse(self):
        key = PermissionKey.parse("assets:create")
        assert key == PermissionKey("assets", "create")
        assert str(key) == "assets:create"

    @pytest.mark.parametrize("value", ["assets", ":read", "assets:", "a:b:c"])
    def test_parse_rejects_malformed(self, value):
        with pytest.raises(ValueError):
            PermissionKey.parse(value)


class TestSystemRole:
    def test_hierarchy(self):
        assert SystemRole.OWNER.outranks(SystemRole.ADMIN)
        assert SystemRole.MANAGER.outranks(SystemRole.EMPLOYEE)
        assert not SystemRole.VIEWER.outranks(SystemRole.EMPLOYEE)
        assert [role.rank for role in SystemRole] == [5, 4, 3, 2, 1]

    def test_stable_ids(self):
        assert SystemRole.OWNER.role_id == "role-owner"
        assert SystemRole.from_role_id("role-viewer") is SystemRole.VIEWER
        assert SystemRole.from_role_id("custom") is None

    def test_system_names_case_insensitive(self):
        assert SystemRole.is_system_name(" admin ")
        assert not SystemRole.is_system_name("Warehouse lead")


class TestCatalog:
    def test_contains_crud_and_extended_actions(self):
        assert DEFAULT_CATALOG.contains("assets", "create")
        assert DEFAULT_CATALOG.contains("quotations", "approve")
        assert not DEFAULT_CATALOG.contains("assets", "approve")
        assert not DEFAULT_CATALOG.contains("spaceships", "read")

    def test_scopes(self):
        assert DEFAULT_CATALOG.get(PermissionKey("users", "read")).scope == PermissionScope.TENANT
        assert DEFAULT_CATALOG.get(PermissionKey("assets", "read")).scope == PermissionScope.BUSINESS_UNIT

    def test_unknown(self):
        keys = {PermissionKey("assets", "read"), PermissionKey("assets", "fly")}
        assert DEFAULT_CATALOG.unknown(keys) == {PermissionKey("assets", "fly")}

    def test_duplicate_entries_rejected(self):
        entry = CatalogEntry(PermissionKey("assets", "read"), PermissionScope.BUSINESS_UNIT, "Read assets")
        with pytest.raises(ValueError):
            PermissionCatalog([entry, entry])


class TestSystemRolePolicy:
    def test_owner_gets_whole_catalog(self):
        assert system_role_permissions(SystemRole.OWNER) == DEFAULT_CATALOG.keys

    def test_higher_roles_hold_everything_lower_roles_hold(self):
        roles = list(SystemRole)
        for higher, lower in zip(roles, roles[1:]):
            assert system_role_permissions(lower) <= system_role_permissions(higher), (higher, lower)

    def test_viewer_is_read_only(self):
        assert {key.action for key in system_role_permissions(SystemRole.VIEWER)} == {"read"}

    def test_admin_manages_users_but_not_roles(self):
        admin = system_role_permissions(SystemRole.ADMIN)
        assert PermissionKey("users", "delete") in admin
        assert PermissionKey("roles", "read") in admin
        assert PermissionKey("roles", "update") not in admin

    def test_policy_restricted_to_catalog(self):
        small = PermissionCatalog(
            [CatalogEntry(PermissionKey("assets", "read"), PermissionScope.BUSINESS_UNIT, "Read assets")]
        )
        assert system_role_permissions(SystemRole.VIEWER, small) == {PermissionKey("assets", "read")}
