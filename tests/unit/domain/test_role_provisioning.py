"""Tests for role and permission provisioning."""

import pytest
from sqlalchemy import func, select

from rentbase.core.context import RequestContext, context_scope
from rentbase.core.exceptions import (
    DuplicateRoleName,
    RoleInUse,
    RoleNotFound,
    SystemRoleProtected,
    UnknownPermission,
    UserNotFound,
)
from rentbase.domain.entities.role import PermissionKey, SystemRole
from rentbase.domain.services.business_unit_service import BusinessUnitService
from rentbase.domain.services.grant_cache import GrantCache
from rentbase.domain.services.permission_catalog import DEFAULT_CATALOG, system_role_permissions
from rentbase.domain.services.role_provisioning_service import RolePermissionProvisioner
from rentbase.infrastructure.persistence.models import PermissionModel, RoleModel
from rentbase.infrastructure.persistence.repositories import PermissionRepository


def _member(tenant_id: str, business_unit_id: str | None = None) -> RequestContext:
    return RequestContext(user_id="admin", tenant_id=tenant_id, business_unit_id=business_unit_id)


async def _role_keys(db, role_id: str) -> set[PermissionKey]:
    async with db.session() as session:
        return await PermissionRepository(session).get_role_permission_keys(role_id)


class TestSystemRoles:
    @pytest.mark.asyncio
    async def test_provisioning_is_idempotent(self, db):
        for _ in range(2):
            async with db.session() as session:
                await RolePermissionProvisioner(session).provision_system_roles()

        async with db.session() as session:
            roles = (await session.execute(select(RoleModel))).scalars().all()
            permission_count = await session.scalar(select(func.count()).select_from(PermissionModel))

        assert sorted(role.id for role in roles) == sorted(role.role_id for role in SystemRole)
        assert all(role.is_system and role.tenant_id is None for role in roles)
        assert permission_count == len(DEFAULT_CATALOG)
        assert await _role_keys(db, SystemRole.OWNER.role_id) == set(DEFAULT_CATALOG.keys)

    @pytest.mark.asyncio
    async def test_policy_sets_are_stored(self, provisioned):
        for role in SystemRole:
            expected = system_role_permissions(role, DEFAULT_CATALOG)
            assert await _role_keys(provisioned, role.role_id) == set(expected)

    @pytest.mark.asyncio
    async def test_seed_catalog_counts_entries(self, db):
        async with db.session() as session:
            assert await RolePermissionProvisioner(session).seed_permission_catalog() == len(
                DEFAULT_CATALOG
            )

    @pytest.mark.asyncio
    async def test_platform_level_assignment_replaces_set(self, provisioned):
        cache = GrantCache()
        cache.set("someone", "unit", object())
        async with provisioned.session() as session:
            keys = await RolePermissionProvisioner(session, cache=cache).assign_permission_set(
                SystemRole.VIEWER.role_id, ["assets:read", "assets:read", "clients:read"]
            )

        assert keys == {PermissionKey("assets", "read"), PermissionKey("clients", "read")}
        assert await _role_keys(provisioned, SystemRole.VIEWER.role_id) == keys
        assert cache.size() == 0

    @pytest.mark.asyncio
    async def test_unknown_permission_leaves_role_unchanged(self, provisioned):
        before = await _role_keys(provisioned, SystemRole.EMPLOYEE.role_id)
        async with provisioned.session() as session:
            with pytest.raises(UnknownPermission):
                await RolePermissionProvisioner(session).assign_permission_set(
                    SystemRole.EMPLOYEE.role_id, ["assets:read", "spaceships:launch"]
                )
        assert await _role_keys(provisioned, SystemRole.EMPLOYEE.role_id) == before

    @pytest.mark.asyncio
    async def test_malformed_permission_is_unknown(self, provisioned):
        async with provisioned.session() as session:
            with pytest.raises(UnknownPermission):
                await RolePermissionProvisioner(session).assign_permission_set(
                    SystemRole.EMPLOYEE.role_id, ["assets"]
                )

    @pytest.mark.asyncio
    async def test_missing_role(self, provisioned):
        async with provisioned.session() as session:
            with pytest.raises(RoleNotFound):
                await RolePermissionProvisioner(session).assign_permission_set(
                    "role-missing", ["assets:read"]
                )


class TestCustomRoles:
    @pytest.mark.asyncio
    async def test_create_and_replace(self, tenant_factory, provisioned):
        tenant, _, _ = await tenant_factory()
        async with provisioned.session() as session:
            provisioner = RolePermissionProvisioner(session)
            role = await provisioner.create_custom_role(
                tenant.id, "Yard crew", ["assets:read", "assets:update"], description="Yard"
            )
            await provisioner.assign_permission_set(role.id, ["assets:read"], tenant_id=tenant.id)

        assert role.tenant_id == tenant.id
        assert not role.is_system
        assert await _role_keys(provisioned, role.id) == {PermissionKey("assets", "read")}

    @pytest.mark.asyncio
    async def test_tenant_cannot_edit_system_role(self, tenant_factory, provisioned):
        tenant, _, _ = await tenant_factory()
        async with provisioned.session() as session:
            with pytest.raises(SystemRoleProtected):
                await RolePermissionProvisioner(session).assign_permission_set(
                    SystemRole.VIEWER.role_id, ["assets:read"], tenant_id=tenant.id
                )

    @pytest.mark.asyncio
    async def test_other_tenant_role_is_not_found(self, tenant_factory, provisioned):
        acme, _, _ = await tenant_factory("Acme Rentals")
        beta, _, _ = await tenant_factory("Beta Hire")
        async with provisioned.session() as session:
            provisioner = RolePermissionProvisioner(session)
            role = await provisioner.create_custom_role(acme.id, "Yard crew", ["assets:read"])
            role_id = role.id
            with pytest.raises(RoleNotFound):
                await provisioner.assign_permission_set(role_id, ["assets:create"], tenant_id=beta.id)

            with context_scope(_member(beta.id)):
                with pytest.raises(RoleNotFound):
                    await provisioner.delete_role(role_id)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["yard crew", "  YARD CREW ", "owner", "Viewer"])
    async def test_duplicate_names(self, tenant_factory, provisioned, name):
        tenant, _, _ = await tenant_factory()
        async with provisioned.session() as session:
            provisioner = RolePermissionProvisioner(session)
            await provisioner.create_custom_role(tenant.id, "Yard crew", [])
            with pytest.raises(DuplicateRoleName):
                await provisioner.create_custom_role(tenant.id, name, ["assets:read"])

    @pytest.mark.asyncio
    async def test_same_name_in_two_tenants(self, tenant_factory, provisioned):
        acme, _, _ = await tenant_factory("Acme Rentals")
        beta, _, _ = await tenant_factory("Beta Hire")
        async with provisioned.session() as session:
            provisioner = RolePermissionProvisioner(session)
            await provisioner.create_custom_role(acme.id, "Yard crew", [])
            await provisioner.create_custom_role(beta.id, "Yard crew", [])

    @pytest.mark.asyncio
    async def test_rename(self, tenant_factory, provisioned):
        tenant, _, _ = await tenant_factory()
        async with provisioned.session() as session:
            provisioner = RolePermissionProvisioner(session)
            role = await provisioner.create_custom_role(tenant.id, "Yard crew", [])
            await provisioner.create_custom_role(tenant.id, "Drivers", [])
            with context_scope(_member(tenant.id)):
                renamed = await provisioner.update_custom_role(role.id, name="Yard team")
                assert renamed.name == "Yard team"
                with pytest.raises(DuplicateRoleName):
                    await provisioner.update_custom_role(role.id, name="drivers")
                with pytest.raises(SystemRoleProtected):
                    await provisioner.update_custom_role(SystemRole.ADMIN.role_id, name="Boss")

    @pytest.mark.asyncio
    async def test_role_in_use_cannot_be_deleted(self, tenant_factory, add_member, provisioned):
        tenant, unit, _ = await tenant_factory()
        async with provisioned.session() as session:
            role = await RolePermissionProvisioner(session).create_custom_role(
                tenant.id, "Yard crew", ["assets:read"]
            )
        member = await add_member(tenant.id, unit.id, "crew@acme-rentals.com", role.id)

        with context_scope(_member(tenant.id)):
            async with provisioned.session() as session:
                with pytest.raises(RoleInUse):
                    await RolePermissionProvisioner(session).delete_role(role.id)

            async with provisioned.session() as session:
                await BusinessUnitService(session).remove_member(unit.id, member.id)

            async with provisioned.session() as session:
                await RolePermissionProvisioner(session).delete_role(role.id)
                assert await session.get(RoleModel, role.id) is None

    @pytest.mark.asyncio
    async def test_system_role_cannot_be_deleted(self, tenant_factory, provisioned):
        tenant, _, _ = await tenant_factory()
        with context_scope(_member(tenant.id)):
            async with provisioned.session() as session:
                with pytest.raises(SystemRoleProtected):
                    await RolePermissionProvisioner(session).delete_role(SystemRole.VIEWER.role_id)
        assert await _role_keys(provisioned, SystemRole.VIEWER.role_id)


class TestUserPermissions:
    @pytest.mark.asyncio
    async def test_sync_user_permissions(self, tenant_factory, add_member, provisioned):
        tenant, unit, _ = await tenant_factory()
        viewer = await add_member(tenant.id, unit.id, "viewer@acme-rentals.com")
        cache = GrantCache()
        cache.set(viewer.id, unit.id, object())

        with context_scope(_member(tenant.id)):
            async with provisioned.session() as session:
                provisioner = RolePermissionProvisioner(session, cache=cache)
                keys = await provisioner.sync_user_permissions(viewer.id, ["assets:create"])
                stored = await provisioner.permissions.get_user_permission_keys(tenant.id, viewer.id)

        assert keys == stored == {PermissionKey("assets", "create")}
        assert cache.get(viewer.id, unit.id) is None

    @pytest.mark.asyncio
    async def test_user_of_other_tenant(self, tenant_factory, provisioned):
        _, _, acme_owner = await tenant_factory("Acme Rentals")
        beta, _, _ = await tenant_factory("Beta Hire")
        with context_scope(_member(beta.id)):
            async with provisioned.session() as session:
                with pytest.raises(UserNotFound):
                    await RolePermissionProvisioner(session).sync_user_permissions(
                        acme_owner.id, ["assets:read"]
                    )
