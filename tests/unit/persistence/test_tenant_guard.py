"""Tests for the tenant-scoping data access guard."""

import uuid

import pytest
from sqlalchemy import and_, bindparam, func, insert, not_, or_, select, update
from sqlalchemy.orm import aliased
from structlog.testing import capture_logs

from rentbase.core.context import RequestContext, context_scope
from rentbase.core.exceptions import ContextUnavailable, CrossTenantAccess, MissingTenantFilter
from rentbase.infrastructure.persistence.database import DatabaseManager
from rentbase.infrastructure.persistence.models import (
    AssetModel,
    BusinessUnitModel,
    PermissionModel,
    UserBusinessUnitModel,
    UserModel,
)
from rentbase.infrastructure.persistence.tenant_guard import (
    SKIP_OPTION,
    TenantGuard,
    collect_criteria,
    system_access,
)
from rentbase.infrastructure.persistence.tenant_registry import default_tenant_registry


def _member(tenant_id: str, business_unit_id: str | None = None) -> RequestContext:
    return RequestContext(user_id="member", tenant_id=tenant_id, business_unit_id=business_unit_id)


class TestCriteriaCollection:
    def test_equality_and_in(self):
        statement = select(AssetModel).where(
            AssetModel.tenant_id == "t1",
            AssetModel.business_unit_id.in_(["bu1", "bu2"]),
        )
        criteria = collect_criteria(statement.whereclause)
        assert criteria[("assets", "tenant_id")] == ["t1"]
        assert criteria[("assets", "business_unit_id")] == ["bu1", "bu2"]

    def test_reversed_operands(self):
        statement = select(UserModel).where(bindparam("tenant", "t1") == UserModel.tenant_id)
        assert collect_criteria(statement.whereclause)[("users", "tenant_id")] == ["t1"]

    def test_column_comparisons_are_ignored(self):
        statement = select(UserModel).where(UserModel.tenant_id == UserModel.id)
        assert ("users", "tenant_id") not in collect_criteria(statement.whereclause)

    def test_only_top_level_and_terms_count(self):
        clause = and_(
            UserModel.email == "ana@acme-rentals.com",
            or_(UserModel.tenant_id == "t1", UserModel.tenant_id.is_not(None)),
            not_(UserModel.tenant_id == "t2"),
        )
        criteria = collect_criteria(clause)
        assert criteria[("users", "email")] == ["ana@acme-rentals.com"]
        assert ("users", "tenant_id") not in criteria

    def test_aliases_are_keyed_separately(self):
        other = aliased(UserModel, name="other_users")
        criteria = collect_criteria(other.tenant_id == "t1")
        assert criteria[("other_users", "tenant_id")] == ["t1"]
        assert ("users", "tenant_id") not in criteria


class TestStrictGuard:
    @pytest.mark.asyncio
    async def test_no_context_raises(self, session):
        with pytest.raises(ContextUnavailable):
            await session.execute(select(AssetModel).where(AssetModel.tenant_id == "t1"))

    @pytest.mark.asyncio
    async def test_missing_tenant_filter_raises(self, session):
        with context_scope(_member("t1")):
            with pytest.raises(MissingTenantFilter) as exc_info:
                await session.execute(select(UserModel))
        assert exc_info.value.table == "users"
        assert exc_info.value.operation == "select"

    @pytest.mark.asyncio
    async def test_filter_on_other_tenant_raises(self, session):
        with context_scope(_member("t1")):
            with pytest.raises(CrossTenantAccess):
                await session.execute(select(UserModel).where(UserModel.tenant_id == "t2"))

    @pytest.mark.asyncio
    async def test_in_list_with_other_tenant_raises(self, session):
        with context_scope(_member("t1")):
            with pytest.raises(CrossTenantAccess):
                await session.execute(
                    select(UserModel).where(UserModel.tenant_id.in_(["t1", "t2"]))
                )

    @pytest.mark.asyncio
    async def test_filtered_select_runs(self, session):
        with context_scope(_member("t1")):
            result = await session.execute(select(UserModel).where(UserModel.tenant_id == "t1"))
            assert result.scalars().all() == []

    @pytest.mark.asyncio
    async def test_joined_tenant_table_is_checked(self, session):
        with context_scope(_member("t1")):
            with pytest.raises(MissingTenantFilter):
                await session.execute(
                    select(PermissionModel.id).join(
                        UserModel, UserModel.email == PermissionModel.resource
                    )
                )

    @pytest.mark.asyncio
    async def test_bulk_update_without_filter_raises(self, session):
        with context_scope(_member("t1")):
            with pytest.raises(MissingTenantFilter) as exc_info:
                await session.execute(update(UserModel).values(first_name="Ana"))
        assert exc_info.value.operation == "update"

    @pytest.mark.asyncio
    async def test_business_unit_mismatch_raises(self, session):
        with context_scope(_member("t1", "bu1")):
            with pytest.raises(CrossTenantAccess):
                await session.execute(
                    select(AssetModel).where(
                        AssetModel.tenant_id == "t1",
                        AssetModel.business_unit_id == "bu2",
                    )
                )

    @pytest.mark.asyncio
    async def test_global_tables_need_no_context(self, session):
        result = await session.execute(select(PermissionModel))
        assert result.scalars().all() == []

    @pytest.mark.asyncio
    async def test_superadmin_may_address_any_tenant(self, session):
        with context_scope(RequestContext(user_id="root", is_superadmin=True)):
            await session.execute(select(UserModel).where(UserModel.tenant_id == "t2"))
            with pytest.raises(MissingTenantFilter):
                await session.execute(select(UserModel))

    @pytest.mark.asyncio
    async def test_filter_inside_or_raises(self, session):
        with context_scope(_member("t1")):
            with pytest.raises(MissingTenantFilter):
                await session.execute(
                    select(UserModel).where(
                        or_(UserModel.tenant_id == "t1", UserModel.tenant_id.is_not(None))
                    )
                )

    @pytest.mark.asyncio
    async def test_filter_only_in_scalar_subquery_raises(self, session):
        tenant_status = select(UserModel.status).where(UserModel.tenant_id == "t1")
        with context_scope(_member("t1")):
            with pytest.raises(MissingTenantFilter):
                await session.execute(
                    select(UserModel).where(UserModel.status == tenant_status.scalar_subquery())
                )

    @pytest.mark.asyncio
    async def test_unfiltered_in_subquery_raises(self, session):
        with context_scope(_member("t1")):
            with pytest.raises(MissingTenantFilter) as exc_info:
                await session.execute(
                    select(UserModel).where(
                        UserModel.tenant_id == "t1",
                        UserModel.id.in_(select(UserBusinessUnitModel.user_id)),
                    )
                )
        assert exc_info.value.table == "user_business_units"

    @pytest.mark.asyncio
    async def test_alias_needs_its_own_filter(self, session):
        other = aliased(UserModel)
        statement = (
            select(UserModel.id)
            .join(other, other.email == UserModel.email)
            .where(UserModel.tenant_id == "t1")
        )
        with context_scope(_member("t1")):
            with pytest.raises(MissingTenantFilter):
                await session.execute(statement)
            result = await session.execute(statement.where(other.tenant_id == "t1"))
            assert result.all() == []

    @pytest.mark.asyncio
    async def test_filtered_subquery_runs(self, session):
        tenant_users = select(UserModel).where(UserModel.tenant_id == "t1").subquery()
        with context_scope(_member("t1")):
            result = await session.execute(select(func.count()).select_from(tenant_users))
            assert result.scalar_one() == 0

    @pytest.mark.asyncio
    async def test_combined_filters_run(self, session):
        with context_scope(_member("t1")):
            result = await session.execute(
                select(UserModel).where(
                    and_(UserModel.tenant_id == "t1", UserModel.status == "active"),
                    or_(UserModel.first_name == "Ana", UserModel.last_name == "Ana"),
                )
            )
            assert result.scalars().all() == []


class TestGuardBypass:
    @pytest.mark.asyncio
    async def test_system_access(self, session):
        with system_access("listing every user"):
            result = await session.execute(select(UserModel))
            assert result.scalars().all() == []
        with pytest.raises(ContextUnavailable):
            await session.execute(select(UserModel))

    @pytest.mark.asyncio
    async def test_execution_option(self, session):
        result = await session.execute(
            select(UserModel).execution_options(**{SKIP_OPTION: True})
        )
        assert result.scalars().all() == []


class TestFlushChecks:
    @pytest.mark.asyncio
    async def test_insert_for_other_tenant_raises(self, session):
        with context_scope(_member("t1")):
            session.add(AssetModel(tenant_id="t2", business_unit_id="bu", name="Crane"))
            with pytest.raises(CrossTenantAccess):
                await session.flush()
        await session.rollback()

    @pytest.mark.asyncio
    async def test_insert_without_tenant_raises(self, session):
        with context_scope(_member("t1")):
            session.add(BusinessUnitModel(name="Depot", slug="depot", settings={}))
            with pytest.raises(MissingTenantFilter):
                await session.flush()
        await session.rollback()

    @pytest.mark.asyncio
    async def test_insert_without_context_raises(self, session):
        session.add(BusinessUnitModel(tenant_id="t1", name="Depot", slug="depot", settings={}))
        with pytest.raises(ContextUnavailable):
            await session.flush()
        await session.rollback()

    @pytest.mark.asyncio
    async def test_insert_into_other_business_unit_raises(self, session):
        with context_scope(_member("t1", "bu1")):
            session.add(AssetModel(tenant_id="t1", business_unit_id="bu2", name="Crane"))
            with pytest.raises(CrossTenantAccess):
                await session.flush()
        await session.rollback()

    @pytest.mark.asyncio
    async def test_moving_a_row_to_another_tenant_raises(self, tenant_factory, provisioned):
        tenant, _, owner = await tenant_factory()
        async with provisioned.session() as session:
            with context_scope(_member(tenant.id)):
                user = (
                    await session.execute(
                        select(UserModel).where(
                            UserModel.tenant_id == tenant.id, UserModel.id == owner.id
                        )
                    )
                ).scalar_one()
                user.tenant_id = "t2"
                with pytest.raises(CrossTenantAccess):
                    await session.flush()
            await session.rollback()


class TestBulkInsertChecks:
    @staticmethod
    def _user_values(tenant_id: str | None, email: str) -> dict:
        return {
            "id": str(uuid.uuid4()),
            "tenant_id": tenant_id,
            "email": email,
            "password_hash": "not-a-real-hash",
        }

    @pytest.mark.asyncio
    async def test_inline_values_for_context_tenant_run(self, tenant_factory, provisioned):
        tenant, _, _ = await tenant_factory()
        async with provisioned.session() as session:
            with context_scope(_member(tenant.id)):
                await session.execute(
                    insert(UserModel).values(**self._user_values(tenant.id, "yard@acme-rentals.com"))
                )
                count = await session.scalar(
                    select(func.count())
                    .select_from(UserModel)
                    .where(UserModel.tenant_id == tenant.id)
                )
            assert count == 2
            await session.rollback()

    @pytest.mark.asyncio
    async def test_inline_values_for_other_tenant_raise(self, session):
        with context_scope(_member("t1")):
            with pytest.raises(CrossTenantAccess):
                await session.execute(
                    insert(UserModel).values(**self._user_values("t2", "yard@beta-hire.com"))
                )

    @pytest.mark.asyncio
    async def test_inline_values_without_tenant_raise(self, session):
        with context_scope(_member("t1")):
            with pytest.raises(MissingTenantFilter):
                await session.execute(
                    insert(UserModel).values(**self._user_values(None, "yard@acme-rentals.com"))
                )

    @pytest.mark.asyncio
    async def test_parameter_rows_are_checked(self, session):
        rows = [
            self._user_values("t1", "a@acme-rentals.com"),
            self._user_values("t2", "b@beta-hire.com"),
        ]
        with context_scope(_member("t1")):
            with pytest.raises(CrossTenantAccess):
                await session.execute(insert(UserModel), rows)


class TestPermissiveGuard:
    @pytest.mark.asyncio
    async def test_missing_filter_is_logged_and_runs(self, settings, db):
        permissive = DatabaseManager(
            settings,
            engine=db.engine,
            tenant_guard=TenantGuard(default_tenant_registry(), "permissive"),
        )
        async with permissive.session() as session:
            with context_scope(_member("t1")):
                with capture_logs() as logs:
                    result = await session.execute(select(UserModel))
                    assert result.scalars().all() == []
                assert any(
                    log["event"] == "Tenant-scoped statement without tenant filter"
                    and log["log_level"] == "warning"
                    for log in logs
                )
                with pytest.raises(CrossTenantAccess):
                    await session.execute(select(UserModel).where(UserModel.tenant_id == "t2"))

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            TenantGuard(default_tenant_registry(), "off")
