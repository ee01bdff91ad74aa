"""Tests for tenant creation and lifecycle."""

import pytest
from sqlalchemy import select
from structlog.testing import capture_logs

from rentbase.core.context import RequestContext, context_scope
from rentbase.core.exceptions import (
    DuplicateEmail,
    DuplicateSlug,
    InvalidSlug,
    PermissionDenied,
    TenantNotFound,
    WeakPassword,
)
from rentbase.domain.entities.role import SystemRole
from rentbase.domain.entities.tenant import TenantStatus
from rentbase.domain.services.tenant_service import DEFAULT_ENABLED_MODULES, TenantService
from rentbase.infrastructure.notifications import Notification, Notifier
from rentbase.infrastructure.persistence.models import TenantModel, UserBusinessUnitModel


class RecordingNotifier(Notifier):
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[Notification] = []
        self.fail = fail

    async def send(self, notification: Notification) -> None:
        if self.fail:
            raise ConnectionError("mail relay unreachable")
        self.sent.append(notification)


class TestCreateTenant:
    @pytest.mark.asyncio
    async def test_creates_tenant_unit_and_owner(self, provisioned, platform_admin, password):
        notifier = RecordingNotifier()
        with context_scope(platform_admin):
            async with provisioned.session() as session:
                tenant, unit, owner = await TenantService(session, notifier).create_tenant(
                    "Acme Rentals",
                    "Owner@Acme-Rentals.com",
                    password,
                    owner_first_name="Ada",
                    vertical="equipment",
                )

        assert tenant.slug == "acme-rentals"
        assert tenant.status == TenantStatus.ACTIVE.value
        assert unit.tenant_id == tenant.id
        assert unit.slug == "acme-rentals-principal"
        assert unit.name == "Acme Rentals - Principal"
        assert unit.settings == {
            "enabledModules": list(DEFAULT_ENABLED_MODULES),
            "vertical": "equipment",
        }
        assert owner.email == "owner@acme-rentals.com"
        assert owner.tenant_id == tenant.id
        assert owner.password_hash != password

        with context_scope(RequestContext(user_id=owner.id, tenant_id=tenant.id)):
            async with provisioned.session() as session:
                assignments = (
                    (await session.execute(
                        select(UserBusinessUnitModel).where(
                            UserBusinessUnitModel.tenant_id == tenant.id
                        )
                    ))
                    .scalars()
                    .all()
                )
        assert [(a.user_id, a.business_unit_id, a.role_id) for a in assignments] == [
            (owner.id, unit.id, SystemRole.OWNER.role_id)
        ]
        assert notifier.sent[0].recipient == "owner@acme-rentals.com"
        assert notifier.sent[0].kind == "tenant.welcome"

    @pytest.mark.asyncio
    async def test_requires_platform_administrator(self, provisioned, password):
        with context_scope(RequestContext(user_id="owner", tenant_id="t1")):
            async with provisioned.session() as session:
                with pytest.raises(PermissionDenied):
                    await TenantService(session).create_tenant(
                        "Acme Rentals", "owner@acme-rentals.com", password
                    )

    @pytest.mark.asyncio
    async def test_duplicate_slug(self, tenant_factory):
        await tenant_factory("Acme Rentals")
        with pytest.raises(DuplicateSlug):
            await tenant_factory("Acme Rentals", owner_email="other@acme-rentals.com")

    @pytest.mark.asyncio
    async def test_duplicate_email_leaves_nothing_behind(self, tenant_factory, provisioned, platform_admin):
        await tenant_factory("Acme Rentals")
        with pytest.raises(DuplicateEmail):
            await tenant_factory("Beta Hire", owner_email="owner@acme-rentals.com")

        with context_scope(platform_admin):
            async with provisioned.session() as session:
                slugs = (await session.execute(select(TenantModel.slug))).scalars().all()
        assert slugs == ["acme-rentals"]

    @pytest.mark.asyncio
    async def test_weak_password(self, provisioned, platform_admin):
        with context_scope(platform_admin):
            async with provisioned.session() as session:
                with pytest.raises(WeakPassword):
                    await TenantService(session).create_tenant(
                        "Acme Rentals", "owner@acme-rentals.com", "short"
                    )

    @pytest.mark.asyncio
    async def test_invalid_slug(self, tenant_factory):
        with pytest.raises(InvalidSlug):
            await tenant_factory("Acme Rentals", slug="Not A Slug")

    @pytest.mark.asyncio
    async def test_failed_welcome_is_logged(self, provisioned, platform_admin, password):
        with context_scope(platform_admin):
            async with provisioned.session() as session:
                with capture_logs() as logs:
                    tenant, _, _ = await TenantService(
                        session, RecordingNotifier(fail=True)
                    ).create_tenant("Acme Rentals", "owner@acme-rentals.com", password)

        failures = [log for log in logs if log["event"] == "Welcome notification failed"]
        assert failures[0]["log_level"] == "error"
        assert failures[0]["created_tenant_id"] == tenant.id


class TestTenantLifecycle:
    @pytest.mark.asyncio
    async def test_suspend_and_cancel(self, tenant_factory, provisioned, platform_admin):
        tenant, _, _ = await tenant_factory()
        with context_scope(platform_admin):
            async with provisioned.session() as session:
                service = TenantService(session)
                suspended = await service.set_status(tenant.id, TenantStatus.SUSPENDED)
                assert suspended.status == "SUSPENDED"
                cancelled = await service.cancel_tenant(tenant.id)
                assert cancelled.status == "CANCELLED"

    @pytest.mark.asyncio
    async def test_update_merges_settings(self, tenant_factory, provisioned, platform_admin):
        tenant, _, _ = await tenant_factory()
        with context_scope(platform_admin):
            async with provisioned.session() as session:
                service = TenantService(session)
                await service.update_tenant(tenant.id, settings={"currency": "EUR"})
                updated = await service.update_tenant(tenant.id, plan="pro", settings={"locale": "es"})
        assert updated.plan == "pro"
        assert updated.settings == {"currency": "EUR", "locale": "es"}

    @pytest.mark.asyncio
    async def test_list_and_get(self, tenant_factory, provisioned, platform_admin):
        acme, _, _ = await tenant_factory("Acme Rentals")
        await tenant_factory("Beta Hire")
        with context_scope(platform_admin):
            async with provisioned.session() as session:
                service = TenantService(session)
                tenants, total = await service.list_tenants(search="beta")
                assert total == 1
                assert tenants[0].slug == "beta-hire"
                assert (await service.get_tenant(acme.id)).name == "Acme Rentals"
                with pytest.raises(TenantNotFound):
                    await service.get_tenant("missing")

    @pytest.mark.asyncio
    async def test_tenant_members_cannot_read_tenants(self, tenant_factory, provisioned):
        tenant, _, owner = await tenant_factory()
        with context_scope(RequestContext(user_id=owner.id, tenant_id=tenant.id)):
            async with provisioned.session() as session:
                with pytest.raises(PermissionDenied):
                    await TenantService(session).get_tenant(tenant.id)
