"""Tests for resolving the principal from a bearer token."""

import pytest
from starlette.datastructures import Headers

from rentbase.core.context import context_scope
from rentbase.domain.entities.principal import GlobalRole
from rentbase.domain.entities.role import SystemRole
from rentbase.domain.entities.tenant import TenantStatus
from rentbase.domain.services.superadmin_service import SuperadminService
from rentbase.domain.services.tenant_service import TenantService
from rentbase.infrastructure.auth.authenticator import AuthenticationError, Authenticator
from rentbase.infrastructure.auth.jwt_service import JWTService


@pytest.fixture
def jwt_service(settings) -> JWTService:
    return JWTService.from_settings(settings)


def _bearer(token: str, **extra: str) -> Headers:
    return Headers({"Authorization": f"Bearer {token}", **extra})


class TestAuthenticator:
    @pytest.mark.asyncio
    async def test_no_credentials(self, session, jwt_service):
        assert await Authenticator(jwt_service).authenticate(Headers({}), session) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", ["Basic abc", "Bearer ", "token"])
    async def test_malformed_header(self, session, jwt_service, value):
        with pytest.raises(AuthenticationError) as exc_info:
            await Authenticator(jwt_service).authenticate(Headers({"Authorization": value}), session)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_member_principal(self, tenant_factory, add_member, provisioned, jwt_service):
        tenant, unit, _ = await tenant_factory()
        viewer = await add_member(tenant.id, unit.id, "viewer@acme-rentals.com")
        token = jwt_service.create_access_token(viewer.id, tenant.id, unit.id, "USER")

        async with provisioned.session() as session:
            principal = await Authenticator(jwt_service).authenticate(_bearer(token), session)

        assert principal.user_id == viewer.id
        assert principal.tenant_id == tenant.id
        assert principal.business_unit_id == unit.id
        assert principal.roles == frozenset({SystemRole.VIEWER.value})
        assert principal.global_role == GlobalRole.USER

    @pytest.mark.asyncio
    async def test_business_unit_header_overrides_token(
        self, tenant_factory, provisioned, jwt_service
    ):
        tenant, unit, owner = await tenant_factory()
        token = jwt_service.create_access_token(owner.id, tenant.id, None, "USER")

        async with provisioned.session() as session:
            principal = await Authenticator(jwt_service).authenticate(
                _bearer(token, **{"X-Business-Unit-Id": unit.id}), session
            )
        assert principal.business_unit_id == unit.id
        assert principal.roles == frozenset({SystemRole.OWNER.value})

    @pytest.mark.asyncio
    async def test_foreign_business_unit(self, tenant_factory, provisioned, jwt_service):
        acme, _, acme_owner = await tenant_factory("Acme Rentals")
        _, beta_unit, _ = await tenant_factory("Beta Hire")
        token = jwt_service.create_access_token(acme_owner.id, acme.id, beta_unit.id, "USER")

        async with provisioned.session() as session:
            with pytest.raises(AuthenticationError) as exc_info:
                await Authenticator(jwt_service).authenticate(_bearer(token), session)
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_token_tenant_must_match_user(self, tenant_factory, provisioned, jwt_service):
        _, _, acme_owner = await tenant_factory("Acme Rentals")
        beta, _, _ = await tenant_factory("Beta Hire")
        token = jwt_service.create_access_token(acme_owner.id, beta.id, None, "USER")

        async with provisioned.session() as session:
            with pytest.raises(AuthenticationError) as exc_info:
                await Authenticator(jwt_service).authenticate(_bearer(token), session)
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_suspended_tenant(self, tenant_factory, provisioned, jwt_service, platform_admin):
        tenant, unit, owner = await tenant_factory()
        with context_scope(platform_admin):
            async with provisioned.session() as session:
                await TenantService(session).set_status(tenant.id, TenantStatus.SUSPENDED)
        token = jwt_service.create_access_token(owner.id, tenant.id, unit.id, "USER")

        async with provisioned.session() as session:
            with pytest.raises(AuthenticationError, match="not active"):
                await Authenticator(jwt_service).authenticate(_bearer(token), session)

    @pytest.mark.asyncio
    async def test_unknown_user(self, provisioned, jwt_service):
        token = jwt_service.create_access_token("ghost", "t1", None, "USER")
        async with provisioned.session() as session:
            with pytest.raises(AuthenticationError, match="User not found"):
                await Authenticator(jwt_service).authenticate(_bearer(token), session)

    @pytest.mark.asyncio
    async def test_superadmin_without_tenant(self, provisioned, jwt_service, password):
        async with provisioned.session() as session:
            user_id = await SuperadminService.create_superadmin(
                "root@rentbase-platform.com", password, session
            )
        token = jwt_service.create_access_token(user_id, None, None, GlobalRole.SUPER_ADMIN.value)

        async with provisioned.session() as session:
            principal = await Authenticator(jwt_service).authenticate(_bearer(token), session)
        assert principal.is_superadmin
        assert principal.tenant_id is None
