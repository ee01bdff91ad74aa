"""Unit tests for the permission evaluator."""

import pytest
from structlog.testing import capture_logs

from rentbase.core.exceptions import PermissionDenied
from rentbase.domain.entities.principal import GlobalRole, Principal
from rentbase.domain.entities.role import PermissionKey, SystemRole
from rentbase.domain.services.grant_cache import GrantCache
from rentbase.domain.services.permission_catalog import DEFAULT_CATALOG, system_role_permissions
from rentbase.domain.services.permission_evaluator import InMemoryGrantStore, PermissionEvaluator

TENANT = "tenant-1"
UNIT = "bu-1"


class CountingGrantStore(InMemoryGrantStore):
    def __init__(self) -> None:
        super().__init__()
        self.loads = 0

    async def load_grant(self, tenant_id, user_id, business_unit_id):
        self.loads += 1
        return await super().load_grant(tenant_id, user_id, business_unit_id)


@pytest.fixture
def store() -> CountingGrantStore:
    store = CountingGrantStore()
    for role in SystemRole:
        store.add_role(role.role_id, role.value, system_role_permissions(role))
    store.assign(TENANT, "owner", UNIT, SystemRole.OWNER.role_id)
    store.assign(TENANT, "viewer", UNIT, SystemRole.VIEWER.role_id)
    store.assign(TENANT, "employee", UNIT, SystemRole.EMPLOYEE.role_id)
    return store


@pytest.fixture
def evaluator(store) -> PermissionEvaluator:
    return PermissionEvaluator(store)


def _principal(user_id: str, business_unit_id: str | None = UNIT) -> Principal:
    return Principal(user_id=user_id, tenant_id=TENANT, business_unit_id=business_unit_id)


SUPERADMIN = Principal(user_id="root", global_role=GlobalRole.SUPER_ADMIN)


class TestPermissionEvaluator:
    @pytest.mark.asyncio
    async def test_viewer_reads_but_cannot_create(self, evaluator):
        viewer = _principal("viewer")
        assert await evaluator.has_permission(viewer, "assets", "read") is True
        assert await evaluator.has_permission(viewer, "assets", "create") is False

    @pytest.mark.asyncio
    async def test_employee_cannot_delete(self, evaluator):
        employee = _principal("employee")
        assert await evaluator.has_permission(employee, "rental-contracts", "update") is True
        assert await evaluator.has_permission(employee, "rental-contracts", "delete") is False

    @pytest.mark.asyncio
    async def test_no_business_unit_is_denied(self, evaluator):
        assert await evaluator.has_permission(_principal("owner", None), "assets", "read") is False

    @pytest.mark.asyncio
    async def test_unassigned_business_unit_is_denied(self, evaluator):
        assert await evaluator.has_permission(_principal("viewer", "bu-2"), "assets", "read") is False

    @pytest.mark.asyncio
    async def test_unknown_capability_denied_for_everyone(self, evaluator):
        with capture_logs() as logs:
            assert await evaluator.has_permission(_principal("owner"), "spaceships", "fly") is False
            assert await evaluator.has_permission(SUPERADMIN, "spaceships", "fly") is False
        assert all(log["log_level"] == "warning" for log in logs)

    @pytest.mark.asyncio
    async def test_owner_bypass_is_logged(self, evaluator):
        with capture_logs() as logs:
            assert await evaluator.has_permission(_principal("owner"), "reports", "export") is True
        bypasses = [log for log in logs if log["event"] == "Authorization bypass"]
        assert len(bypasses) == 1
        assert bypasses[0]["reason"] == "owner"

    @pytest.mark.asyncio
    async def test_superadmin_bypass_is_logged(self, evaluator, store):
        with capture_logs() as logs:
            assert await evaluator.has_permission(SUPERADMIN, "users", "delete") is True
        assert [log["reason"] for log in logs if log["event"] == "Authorization bypass"] == ["super_admin"]
        assert store.loads == 0

    @pytest.mark.asyncio
    async def test_user_permissions_add_to_role(self, evaluator, store):
        store.grant_user(TENANT, "viewer", {PermissionKey("assets", "create")})
        assert await evaluator.has_permission(_principal("viewer"), "assets", "create") is True
        assert await evaluator.has_permission(_principal("viewer"), "assets", "delete") is False

    @pytest.mark.asyncio
    async def test_require_permission_raises(self, evaluator):
        with pytest.raises(PermissionDenied) as exc_info:
            await evaluator.require_permission(_principal("viewer"), "assets", "create")
        assert exc_info.value.resource == "assets"
        assert exc_info.value.action == "create"

    @pytest.mark.asyncio
    async def test_has_any_permission(self, evaluator):
        viewer = _principal("viewer")
        assert await evaluator.has_any_permission(viewer, "assets:create", "assets:read") is True
        assert await evaluator.has_any_permission(viewer, "assets:create", "users:delete") is False

    @pytest.mark.asyncio
    async def test_effective_permissions(self, evaluator):
        assert await evaluator.effective_permissions(_principal("owner")) == DEFAULT_CATALOG.keys
        assert await evaluator.effective_permissions(_principal("viewer")) == system_role_permissions(
            SystemRole.VIEWER
        )
        assert await evaluator.effective_permissions(_principal("stranger")) == frozenset()

    @pytest.mark.asyncio
    async def test_role_of(self, evaluator):
        assert await evaluator.role_of(_principal("employee")) == "EMPLOYEE"
        assert await evaluator.role_of(_principal("stranger")) is None


class TestEvaluatorCache:
    @pytest.mark.asyncio
    async def test_grants_are_cached(self, store):
        evaluator = PermissionEvaluator(store, cache=GrantCache(ttl_seconds=60))
        viewer = _principal("viewer")
        await evaluator.has_permission(viewer, "assets", "read")
        await evaluator.has_permission(viewer, "clients", "read")
        assert store.loads == 1

    @pytest.mark.asyncio
    async def test_missing_assignment_is_not_cached(self, store):
        cache = GrantCache(ttl_seconds=60)
        evaluator = PermissionEvaluator(store, cache=cache)
        newcomer = _principal("newcomer")

        assert await evaluator.has_permission(newcomer, "assets", "read") is False
        store.assign(TENANT, "newcomer", UNIT, SystemRole.VIEWER.role_id)
        assert await evaluator.has_permission(newcomer, "assets", "read") is True

    @pytest.mark.asyncio
    async def test_invalidation_reloads(self, store):
        cache = GrantCache(ttl_seconds=60)
        evaluator = PermissionEvaluator(store, cache=cache)
        viewer = _principal("viewer")
        await evaluator.has_permission(viewer, "assets", "read")

        cache.invalidate_user("viewer")
        await evaluator.has_permission(viewer, "assets", "read")
        assert store.loads == 2
