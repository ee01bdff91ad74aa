"""Unit tests for the request context store."""

import asyncio

import pytest

from rentbase.core.context import (
    RequestContext,
    context_scope,
    get_context,
    get_context_or_none,
    get_tenant_id,
    has_context,
    require,
    require_business_unit_id,
    run,
    run_async,
)
from rentbase.core.exceptions import ContextFieldMissing, ContextUnavailable
from rentbase.domain.entities.principal import GlobalRole, Principal


def _context(tenant_id: str, business_unit_id: str | None = None) -> RequestContext:
    return RequestContext(user_id=f"user-{tenant_id}", tenant_id=tenant_id, business_unit_id=business_unit_id)


class TestRequestContext:
    def test_no_context_outside_scope(self):
        assert get_context_or_none() is None
        assert has_context() is False
        with pytest.raises(ContextUnavailable):
            get_context()

    def test_scope_binds_and_restores(self):
        with context_scope(_context("t1")) as bound:
            assert get_context() is bound
            assert get_tenant_id() == "t1"
        assert get_context_or_none() is None

    def test_nested_scope_shadows_outer(self):
        with context_scope(_context("outer")):
            with context_scope(_context("inner")):
                assert get_tenant_id() == "inner"
            assert get_tenant_id() == "outer"

    def test_scope_restored_after_exception(self):
        with pytest.raises(RuntimeError):
            with context_scope(_context("t1")):
                raise RuntimeError("boom")
        assert get_context_or_none() is None

    def test_require_missing_field(self):
        with context_scope(_context("t1")):
            with pytest.raises(ContextFieldMissing) as exc_info:
                require_business_unit_id()
        assert exc_info.value.field == "business_unit_id"

    def test_require_unknown_field(self):
        with context_scope(_context("t1")):
            with pytest.raises(ValueError):
                require("account_id")

    def test_run_does_not_leak(self):
        def read_tenant() -> str:
            return get_tenant_id()

        assert run(_context("t1"), read_tenant) == "t1"
        assert get_context_or_none() is None

    def test_from_principal(self):
        principal = Principal(
            user_id="u1",
            tenant_id="t1",
            business_unit_id="bu1",
            roles={"VIEWER"},
            email="viewer@acme-rentals.com",
        )
        context = RequestContext.from_principal(principal, request_id="req_1")
        assert context.tenant_id == "t1"
        assert context.business_unit_id == "bu1"
        assert context.roles == ("VIEWER",)
        assert context.request_id == "req_1"
        assert context.principal == principal

    def test_system_context(self):
        context = RequestContext.for_system("t1")
        assert context.is_system is True
        assert context.is_superadmin is False
        assert context.principal.global_role == GlobalRole.USER


class TestContextConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_requests_are_isolated(self):
        async def handle(tenant_id: str) -> list[str]:
            seen = []
            for _ in range(5):
                await asyncio.sleep(0)
                seen.append(get_tenant_id())
            return seen

        results = await asyncio.gather(
            *(run_async(_context(f"t{i}"), handle, f"t{i}") for i in range(10))
        )

        for i, seen in enumerate(results):
            assert seen == [f"t{i}"] * 5
        assert get_context_or_none() is None

    @pytest.mark.asyncio
    async def test_task_inherits_context_at_creation(self):
        async def child() -> str:
            await asyncio.sleep(0)
            return get_tenant_id()

        with context_scope(_context("parent")):
            task = asyncio.create_task(child())
        # The scope has ended, the task keeps its copy.
        assert get_context_or_none() is None
        assert await task == "parent"

    @pytest.mark.asyncio
    async def test_child_binding_does_not_reach_parent(self):
        async def child() -> None:
            with context_scope(_context("child")):
                await asyncio.sleep(0)

        with context_scope(_context("parent")):
            await asyncio.create_task(child())
            assert get_tenant_id() == "parent"
