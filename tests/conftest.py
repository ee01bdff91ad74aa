"""Pytest configuration for all tests."""

from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from rentbase.core.config import Settings
from rentbase.core.context import RequestContext, context_scope
from rentbase.domain.entities.role import SystemRole
from rentbase.domain.services.role_provisioning_service import RolePermissionProvisioner
from rentbase.domain.services.tenant_service import TenantService
from rentbase.infrastructure.auth.password_hasher import hash_password
from rentbase.infrastructure.persistence.database import DatabaseManager, enable_sqlite_foreign_keys
from rentbase.infrastructure.persistence.models import (
    BusinessUnitModel,
    TenantModel,
    UserBusinessUnitModel,
    UserModel,
)
from rentbase.infrastructure.persistence.tenant_guard import TenantGuard
from rentbase.infrastructure.persistence.tenant_registry import default_tenant_registry

TEST_PASSWORD = "Rental2024Pass"

TenantFactory = Callable[..., Awaitable[tuple[TenantModel, BusinessUnitModel, UserModel]]]


def _platform_admin_context() -> RequestContext:
    """Context of the platform super-identity, not bound to any tenant."""
    return RequestContext(user_id="platform-admin", is_superadmin=True)


def _member_context(tenant_id: str, business_unit_id: str | None = None, user_id: str = "member") -> RequestContext:
    return RequestContext(user_id=user_id, tenant_id=tenant_id, business_unit_id=business_unit_id)


@pytest.fixture
def settings() -> Settings:
    """Settings for an in-memory database and quiet providers."""
    return Settings(
        _env_file=None,
        environment="testing",
        database_url="sqlite+aiosqlite:///:memory:",
        secret_key="test-secret-key-that-is-long-enough-for-hs256",
        log_format="console",
        log_level="DEBUG",
        notification_provider="disabled",
        auto_provision=False,
    )


@pytest_asyncio.fixture
async def db(settings: Settings) -> AsyncGenerator[DatabaseManager, None]:
    """Database manager over a fresh in-memory SQLite database with a strict guard."""
    engine = create_async_engine(
        settings.database_url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    manager = DatabaseManager(
        settings,
        engine=engine,
        tenant_guard=TenantGuard(default_tenant_registry(), "strict"),
    )
    await manager.create_tables()
    yield manager
    await manager.disconnect()


@pytest_asyncio.fixture
async def session(db: DatabaseManager) -> AsyncGenerator[AsyncSession, None]:
    async with db.session() as session:
        yield session


@pytest_asyncio.fixture
async def provisioned(db: DatabaseManager) -> DatabaseManager:
    """Database with the permission catalog and system roles in place."""
    async with db.session() as session:
        await RolePermissionProvisioner(session).provision_system_roles()
    return db


@pytest_asyncio.fixture
async def tenant_factory(provisioned: DatabaseManager) -> TenantFactory:
    """Create tenants the way the platform administrator does."""

    async def create(name: str = "Acme Rentals", owner_email: str | None = None, **kwargs):
        email = owner_email or f"owner@{name.lower().replace(' ', '-')}.com"
        with context_scope(_platform_admin_context()):
            async with provisioned.session() as session:
                return await TenantService(session).create_tenant(
                    name, email, TEST_PASSWORD, **kwargs
                )

    return create


@pytest_asyncio.fixture
async def add_member(provisioned: DatabaseManager):
    """Create a user in a tenant and assign it a role in a business unit."""

    async def add(
        tenant_id: str,
        business_unit_id: str,
        email: str,
        role: SystemRole | str = SystemRole.VIEWER,
    ) -> UserModel:
        role_id = role.role_id if isinstance(role, SystemRole) else role
        with context_scope(_member_context(tenant_id)):
            async with provisioned.session() as session:
                user = UserModel(
                    tenant_id=tenant_id,
                    email=email,
                    password_hash=hash_password(TEST_PASSWORD),
                )
                session.add(user)
                await session.flush()
                session.add(
                    UserBusinessUnitModel(
                        tenant_id=tenant_id,
                        user_id=user.id,
                        business_unit_id=business_unit_id,
                        role_id=role_id,
                    )
                )
                await session.commit()
        return user

    return add


@pytest.fixture
def password() -> str:
    """Password of every user created by the factories."""
    return TEST_PASSWORD


@pytest.fixture
def platform_admin() -> RequestContext:
    return _platform_admin_context()
