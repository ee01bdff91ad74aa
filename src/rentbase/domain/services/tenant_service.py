"""Tenant service for business logic.

Creates tenants together with their default business unit and owner, and
manages the tenant lifecycle. Tenants are a platform-level resource: every
operation here requires the super-principal.
"""

import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from rentbase.core.context import RequestContext, context_scope, get_context
from rentbase.core.exceptions import (
    DuplicateEmail,
    DuplicateSlug,
    PermissionDenied,
    RoleNotFound,
    TenantNotFound,
)
from rentbase.core.logging import get_logger
from rentbase.domain.entities.principal import GlobalRole
from rentbase.domain.entities.role import SystemRole
from rentbase.domain.entities.tenant import (
    TenantStatus,
    UserStatus,
    default_business_unit_name,
    default_business_unit_slug,
)
from rentbase.domain.services.password_validator import (
    PasswordValidator,
    default_password_validator,
)
from rentbase.domain.services.slug_generator import SlugGenerator
from rentbase.infrastructure.auth.password_hasher import hash_password
from rentbase.infrastructure.notifications import Notification, Notifier
from rentbase.infrastructure.persistence.models import (
    BusinessUnitModel,
    TenantModel,
    UserBusinessUnitModel,
    UserModel,
)
from rentbase.infrastructure.persistence.repositories import (
    BusinessUnitRepository,
    RoleRepository,
    TenantRepository,
    UserBusinessUnitRepository,
    UserRepository,
)

logger = get_logger(__name__)

DEFAULT_ENABLED_MODULES = ("assets", "clients", "rental-contracts", "quotations")


class TenantService:
    """Service for tenant management business logic."""

    def __init__(
        self,
        session: AsyncSession,
        notifier: Notifier | None = None,
        password_validator: PasswordValidator = default_password_validator,
    ) -> None:
        """Initialize the tenant service.

        Args:
            session: SQLAlchemy async session.
            notifier: Where the welcome notification is sent, if anywhere.
            password_validator: Policy applied to the owner password.
        """
        self.session = session
        self.notifier = notifier
        self.password_validator = password_validator
        self.tenant_repo = TenantRepository(session)

    def _require_superadmin(self, action: str) -> RequestContext:
        context = get_context()
        if not context.is_superadmin:
            logger.warning("Tenant operation refused", action=action)
            raise PermissionDenied("tenants", action)
        return context

    async def create_tenant(
        self,
        name: str,
        owner_email: str,
        owner_password: str,
        slug: str | None = None,
        owner_first_name: str = "",
        owner_last_name: str = "",
        plan: str = "free",
        vertical: str | None = None,
        enabled_modules: Sequence[str] | None = None,
    ) -> tuple[TenantModel, BusinessUnitModel, UserModel]:
        """Create a tenant with its principal business unit and owner.

        The tenant, business unit, owner user and owner assignment are
        written in one transaction; any failure leaves nothing behind.

        Args:
            name: Tenant display name.
            owner_email: Login email of the owner.
            owner_password: Owner password, checked against the policy.
            slug: Tenant slug, generated from the name when omitted.
            owner_first_name: Owner given name.
            owner_last_name: Owner family name.
            plan: Subscription plan.
            vertical: Business vertical stored on the business unit.
            enabled_modules: Modules enabled on the business unit.

        Returns:
            Tuple of (tenant, business unit, owner).

        Raises:
            PermissionDenied: If the caller is not the super-principal.
            InvalidSlug: If the slug breaks the slug rules.
            WeakPassword: If the owner password fails the policy.
            DuplicateSlug: If the slug is taken.
            DuplicateEmail: If the owner email is registered.
        """
        context = self._require_superadmin("create")

        slug = slug or SlugGenerator.generate(name)
        SlugGenerator.ensure_valid(slug)
        self.password_validator.ensure_valid(owner_password)
        email = owner_email.strip().lower()

        if await self.tenant_repo.slug_exists(slug):
            raise DuplicateSlug(slug)
        if await RoleRepository(self.session).get_by_id(SystemRole.OWNER.role_id) is None:
            raise RoleNotFound(SystemRole.OWNER.role_id)

        tenant_id = str(uuid.uuid4())
        try:
            # The new tenant's rows are written as that tenant.
            with context_scope(RequestContext.for_system(tenant_id, request_id=context.request_id)):
                tenant = await self.tenant_repo.create(
                    TenantModel(
                        id=tenant_id,
                        name=name,
                        slug=slug,
                        plan=plan,
                        status=TenantStatus.ACTIVE.value,
                        settings={},
                    )
                )
                business_unit = await BusinessUnitRepository(self.session).create(
                    BusinessUnitModel(
                        tenant_id=tenant_id,
                        name=default_business_unit_name(name),
                        slug=default_business_unit_slug(slug),
                        settings={
                            "enabledModules": list(enabled_modules or DEFAULT_ENABLED_MODULES),
                            "vertical": vertical,
                        },
                    )
                )

                users = UserRepository(self.session)
                if await users.email_exists(email):
                    raise DuplicateEmail(email)
                owner = await users.create(
                    UserModel(
                        tenant_id=tenant_id,
                        email=email,
                        password_hash=hash_password(owner_password),
                        first_name=owner_first_name,
                        last_name=owner_last_name,
                        global_role=GlobalRole.USER.value,
                        status=UserStatus.ACTIVE.value,
                    )
                )
                await UserBusinessUnitRepository(self.session).create(
                    UserBusinessUnitModel(
                        tenant_id=tenant_id,
                        user_id=owner.id,
                        business_unit_id=business_unit.id,
                        role_id=SystemRole.OWNER.role_id,
                    )
                )
                await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Tenant created",
            created_tenant_id=tenant.id,
            slug=slug,
            business_unit_id=business_unit.id,
            owner_id=owner.id,
        )
        await self._send_welcome(tenant, owner)
        return tenant, business_unit, owner

    async def _send_welcome(self, tenant: TenantModel, owner: UserModel) -> None:
        if self.notifier is None:
            return
        notification = Notification(
            kind="tenant.welcome",
            recipient=owner.email,
            subject=f"Welcome to {tenant.name}",
            data={"tenant_id": tenant.id, "tenant_slug": tenant.slug},
        )
        try:
            await self.notifier.send(notification)
        except Exception as e:
            # The tenant is committed; a failed welcome message is only reported.
            logger.error(
                "Welcome notification failed",
                created_tenant_id=tenant.id,
                error=str(e),
            )

    async def get_tenant(self, tenant_id: str) -> TenantModel:
        """Get a tenant by ID.

        Raises:
            TenantNotFound: If the tenant does not exist.
        """
        self._require_superadmin("read")
        tenant = await self.tenant_repo.get_by_id(tenant_id)
        if tenant is None:
            raise TenantNotFound(tenant_id)
        return tenant

    async def list_tenants(
        self,
        search: str | None = None,
        status: TenantStatus | None = None,
        offset: int = 0,
        limit: int = 25,
    ) -> tuple[list[TenantModel], int]:
        """List tenants with optional search and status filter.

        Returns:
            Tuple of (tenants, total count).
        """
        self._require_superadmin("read")
        return await self.tenant_repo.list_paginated(
            offset=offset,
            limit=limit,
            search=search,
            status=status.value if status is not None else None,
        )

    async def update_tenant(
        self,
        tenant_id: str,
        name: str | None = None,
        plan: str | None = None,
        settings: dict[str, Any] | None = None,
    ) -> TenantModel:
        """Update tenant attributes. ``settings`` is merged into the stored settings."""
        self._require_superadmin("update")
        tenant = await self.tenant_repo.get_by_id(tenant_id)
        if tenant is None:
            raise TenantNotFound(tenant_id)

        if name is not None:
            tenant.name = name
        if plan is not None:
            tenant.plan = plan
        if settings:
            tenant.settings = {**(tenant.settings or {}), **settings}

        try:
            await self.tenant_repo.update(tenant)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return tenant

    async def set_status(self, tenant_id: str, status: TenantStatus) -> TenantModel:
        """Change the lifecycle status of a tenant.

        Suspended and cancelled tenants are refused by the authentication
        middleware and by the trusted-header validator.
        """
        self._require_superadmin("update")
        tenant = await self.tenant_repo.get_by_id(tenant_id)
        if tenant is None:
            raise TenantNotFound(tenant_id)

        previous = tenant.status
        tenant.status = status.value
        try:
            await self.tenant_repo.update(tenant)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Tenant status changed",
            target_tenant_id=tenant_id,
            previous=previous,
            status=status.value,
        )
        return tenant

    async def cancel_tenant(self, tenant_id: str) -> TenantModel:
        """Soft-delete a tenant by marking it cancelled."""
        return await self.set_status(tenant_id, TenantStatus.CANCELLED)
