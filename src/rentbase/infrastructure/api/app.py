"""FastAPI application factory and configuration.

This module provides the application factory function for creating
and configuring the FastAPI application with all middleware, routes,
exception handlers and lifecycle handlers.
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from rentbase.core.config import Settings, get_settings
from rentbase.core.exceptions import (
    BusinessUnitNotFound,
    ContextFieldMissing,
    ContextUnavailable,
    CrossTenantAccess,
    DuplicateEmail,
    DuplicateRoleName,
    DuplicateSlug,
    EntityNotFound,
    InvalidSlug,
    MissingContextHeader,
    MissingTenantFilter,
    PermissionDenied,
    ProviderConfigurationError,
    RentBaseError,
    RoleInUse,
    RoleNotFound,
    TenantInactive,
    TenantNotFound,
    TenantRegistryError,
    UnknownPermission,
    UserNotFound,
    WeakPassword,
)
from rentbase.core.logging import bind_correlation_id, clear_context, configure_logging, get_logger
from rentbase.domain.services.grant_cache import GrantCache
from rentbase.domain.services.permission_catalog import DEFAULT_CATALOG
from rentbase.infrastructure.api.middleware import AuditMiddleware, ContextMiddleware
from rentbase.infrastructure.auth.jwt_service import JWTService
from rentbase.infrastructure.auth.middleware import AuthenticationMiddleware
from rentbase.infrastructure.notifications import build_notifier
from rentbase.infrastructure.persistence.database import Base, DatabaseManager
from rentbase.infrastructure.persistence.tenant_guard import TenantGuard
from rentbase.infrastructure.persistence.tenant_registry import default_tenant_registry

logger = get_logger(__name__)

# Most specific class first wins; lookup walks the exception's MRO.
EXCEPTION_STATUS_CODES: dict[type[RentBaseError], int] = {
    PermissionDenied: 403,
    CrossTenantAccess: 403,
    TenantInactive: 403,
    RoleInUse: 409,
    DuplicateRoleName: 409,
    DuplicateSlug: 409,
    DuplicateEmail: 409,
    RoleNotFound: 404,
    TenantNotFound: 404,
    BusinessUnitNotFound: 404,
    UserNotFound: 404,
    EntityNotFound: 404,
    UnknownPermission: 400,
    InvalidSlug: 400,
    WeakPassword: 400,
    MissingContextHeader: 400,
    ContextUnavailable: 500,
    ContextFieldMissing: 500,
    MissingTenantFilter: 500,
    TenantRegistryError: 500,
    ProviderConfigurationError: 500,
}


def status_code_for(exc: RentBaseError) -> int:
    """Return the HTTP status for a domain error, 500 when unmapped."""
    for klass in type(exc).__mro__:
        if klass in EXCEPTION_STATUS_CODES:
            return EXCEPTION_STATUS_CODES[klass]
    return 500


async def provision_on_startup(app: FastAPI) -> None:
    """Seed the permission catalog and system roles, then the superadmin.

    Args:
        app: FastAPI application instance.
    """
    from rentbase.domain.services.role_provisioning_service import RolePermissionProvisioner
    from rentbase.domain.services.superadmin_service import SuperadminService

    settings: Settings = app.state.settings
    db: DatabaseManager = app.state.db

    if settings.auto_provision:
        async with db.session() as session:
            provisioner = RolePermissionProvisioner(
                session, catalog=app.state.catalog, cache=app.state.grant_cache
            )
            await provisioner.provision_system_roles()
        logger.info("System roles provisioned")

    if settings.superadmin_email and settings.superadmin_password:
        async with db.session() as session:
            if await SuperadminService.has_superadmin(session):
                logger.info("Superadmin already exists, skipping bootstrap")
                return
            await SuperadminService.create_superadmin(
                settings.superadmin_email, settings.superadmin_password, session
            )
        logger.info("Superadmin created from settings", email=settings.superadmin_email)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events for the application.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control is yielded to the application during its lifetime.
    """
    from rentbase.infrastructure.persistence import models  # noqa: F401

    settings: Settings = app.state.settings
    db: DatabaseManager = app.state.db

    logger.info(
        "Starting RentBase",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        tenant_guard_mode=settings.tenant_guard_mode,
    )

    app.state.tenant_registry.validate(Base.metadata)
    if settings.is_production and not app.state.tenant_guard.is_strict:
        logger.warning("Tenant guard is permissive in production")

    try:
        await db.initialize()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

    await provision_on_startup(app)

    yield

    logger.info("Shutting down RentBase")
    await db.disconnect()
    logger.info("Database connection closed")


def create_app(settings: Settings | None = None, database: DatabaseManager | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings, loaded from the environment if omitted.
        database: Pre-built database manager, e.g. an in-memory database in tests.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    registry = default_tenant_registry()
    tenant_guard = TenantGuard(registry, settings.tenant_guard_mode)
    if database is None:
        database = DatabaseManager(settings, tenant_guard=tenant_guard)
    elif database.tenant_guard is None:
        database.tenant_guard = tenant_guard

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Multi-tenant rental management backend",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.db = database
    app.state.tenant_registry = registry
    app.state.tenant_guard = database.tenant_guard
    app.state.catalog = DEFAULT_CATALOG
    app.state.grant_cache = GrantCache(ttl_seconds=settings.permission_cache_ttl_seconds)
    app.state.notifier = build_notifier(settings)
    app.state.jwt = JWTService.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    register_health_check(app)
    register_routes(app)
    register_exception_handlers(app)
    register_middleware(app)

    return app


def register_health_check(app: FastAPI) -> None:
    """Register health check endpoints.

    Args:
        app: FastAPI application instance.
    """

    @app.get("/health", tags=["health"])
    async def health_check():
        """Return 200 while the service is running."""
        return {
            "status": "healthy",
            "service": "RentBase",
            "version": app.state.settings.app_version,
        }

    @app.get("/ready", tags=["health"])
    async def readiness_check():
        """Return 200 if the database is reachable, 503 otherwise."""
        if await app.state.db.check_connection():
            return {
                "status": "ready",
                "service": "RentBase",
                "version": app.state.settings.app_version,
                "database": "connected",
            }
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "service": "RentBase", "database": "disconnected"},
        )


def register_routes(app: FastAPI) -> None:
    """Register API routes.

    Args:
        app: FastAPI application instance.
    """
    from rentbase.infrastructure.api.routes import (
        assets_router,
        auth_router,
        business_units_router,
        permissions_router,
        roles_router,
        system_router,
        tenants_router,
    )

    prefix = app.state.settings.api_prefix

    app.include_router(auth_router, prefix=f"{prefix}/auth", tags=["auth"])
    app.include_router(tenants_router, prefix=f"{prefix}/tenants", tags=["tenants"])
    app.include_router(
        business_units_router, prefix=f"{prefix}/business-units", tags=["business-units"]
    )
    app.include_router(roles_router, prefix=f"{prefix}/roles", tags=["roles"])
    app.include_router(permissions_router, prefix=f"{prefix}/permissions", tags=["permissions"])
    app.include_router(assets_router, prefix=f"{prefix}/assets", tags=["assets"])
    app.include_router(system_router, prefix=f"{prefix}/system", tags=["system"])


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(RentBaseError)
    async def rentbase_exception_handler(request: Request, exc: RentBaseError):
        status_code = status_code_for(exc)
        log = logger.error if status_code >= 500 else logger.info
        log(
            "Request rejected",
            path=request.url.path,
            method=request.method,
            error=type(exc).__name__,
            status_code=status_code,
        )
        detail = str(exc)
        if status_code >= 500 and not app.state.settings.debug:
            detail = "An unexpected error occurred"
        return JSONResponse(
            status_code=status_code,
            content={"error": type(exc).__name__, "detail": detail},
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning("Integrity error", path=request.url.path, error=str(exc.orig))
        return JSONResponse(
            status_code=409,
            content={"error": "Conflict", "detail": "The request conflicts with existing data"},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            path=str(request.url),
            method=request.method,
            error=str(exc),
            exc_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if app.state.settings.debug else "An unexpected error occurred",
            },
        )


def register_middleware(app: FastAPI) -> None:
    """Register custom middleware.

    Middleware added last runs first: the logging middleware wraps
    authentication, which wraps context binding, which wraps the audit
    trail.

    Args:
        app: FastAPI application instance.
    """
    app.add_middleware(AuditMiddleware)
    app.add_middleware(ContextMiddleware)
    app.add_middleware(AuthenticationMiddleware)

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Log all requests and add a correlation ID."""
        correlation_id = request.headers.get("X-Correlation-ID", f"cid_{uuid.uuid4().hex[:12]}")
        request.state.correlation_id = correlation_id
        bind_correlation_id(correlation_id)

        logger.info(
            "Request started",
            method=request.method,
            path=str(request.url.path),
            correlation_id=correlation_id,
        )

        try:
            response = await call_next(request)
            logger.info(
                "Request completed",
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
                correlation_id=correlation_id,
            )
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            clear_context()


app = create_app()
