"""API routes for RentBase."""

from rentbase.infrastructure.api.routes.assets_router import router as assets_router
from rentbase.infrastructure.api.routes.auth_router import router as auth_router
from rentbase.infrastructure.api.routes.business_units_router import router as business_units_router
from rentbase.infrastructure.api.routes.permissions_router import router as permissions_router
from rentbase.infrastructure.api.routes.roles_router import router as roles_router
from rentbase.infrastructure.api.routes.system_router import router as system_router
from rentbase.infrastructure.api.routes.tenants_router import router as tenants_router

__all__ = [
    "assets_router",
    "auth_router",
    "business_units_router",
    "permissions_router",
    "roles_router",
    "system_router",
    "tenants_router",
]
