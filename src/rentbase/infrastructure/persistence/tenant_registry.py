"""Registry of tenant-scoped tables.

The data access guard only knows table names; this registry tells it which
tables carry a tenant constraint, which are additionally scoped to a
business unit, which are global and which are handled explicitly by their
repositories. The registry is a plain value built by the composition root
and validated once at startup.
"""

from dataclasses import dataclass
from enum import Enum

from sqlalchemy import MetaData

from rentbase.core.exceptions import TenantRegistryError
from rentbase.core.logging import get_logger

logger = get_logger(__name__)


class EnforcementStrategy(str, Enum):
    """How the guard treats statements against a table."""

    TENANT = "tenant"
    BUSINESS_UNIT = "business_unit"
    GLOBAL = "global"
    SPECIAL = "special"
    UNREGISTERED = "unregistered"


@dataclass(frozen=True)
class TenantModelRegistry:
    """Classification of tables by tenant scoping.

    Attributes:
        tenant_scoped: Tables whose rows each carry one tenant id.
        business_unit_scoped: Subset of tenant-scoped tables also carrying a
            business unit id.
        global_tables: Tables shared by all tenants.
        special_handling: Tables mixing global and tenant rows, filtered
            explicitly by their repositories.
        tenant_column: Name of the tenant column.
        business_unit_column: Name of the business unit column.
    """

    tenant_scoped: frozenset[str]
    business_unit_scoped: frozenset[str] = frozenset()
    global_tables: frozenset[str] = frozenset()
    special_handling: frozenset[str] = frozenset()
    tenant_column: str = "tenant_id"
    business_unit_column: str = "business_unit_id"

    def enforcement_strategy(self, table_name: str) -> EnforcementStrategy:
        """Return the enforcement strategy for a table."""
        if table_name in self.business_unit_scoped:
            return EnforcementStrategy.BUSINESS_UNIT
        if table_name in self.tenant_scoped:
            return EnforcementStrategy.TENANT
        if table_name in self.global_tables:
            return EnforcementStrategy.GLOBAL
        if table_name in self.special_handling:
            return EnforcementStrategy.SPECIAL
        return EnforcementStrategy.UNREGISTERED

    def is_tenant_scoped(self, table_name: str) -> bool:
        return table_name in self.tenant_scoped

    def is_business_unit_scoped(self, table_name: str) -> bool:
        return table_name in self.business_unit_scoped

    def validate(self, metadata: MetaData | None = None) -> None:
        """Check the registry for consistency.

        Args:
            metadata: When given, tables are also checked against the mapped
                schema.

        Raises:
            TenantRegistryError: On overlapping categories, business-unit
                scoped tables that are not tenant-scoped, or registered
                tables missing their scoping columns.
        """
        categories = {
            "tenant_scoped": self.tenant_scoped,
            "global_tables": self.global_tables,
            "special_handling": self.special_handling,
        }
        names = list(categories)
        for i, first in enumerate(names):
            for second in names[i + 1 :]:
                overlap = categories[first] & categories[second]
                if overlap:
                    raise TenantRegistryError(
                        f"Tables registered as both {first} and {second}: {sorted(overlap)}"
                    )

        orphans = self.business_unit_scoped - self.tenant_scoped
        if orphans:
            raise TenantRegistryError(
                f"Business-unit scoped tables must also be tenant-scoped: {sorted(orphans)}"
            )

        if metadata is None:
            return

        for name in self.tenant_scoped:
            table = metadata.tables.get(name)
            if table is None:
                raise TenantRegistryError(f"Tenant-scoped table '{name}' is not mapped")
            if self.tenant_column not in table.c:
                raise TenantRegistryError(
                    f"Tenant-scoped table '{name}' has no '{self.tenant_column}' column"
                )
        for name in self.business_unit_scoped:
            if self.business_unit_column not in metadata.tables[name].c:
                raise TenantRegistryError(
                    f"Business-unit scoped table '{name}' has no '{self.business_unit_column}' column"
                )

        registered = self.tenant_scoped | self.global_tables | self.special_handling
        for name in sorted(set(metadata.tables) - registered):
            logger.warning("Table not registered with the tenant guard", table=name)


def default_tenant_registry() -> TenantModelRegistry:
    """Registry for the RentBase schema."""
    return TenantModelRegistry(
        tenant_scoped=frozenset(
            {
                "business_units",
                "users",
                "user_business_units",
                "user_permissions",
                "assets",
                "audit_logs",
            }
        ),
        business_unit_scoped=frozenset({"assets"}),
        global_tables=frozenset({"tenants", "permissions"}),
        # roles mix system rows (no tenant) with custom rows
        special_handling=frozenset({"roles", "role_permissions"}),
    )
