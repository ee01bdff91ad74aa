"""RentBase - multi-tenant equipment rental platform core.

Request context propagation, tenant-scoped data access and role-based
authorization for the rental platform services.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
