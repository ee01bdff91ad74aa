"""Core RentBase utilities.

This module exports core utilities for use throughout the application.
"""

from rentbase.core.config import Settings, get_settings
from rentbase.core.context import (
    RequestContext,
    context_scope,
    get_context,
    get_context_or_none,
    has_context,
    require,
    run,
    run_async,
)
from rentbase.core.logging import (
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "RequestContext",
    "Settings",
    "bind_correlation_id",
    "clear_context",
    "configure_logging",
    "context_scope",
    "get_context",
    "get_context_or_none",
    "get_logger",
    "get_settings",
    "has_context",
    "require",
    "run",
    "run_async",
]
