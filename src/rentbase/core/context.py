"""Request context management using ContextVars.

This module stores the identity of the current operation (tenant, business
unit, user, roles) for the lifetime of one call chain, so repositories,
services and event listeners can read it without explicit parameter passing.

Each asyncio task runs in its own copy of the context, so concurrently
scheduled requests never observe each other's binding. A binding is always
scoped: ``run``, ``run_async`` and ``context_scope`` restore whatever was
bound before them when they exit.
"""

import contextvars
import uuid
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, fields
from typing import Any, TypeVar

from rentbase.core.exceptions import ContextFieldMissing, ContextUnavailable
from rentbase.domain.entities.principal import GlobalRole, Principal

T = TypeVar("T")

SYSTEM_USER_ID = "system"


def _new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class RequestContext:
    """Identity bound to the current call chain.

    Attributes:
        user_id: Acting user, or ``SYSTEM_USER_ID`` for trusted system callers.
        tenant_id: Tenant the call chain operates in. None only for a
            super-principal acting at platform level.
        business_unit_id: Targeted business unit, if any.
        roles: Role names held in the business unit.
        is_superadmin: Whether the caller is the platform super-identity.
        is_system: Whether the context was built for a trusted system caller.
        email: Caller email, when known.
        request_id: Identifier used to correlate log entries.
    """

    user_id: str
    tenant_id: str | None = None
    business_unit_id: str | None = None
    roles: tuple[str, ...] = ()
    is_superadmin: bool = False
    is_system: bool = False
    email: str | None = None
    request_id: str = field(default_factory=_new_request_id)

    @classmethod
    def from_principal(cls, principal: Principal, request_id: str | None = None) -> "RequestContext":
        """Build a context from an authenticated principal.

        Args:
            principal: Verified principal.
            request_id: Correlation id to reuse, if the caller has one.

        Returns:
            RequestContext: The context for the principal's request.
        """
        return cls(
            user_id=principal.user_id,
            tenant_id=principal.tenant_id,
            business_unit_id=principal.business_unit_id,
            roles=tuple(sorted(principal.roles)),
            is_superadmin=principal.is_superadmin,
            email=principal.email,
            request_id=request_id or _new_request_id(),
        )

    @classmethod
    def for_system(
        cls,
        tenant_id: str,
        business_unit_id: str | None = None,
        request_id: str | None = None,
    ) -> "RequestContext":
        """Build a context for a trusted system caller acting in one tenant."""
        return cls(
            user_id=SYSTEM_USER_ID,
            tenant_id=tenant_id,
            business_unit_id=business_unit_id,
            is_system=True,
            request_id=request_id or _new_request_id(),
        )

    @property
    def principal(self) -> Principal:
        """The principal view of this context."""
        return Principal(
            user_id=self.user_id,
            tenant_id=self.tenant_id,
            business_unit_id=self.business_unit_id,
            roles=frozenset(self.roles),
            global_role=GlobalRole.SUPER_ADMIN if self.is_superadmin else GlobalRole.USER,
            email=self.email,
        )


_FIELD_NAMES = frozenset(f.name for f in fields(RequestContext))

_current_context: contextvars.ContextVar[RequestContext | None] = contextvars.ContextVar(
    "current_request_context", default=None
)


@contextmanager
def context_scope(context: RequestContext) -> Iterator[RequestContext]:
    """Bind ``context`` for the duration of the ``with`` block.

    Works in synchronous and asynchronous code alike. Nested scopes shadow
    the outer binding, which is restored on exit even if the block raises.

    Args:
        context: The context to bind.

    Yields:
        RequestContext: The bound context.
    """
    token = _current_context.set(context)
    try:
        yield context
    finally:
        _current_context.reset(token)


def run(context: RequestContext, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Call a synchronous function with ``context`` bound.

    The call runs in a copy of the caller's ``contextvars`` context, so
    nothing it binds leaks back to the caller.

    Args:
        context: The context to bind.
        fn: Function to call.
        *args: Positional arguments for ``fn``.
        **kwargs: Keyword arguments for ``fn``.

    Returns:
        Whatever ``fn`` returns.
    """

    def _invoke() -> T:
        _current_context.set(context)
        return fn(*args, **kwargs)

    return contextvars.copy_context().run(_invoke)


async def run_async(
    context: RequestContext,
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    **kwargs: Any,
) -> T:
    """Await a coroutine function with ``context`` bound.

    Tasks created inside ``fn`` copy the binding at creation time and keep
    it after ``fn`` returns.

    Args:
        context: The context to bind.
        fn: Coroutine function to await.
        *args: Positional arguments for ``fn``.
        **kwargs: Keyword arguments for ``fn``.

    Returns:
        Whatever ``fn`` returns.
    """
    with context_scope(context):
        return await fn(*args, **kwargs)


def get_context() -> RequestContext:
    """Get the context bound to the current call chain.

    Returns:
        RequestContext: The active context.

    Raises:
        ContextUnavailable: If no context is bound.
    """
    context = _current_context.get()
    if context is None:
        raise ContextUnavailable()
    return context


def get_context_or_none() -> RequestContext | None:
    """Get the bound context, or None outside any scope."""
    return _current_context.get()


def has_context() -> bool:
    """Whether a context is bound to the current call chain."""
    return _current_context.get() is not None


def require(field_name: str) -> Any:
    """Get a field of the active context, failing if it is empty.

    Args:
        field_name: Name of a ``RequestContext`` attribute.

    Returns:
        The field value.

    Raises:
        ValueError: If ``field_name`` is not a context attribute.
        ContextUnavailable: If no context is bound.
        ContextFieldMissing: If the field is None or empty.
    """
    if field_name not in _FIELD_NAMES:
        raise ValueError(f"Unknown request context field '{field_name}'")
    value = getattr(get_context(), field_name)
    if value is None or value == "" or value == ():
        raise ContextFieldMissing(field_name)
    return value


def get_tenant_id() -> str:
    """Tenant of the active context."""
    return require("tenant_id")


def get_user_id() -> str:
    """User of the active context."""
    return require("user_id")


def require_business_unit_id() -> str:
    """Business unit of the active context."""
    return require("business_unit_id")
