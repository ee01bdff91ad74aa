"""Tenant-scoping data access guard.

SQLAlchemy session event listeners that cross-check every ORM statement and
every flush against the bound request context:

- SELECT, bulk UPDATE and bulk DELETE statements touching a tenant-scoped
  table must constrain ``tenant_id`` to the context tenant. Every FROM
  element is checked against the top-level AND terms of its own statement,
  so a comparison inside OR, NOT or a subquery does not count, and aliases
  and subqueries need their own filter. Bulk INSERTs must carry the context
  tenant in every row. A missing constraint raises ``MissingTenantFilter``
  in strict mode and is logged in permissive mode. A constraint naming
  another tenant always raises ``CrossTenantAccess``.
- Objects flushed to a tenant-scoped table must carry the context tenant.
- Without a bound context, tenant-scoped access raises ``ContextUnavailable``.

Relationship loads and attribute refreshes are not checked: they are reached
through an object that was itself loaded through a checked statement.

System code that must cross tenants (authentication lookups, provisioning,
the CLI) opts out explicitly with ``system_access()`` or the
``skip_tenant_guard`` execution option.
"""

import contextvars
from collections import defaultdict
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Literal

from sqlalchemy import Delete, Select, Table, Update, event, inspect
from sqlalchemy.orm import ORMExecuteState, Session
from sqlalchemy.sql import operators
from sqlalchemy.sql.elements import (
    BinaryExpression,
    BindParameter,
    BooleanClauseList,
    ClauseElement,
    Grouping,
)
from sqlalchemy.sql.selectable import FromClause, Join

from rentbase.core.context import RequestContext, get_context_or_none
from rentbase.core.exceptions import (
    ContextFieldMissing,
    ContextUnavailable,
    CrossTenantAccess,
    MissingTenantFilter,
)
from rentbase.core.logging import get_logger
from rentbase.infrastructure.persistence.tenant_registry import TenantModelRegistry

logger = get_logger(__name__)

GuardMode = Literal["strict", "permissive"]

GUARD_INFO_KEY = "tenant_guard"
SKIP_OPTION = "skip_tenant_guard"

_bypass: contextvars.ContextVar[bool] = contextvars.ContextVar("tenant_guard_bypass", default=False)


class TenantScopedSession(Session):
    """Session class checked by the ``TenantGuard`` stored in its ``info``."""


@contextmanager
def system_access(reason: str) -> Iterator[None]:
    """Disable the guard for the current call chain.

    Args:
        reason: Why tenant scoping does not apply; logged for auditing.
    """
    token = _bypass.set(True)
    logger.debug("Tenant guard bypassed", reason=reason)
    try:
        yield
    finally:
        _bypass.reset(token)


def _base_table(fromclause: Any) -> Any:
    # Unwrap aliases down to the underlying table
    while not isinstance(fromclause, Table) and hasattr(fromclause, "element"):
        fromclause = fromclause.element
    return fromclause


def _conjuncts(clause: Any) -> Iterator[Any]:
    """Yield the top-level AND terms of a WHERE or ON clause.

    OR, NOT and anything nested below them are a single opaque term: a
    comparison inside them does not constrain every returned row.
    """
    if clause is None:
        return
    if isinstance(clause, Grouping):
        yield from _conjuncts(clause.element)
    elif isinstance(clause, BooleanClauseList) and clause.operator is operators.and_:
        for term in clause.clauses:
            yield from _conjuncts(term)
    else:
        yield clause


def _column_target(element: Any) -> tuple[str, str] | None:
    table = getattr(element, "table", None)
    name = getattr(element, "name", None)
    if not isinstance(table, FromClause) or name is None:
        return None
    return table.name, name


def _bound_values(element: BindParameter) -> list[Any]:
    value = element.effective_value
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def collect_criteria(*clauses: Any) -> dict[tuple[str, str], list[Any]]:
    """Collect ``column == :value`` and ``column IN (:values)`` criteria.

    Only top-level AND terms count. Criteria are keyed by the FROM element
    the column belongs to, so an alias of a table is distinct from the table.

    Args:
        clauses: WHERE and inner-join ON clauses of one statement.

    Returns:
        Mapping of ``(from name, column name)`` to the compared values.
    """
    criteria: dict[tuple[str, str], list[Any]] = defaultdict(list)
    for clause in clauses:
        for term in _conjuncts(clause):
            if not isinstance(term, BinaryExpression):
                continue
            if term.operator not in (operators.eq, operators.in_op):
                continue
            for column_side, value_side in ((term.left, term.right), (term.right, term.left)):
                if not isinstance(value_side, BindParameter):
                    continue
                target = _column_target(column_side)
                if target is not None:
                    criteria[target].extend(_bound_values(value_side))
    return criteria


def _expand_froms(froms: Any) -> tuple[list[Any], list[Any]]:
    """Split joins into their tables and the ON clauses of inner joins."""
    tables: list[Any] = []
    onclauses: list[Any] = []
    pending = list(froms)
    while pending:
        fromclause = pending.pop(0)
        if isinstance(fromclause, Join):
            pending[:0] = [fromclause.left, fromclause.right]
            if not fromclause.isouter and not fromclause.full:
                onclauses.append(fromclause.onclause)
        else:
            tables.append(fromclause)
    return tables, onclauses


def _nested_selects(element: Any, in_from: bool = False) -> Iterator[tuple[Select, bool]]:
    """Yield the selects nested one level below ``element``.

    The flag tells whether the select may correlate to the enclosing FROM
    list, which is the case unless it is reached through a subquery or alias
    used as a FROM element.
    """
    for child in element.get_children():
        if isinstance(child, Select):
            yield child, not in_from
        else:
            from_position = in_from or (isinstance(child, FromClause) and not isinstance(child, Table))
            yield from _nested_selects(child, from_position)


def _inline_rows(statement: Any) -> list[dict[str, Any]]:
    """Rows given to ``insert().values()``, keyed by column name."""
    raw_rows: list[Any] = []
    if statement._values:
        raw_rows.append(statement._values)
    for rows in statement._multi_values:
        raw_rows.extend(rows)

    column_names = [column.name for column in statement.table.columns]
    inline = []
    for raw in raw_rows:
        items = raw.items() if isinstance(raw, Mapping) else zip(column_names, raw)
        row = {}
        for key, value in items:
            name = key if isinstance(key, str) else getattr(key, "name", None)
            if isinstance(value, BindParameter):
                value = value.effective_value
            elif isinstance(value, ClauseElement):
                # SQL expressions are not a tenant value.
                value = None
            row[name] = value
        inline.append(row)
    return inline


class TenantGuard:
    """Check ORM activity against the bound request context.

    Args:
        registry: Classification of tables by tenant scoping.
        mode: ``strict`` rejects reads without a tenant filter,
            ``permissive`` logs them and lets them run.
    """

    def __init__(self, registry: TenantModelRegistry, mode: GuardMode = "strict") -> None:
        if mode not in ("strict", "permissive"):
            raise ValueError(f"Unknown tenant guard mode '{mode}'")
        self.registry = registry
        self.mode = mode

    @property
    def is_strict(self) -> bool:
        return self.mode == "strict"

    # Statements

    def scoped_targets(
        self, statement: Any, correlated: frozenset[str] = frozenset()
    ) -> Iterator[tuple[str, str, dict[tuple[str, str], list[Any]]]]:
        """Yield every tenant-scoped FROM element of a statement.

        Each SELECT, UPDATE and DELETE in the tree is a scope of its own: its
        FROM elements are matched against its own WHERE clause only.

        Args:
            statement: Select, compound select, Update or Delete.
            correlated: FROM names of the enclosing scope a nested select
                may correlate to.

        Yields:
            ``(table name, from name, criteria)`` triples.
        """
        if isinstance(statement, Select):
            froms, onclauses = _expand_froms(statement.get_final_froms())
            criteria = collect_criteria(statement.whereclause, *onclauses)
        elif isinstance(statement, (Update, Delete)):
            froms = [statement.table]
            criteria = collect_criteria(statement.whereclause)
        else:
            froms, criteria = [], {}

        names = set()
        for fromclause in froms:
            base = _base_table(fromclause)
            if not isinstance(base, Table):
                continue
            names.add(fromclause.name)
            if fromclause.name in correlated:
                continue
            if self.registry.is_tenant_scoped(base.name):
                yield base.name, fromclause.name, criteria

        for nested, correlates in _nested_selects(statement):
            yield from self.scoped_targets(nested, frozenset(names) if correlates else frozenset())

    def _require_context(self, operation: str, table: str) -> RequestContext:
        context = get_context_or_none()
        if context is None:
            raise ContextUnavailable(
                f"{operation} on tenant-scoped table '{table}' outside a request context"
            )
        return context

    def check_statement(self, state: ORMExecuteState) -> None:
        """Validate an ORM statement; called from ``do_orm_execute``.

        Raises:
            ContextUnavailable: No context is bound.
            MissingTenantFilter: The tenant constraint is absent (strict mode).
            CrossTenantAccess: The constraint names another tenant or business unit.
        """
        if state.is_relationship_load or state.is_column_load:
            return
        if _bypass.get() or state.execution_options.get(SKIP_OPTION, False):
            return

        statement = state.statement
        if state.is_insert:
            table = _base_table(statement.table).name
            if self.registry.is_tenant_scoped(table):
                self._check_insert(state, table, self._require_context("insert", table))
            return

        operation = "update" if state.is_update else "delete" if state.is_delete else "select"
        targets = list(self.scoped_targets(statement))
        if not targets:
            return
        context = self._require_context(operation, targets[0][0])

        for table, from_name, criteria in targets:
            tenant_values = criteria.get((from_name, self.registry.tenant_column))
            if not tenant_values:
                self._missing_filter(table, operation)
            else:
                self._check_tenant(table, tenant_values, context)

            if self.registry.is_business_unit_scoped(table) and context.business_unit_id:
                unit_values = criteria.get((from_name, self.registry.business_unit_column))
                if unit_values:
                    self._check_business_unit(table, unit_values, context)

    def _check_insert(self, state: ORMExecuteState, table: str, context: RequestContext) -> None:
        inline = _inline_rows(state.statement)
        params = state.parameters
        param_rows = params if isinstance(params, list) else [params] if params else []
        if param_rows:
            shared = inline[0] if len(inline) == 1 else {}
            rows = [{**shared, **row} for row in param_rows]
        else:
            rows = inline
        if not rows:
            raise MissingTenantFilter(table, "insert", self.registry.tenant_column)

        for row in rows:
            value = row.get(self.registry.tenant_column)
            if value is None:
                raise MissingTenantFilter(table, "insert", self.registry.tenant_column)
            self._check_tenant(table, [value], context)
            if self.registry.is_business_unit_scoped(table) and context.business_unit_id:
                self._check_business_unit(
                    table, [row.get(self.registry.business_unit_column)], context
                )

    def _missing_filter(self, table: str, operation: str) -> None:
        if self.is_strict:
            logger.error(
                "Tenant-scoped statement rejected: no tenant filter",
                table=table,
                operation=operation,
            )
            raise MissingTenantFilter(table, operation, self.registry.tenant_column)
        logger.warning(
            "Tenant-scoped statement without tenant filter",
            table=table,
            operation=operation,
            mode=self.mode,
        )

    def _check_tenant(self, table: str, values: list[Any], context: RequestContext) -> None:
        if context.tenant_id is None:
            # A platform super-principal may address any tenant explicitly.
            if context.is_superadmin:
                return
            raise ContextFieldMissing("tenant_id")
        for value in values:
            if value != context.tenant_id:
                logger.error(
                    "Cross-tenant access rejected",
                    table=table,
                    requested_tenant=value,
                )
                raise CrossTenantAccess(table, context.tenant_id, value)

    def _check_business_unit(self, table: str, values: list[Any], context: RequestContext) -> None:
        for value in values:
            if value != context.business_unit_id:
                logger.error(
                    "Cross-business-unit access rejected",
                    table=table,
                    requested_business_unit=value,
                )
                raise CrossTenantAccess(table, context.business_unit_id, value)

    # Flushes

    def check_flush(self, session: Session) -> None:
        """Validate pending writes; called from ``before_flush``.

        Raises:
            ContextUnavailable: No context is bound.
            MissingTenantFilter: An object has no tenant id.
            CrossTenantAccess: An object belongs to another tenant or business unit.
        """
        if _bypass.get():
            return

        pending = [(obj, "insert") for obj in session.new]
        pending += [(obj, "update") for obj in session.dirty if session.is_modified(obj)]
        pending += [(obj, "delete") for obj in session.deleted]

        for obj, operation in pending:
            state = inspect(obj)
            table = state.mapper.local_table.name
            if not self.registry.is_tenant_scoped(table):
                continue

            context = get_context_or_none()
            if context is None:
                raise ContextUnavailable(
                    f"{operation} on tenant-scoped table '{table}' outside a request context"
                )

            tenant_column = self.registry.tenant_column
            tenant_id = getattr(obj, tenant_column, None)
            if tenant_id is None:
                raise MissingTenantFilter(table, operation, tenant_column)
            history = state.attrs[tenant_column].history
            self._check_tenant(table, [tenant_id, *history.deleted], context)

            if self.registry.is_business_unit_scoped(table) and context.business_unit_id:
                unit_column = self.registry.business_unit_column
                self._check_business_unit(table, [getattr(obj, unit_column, None)], context)


def guard_session_info(guard: TenantGuard | None) -> dict[str, Any]:
    """``Session.info`` entries that attach ``guard`` to new sessions."""
    return {GUARD_INFO_KEY: guard} if guard is not None else {}


def _on_do_orm_execute(state: ORMExecuteState) -> None:
    guard = state.session.info.get(GUARD_INFO_KEY)
    if guard is not None:
        guard.check_statement(state)


def _on_before_flush(session: Session, flush_context: Any, instances: Any) -> None:
    guard = session.info.get(GUARD_INFO_KEY)
    if guard is not None:
        guard.check_flush(session)


def register_tenant_guard_listeners(session_class: type[Session] = TenantScopedSession) -> None:
    """Attach the guard listeners to a session class.

    Idempotent. Called by the database manager when it builds its session
    factory.

    Args:
        session_class: Session class to instrument.
    """
    if not event.contains(session_class, "do_orm_execute", _on_do_orm_execute):
        event.listen(session_class, "do_orm_execute", _on_do_orm_execute)
    if not event.contains(session_class, "before_flush", _on_before_flush):
        event.listen(session_class, "before_flush", _on_before_flush)
