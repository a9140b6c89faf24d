"""Company scoping for data-access queries.

Every query against company-scoped tables must be narrowed to the caller's
scope predicate. An empty scope matches nothing.
"""

from collections.abc import Collection
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import false
from sqlalchemy.sql import Delete, Select, Update

from erpscope.core.access.errors import AccessDeniedError

StatementT = TypeVar("StatementT", Select, Update, Delete)  # type: ignore[type-arg]


def apply_company_scope(
    statement: StatementT,
    column: Any,
    allowed_company_ids: Collection[UUID],
) -> StatementT:
    """Restrict a statement to rows whose company is in scope.

    Usage:
        scope = await resolver.scope_predicate(user_id)
        stmt = apply_company_scope(select(SalesOrder), SalesOrder.company_id, scope)

    Args:
        statement: SELECT, UPDATE or DELETE statement.
        column: The table's company_id column.
        allowed_company_ids: Result of the scope predicate.

    Returns:
        The narrowed statement.
    """
    if not allowed_company_ids:
        return statement.where(false())
    return statement.where(column.in_(sorted(allowed_company_ids)))


def ensure_in_scope(company_id: UUID | None, allowed_company_ids: Collection[UUID]) -> UUID:
    """Check that a write targets a company in scope.

    Raises:
        AccessDeniedError: If the company is missing or outside the scope.
    """
    if company_id is None or company_id not in allowed_company_ids:
        raise AccessDeniedError(
            "Company is outside the caller's scope",
            details={"company_id": str(company_id) if company_id else None},
        )
    return company_id
