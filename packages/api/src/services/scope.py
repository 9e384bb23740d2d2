# This project was developed with assistance from AI tools.
"""Shared data scope filtering for service queries.

Centralizes the DataScope -> SQL WHERE logic so that each resource service
applies the same rules. The join_to_application parameter handles the
different join paths needed for Application queries vs. child-entity
queries (RFIs, decisions, etc.).
"""

from db import Application, Person
from sqlalchemy import exists, false, or_, select

from ..schemas.auth import DataScope, UserContext


def application_visibility(scope: DataScope):
    """Return the WHERE clause restricting Application rows to ``scope``, or None for all."""
    if scope.full_pipeline:
        return None
    if scope.own_data_only and scope.user_id:
        listed = exists(
            select(Person.id).where(
                Person.application_id == Application.id,
                Person.user_id == scope.user_id,
            )
        )
        return or_(Application.created_by == scope.user_id, listed)
    if scope.broker_id:
        return or_(
            Application.broker_id == scope.broker_id,
            Application.created_by == (scope.user_id or scope.broker_id),
        )
    return false()


def apply_data_scope(stmt, scope: DataScope, user: UserContext, *, join_to_application=None):
    """Apply data scope filtering to a SQLAlchemy query.

    Args:
        stmt: A SQLAlchemy select statement.
        scope: The caller's DataScope.
        user: The caller's UserContext.
        join_to_application: ORM relationship attribute to join to reach
            Application (e.g., ``RFI.application``). Pass ``None``
            when querying Application directly.

    Returns:
        The filtered statement.
    """
    clause = application_visibility(scope)
    if clause is None:
        return stmt
    if join_to_application is not None:
        stmt = stmt.join(join_to_application)
    return stmt.where(clause)
