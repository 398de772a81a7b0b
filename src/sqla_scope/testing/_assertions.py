"""Assertion helpers for testing sqla-scope scoping behavior."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select
from sqlalchemy.orm import Session

from sqla_scope.compiler._query import scope_query
from sqla_scope.policy._registry import ScopeRegistry, get_default_registry
from sqla_scope.schema._schema import Schema

__all__ = ["assert_denied", "assert_query_contains", "assert_scoped"]


def assert_scoped(
    session: Session,
    stmt: Select[Any],
    *,
    schema: Schema,
    context: Any,
    action: str,
    expected_ids: set[Any] | None = None,
    registry: ScopeRegistry | None = None,
) -> None:
    """Assert that a scoped query returns rows.

    Applies ``scope_query`` and executes the statement. Fails with
    ``AssertionError`` if zero rows are returned. Optionally checks that
    the returned primary keys are exactly ``expected_ids``.

    Example::

        assert_scoped(
            session, select(Comment),
            schema=schema, context={"user": alice}, action="read",
            expected_ids={1, 2},
        )
    """
    target_registry = registry if registry is not None else get_default_registry()
    scoped_stmt = scope_query(
        stmt,
        schema=schema,
        context=context,
        action=action,
        registry=target_registry,
    )
    results = session.execute(scoped_stmt).scalars().all()

    if not results:
        raise AssertionError(
            f"expected scoped query to return rows, but got 0 "
            f"(context={context!r}, action={action!r})"
        )

    if expected_ids is not None:
        ids = {row.id for row in results}
        if ids != expected_ids:
            raise AssertionError(
                f"expected ids {sorted(expected_ids)!r}, but got {sorted(ids)!r} "
                f"(context={context!r}, action={action!r})"
            )


def assert_denied(
    session: Session,
    stmt: Select[Any],
    *,
    schema: Schema,
    context: Any,
    action: str,
    registry: ScopeRegistry | None = None,
) -> None:
    """Assert that a scoped query returns zero rows.

    Example::

        assert_denied(session, select(Comment), schema=schema,
                      context={"user": None}, action="delete")
    """
    target_registry = registry if registry is not None else get_default_registry()
    scoped_stmt = scope_query(
        stmt,
        schema=schema,
        context=context,
        action=action,
        registry=target_registry,
    )
    count = len(session.execute(scoped_stmt).scalars().all())

    if count != 0:
        raise AssertionError(
            f"expected zero rows but got {count} (context={context!r}, action={action!r})"
        )


def assert_query_contains(
    stmt: Select[Any],
    *,
    schema: Schema,
    context: Any,
    action: str,
    text: str,
    registry: ScopeRegistry | None = None,
) -> None:
    """Assert that the compiled SQL of a scoped query contains *text*.

    Structural check that needs no database connection.

    Example::

        assert_query_contains(
            select(Comment), schema=schema, context={"user": alice},
            action="read", text="LEFT OUTER JOIN posts AS comment_post",
        )
    """
    target_registry = registry if registry is not None else get_default_registry()
    scoped_stmt = scope_query(
        stmt,
        schema=schema,
        context=context,
        action=action,
        registry=target_registry,
    )
    compiled_sql = str(scoped_stmt.compile(compile_kwargs={"literal_binds": True}))

    if text not in compiled_sql:
        raise AssertionError(f"{text!r} not found in compiled SQL:\n{compiled_sql}")
