"""Audit logging for scope decisions."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from sqla_scope.policy._base import ScopeRegistration

if TYPE_CHECKING:
    from sqla_scope.compiler._builder import QueryBuilder

__all__ = ["log_check_decision", "log_scope_evaluation", "log_unknown_field"]

logger = logging.getLogger("sqla_scope")


def log_scope_evaluation(
    *,
    entity: type,
    action: str,
    context: Any,
    scopes: Sequence[ScopeRegistration],
    builder: QueryBuilder,
) -> None:
    """Log a scope compilation decision.

    Logging levels:
    - INFO: Summary (entity, action, scope count)
    - DEBUG: Detailed (which scopes matched, joins and predicate)
    - WARNING: No scope found (deny-by-default triggered)

    Example::

        log_scope_evaluation(
            entity=Comment,
            action="read",
            context={"user": current_user},
            scopes=registrations,
            builder=compiled,
        )
    """
    entity_name = entity.__name__
    scope_count = len(scopes)

    if scope_count == 0:
        logger.warning(
            "No scope registered for (%s, %r) — deny-by-default applied",
            entity_name,
            action,
        )
        return

    logger.info(
        "Scope evaluation: %s.%s — %d scope(s) applied for context %r",
        entity_name,
        action,
        scope_count,
        context,
    )

    if logger.isEnabledFor(logging.DEBUG):
        scope_names = [s.name for s in scopes]
        logger.debug(
            "Scopes matched for %s.%s: %s — joins: %s — predicate: %s",
            entity_name,
            action,
            scope_names,
            [j.alias for j in builder.joins],
            builder.predicate,
        )


def log_check_decision(
    *,
    resource: Any,
    action: str,
    scopes: Sequence[ScopeRegistration],
    allowed: bool,
) -> None:
    """Log the outcome of an in-memory point check at DEBUG."""
    logger.debug(
        "Point check: %s.%s — %s after %d scope(s)",
        type(resource).__name__,
        action,
        "allowed" if allowed else "denied",
        len(scopes),
    )


def log_unknown_field(*, entity: str, field: str) -> None:
    """Log a path segment that names no field of *entity*.

    Goes to the ``sqla_scope.unknown_field`` logger so it can be silenced
    independently of the audit records.
    """
    unknown_logger = logging.getLogger("sqla_scope.unknown_field")
    unknown_logger.warning(
        "Unknown field %r on entity %r — compiled to an empty set",
        field,
        entity,
    )
