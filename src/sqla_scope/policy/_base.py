"""ScopeRegistration dataclass — metadata for a registered scope."""

from __future__ import annotations

from dataclasses import dataclass

from sqla_scope.expression._ast import Expression

__all__ = ["ScopeRegistration"]


@dataclass(frozen=True, slots=True)
class ScopeRegistration:
    """A single registered scope expression with its metadata.

    Attributes:
        resource_type: The SQLAlchemy model class this scope applies to.
        action: The action string (e.g., "read", "update", "delete").
        expression: The scope expression, built once at registration.
        name: The scope name (for debugging/logging).
        description: Human-readable description (from docstring).
    """

    resource_type: type
    action: str
    expression: Expression
    name: str
    description: str
