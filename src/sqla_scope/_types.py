"""Shared protocols and type aliases for sqla-scope."""

from __future__ import annotations

from typing import Literal, Protocol, runtime_checkable

from sqlalchemy import ColumnElement

__all__ = [
    "CombineOp",
    "FilterExpression",
    "IdentityLike",
    "JoinKind",
    "OnMissingScope",
    "OnUnknownField",
    "OnUnloadedRelationship",
    "Operator",
    "SetOp",
]

# Comparison operators understood by the compiler and the comparator.
Operator = Literal["eq", "neq", "gt", "gte", "lt", "lte", "in", "not_in"]

# Predicate-level combination (same row set, shared joins).
CombineOp = Literal["and", "or"]

# Subquery-level combination (independent joins): INTERSECT / UNION.
SetOp = Literal["all", "any"]

# Valid values for ScopeConfig.join_kind.
JoinKind = Literal["inner", "left"]

# Valid values for ScopeConfig.on_missing_scope.
OnMissingScope = Literal["deny", "raise"]

# Valid values for ScopeConfig.on_unknown_field.
OnUnknownField = Literal["deny", "warn"]

# Valid values for ScopeConfig.on_unloaded_relationship.
OnUnloadedRelationship = Literal["deny", "raise", "warn"]


@runtime_checkable
class IdentityLike(Protocol):
    """Structural type for identity-bearing values.

    Any object with an ``id`` attribute satisfies this protocol.
    Works with SQLAlchemy models, dataclasses, Pydantic models,
    named tuples — no inheritance required. Two identity-bearing
    values are considered the same entity when their ids match.

    Example::

        @dataclass
        class User:
            id: int
            name: str

        user = User(id=1, name="Alice")
        assert isinstance(user, IdentityLike)
    """

    @property
    def id(self) -> int | str: ...


# The output type of a compiled scope once applied.
FilterExpression = ColumnElement[bool]
