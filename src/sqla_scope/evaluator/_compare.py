"""Fuzzy, identity-aware comparison used by in-memory authorization checks."""

from __future__ import annotations

import operator
from collections.abc import Mapping
from typing import Any

from sqla_scope._types import IdentityLike, Operator
from sqla_scope.exceptions import IncomparableValuesError, UnsupportedOperatorError

__all__ = ["compare", "comparable", "has_identity", "identity_of"]

_ORDERING: dict[str, Any] = {
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}

_SCALARS = (str, bytes, int, float, bool)


def has_identity(value: Any) -> bool:
    """Whether *value* exposes an ``id`` (attribute or mapping key)."""
    if value is None or isinstance(value, _SCALARS):
        return False
    if isinstance(value, Mapping):
        return "id" in value
    return isinstance(value, IdentityLike)


def identity_of(value: Any) -> Any:
    """The ``id`` of an identity-bearing value. Call ``has_identity`` first."""
    if isinstance(value, Mapping):
        return value["id"]
    return value.id


def comparable(value: Any) -> Any:
    """Reduce identity-bearing values (and lists of them) to their ids."""
    if isinstance(value, (list, tuple)):
        return [comparable(item) for item in value]
    if has_identity(value):
        return identity_of(value)
    return value


def compare(left: Any, right: Any, op: Operator) -> bool:
    """Compare two evaluated values.

    ``eq`` is identity-aware: two values exposing an ``id`` are equal when
    their ids are, and an id also equals a bare scalar with the same value.
    A list on the left is existential: ``[]`` matches anything and a
    non-empty list matches when any element does. ``None`` only equals
    ``None``. ``neq`` negates ``eq`` for single values; a list on the left
    matches when any element differs, and ``[]`` matches nothing.

    ``in``/``not_in`` reduce both sides to ids or scalars; a list on the left
    tests intersection (``not_in``: any element outside), a scalar tests
    membership. Lists behave like the rows of a to-many join, so a negated
    leaf decides the same way in memory as in compiled SQL.

    Ordering operators compare directly.

    Raises:
        IncomparableValuesError: Ordering with ``None`` or incomparable types.
        UnsupportedOperatorError: Unknown operator.

    Example::

        compare({"id": "1"}, "1", "eq")           # True
        compare([user_a, user_b], user_b, "eq")   # True
        compare(post, [1, 2], "in")               # post.id in [1, 2]
    """
    if op == "eq":
        return _eq(left, right)
    if op == "neq":
        return _neq(left, right)
    if op == "in":
        return _in(left, right)
    if op == "not_in":
        return _not_in(left, right)
    ordering = _ORDERING.get(op)
    if ordering is None:
        raise UnsupportedOperatorError(op=op)
    if left is None or right is None:
        raise IncomparableValuesError(left=left, right=right, op=op)
    try:
        return bool(ordering(left, right))
    except TypeError as exc:
        raise IncomparableValuesError(left=left, right=right, op=op) from exc


def _eq(left: Any, right: Any) -> bool:
    if isinstance(left, (list, tuple)):
        if not left or left == right:
            return True
        return any(_eq(item, right) for item in left)
    if left is None or right is None:
        return left is None and right is None
    if left is right:
        return True
    left_has_id = has_identity(left)
    right_has_id = has_identity(right)
    if left_has_id and right_has_id:
        return bool(identity_of(left) == identity_of(right))
    if left_has_id:
        return bool(identity_of(left) == right)
    if right_has_id:
        return bool(left == identity_of(right))
    return bool(left == right)


def _in(left: Any, right: Any) -> bool:
    values = comparable(right) if isinstance(right, (list, tuple)) else [comparable(right)]
    if isinstance(left, (list, tuple)):
        return any(item in values for item in comparable(left))
    return comparable(left) in values


def _neq(left: Any, right: Any) -> bool:
    if isinstance(left, (list, tuple)):
        if not left or left == right:
            return False
        return any(not _eq(item, right) for item in left)
    return not _eq(left, right)


def _not_in(left: Any, right: Any) -> bool:
    values = comparable(right) if isinstance(right, (list, tuple)) else [comparable(right)]
    if isinstance(left, (list, tuple)):
        return any(item not in values for item in comparable(left))
    return comparable(left) not in values
