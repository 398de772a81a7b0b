"""Path and scope expression trees.

These are the already-parsed structures handed over by whatever front end
declares scopes. Plain Python values are accepted wherever a path is
expected and normalised by ``as_path()``::

    as_path(["**", "user", "name"])
    # (WILDCARD, Name("user"), Name("name"))

    as_path([["post"], ["**", "user"]])
    # (Alternatives(((Name("post"),), (WILDCARD, Name("user")))),)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Union

from sqla_scope._types import Operator
from sqla_scope.exceptions import NonNegatableOperatorError, UnsupportedOperatorError

__all__ = [
    "OPERATORS",
    "SELF",
    "WILDCARD",
    "AllOf",
    "Alternatives",
    "AnyOf",
    "ConfigLookup",
    "Expression",
    "Leaf",
    "LiteralValue",
    "Name",
    "Not",
    "Path",
    "PathStep",
    "PathValue",
    "SelfToken",
    "ValueSpec",
    "Wildcard",
    "as_path",
    "as_value",
    "negate",
]

OPERATORS: frozenset[str] = frozenset({"eq", "neq", "gt", "gte", "lt", "lte", "in", "not_in"})

_INVERSE_OPERATORS: dict[str, Operator] = {
    "eq": "neq",
    "neq": "eq",
    "in": "not_in",
    "not_in": "in",
}


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Name:
    """A named step. ``alias`` overrides the binding alias of this hop."""

    name: str
    alias: str | None = None

    @property
    def binding(self) -> str:
        return self.alias or self.name


@dataclass(frozen=True, slots=True)
class Wildcard:
    """``**``: ascend to a named ancestor along the shortest relation chain."""

    def __repr__(self) -> str:
        return "WILDCARD"


@dataclass(frozen=True, slots=True)
class SelfToken:
    """``@``: the current entity. A named token only matches that entity."""

    entity: str | None = None

    def matches(self, entity_name: str) -> bool:
        return self.entity is None or self.entity == entity_name


@dataclass(frozen=True, slots=True)
class Alternatives:
    """Several sub-paths evaluated independently and merged (fan-out)."""

    paths: tuple[Path, ...]


PathStep = Union[Name, Wildcard, SelfToken, Alternatives]
Path = tuple[PathStep, ...]

WILDCARD = Wildcard()
SELF = SelfToken()


def as_path(steps: Any) -> Path:
    """Normalise *steps* into a ``Path``.

    Strings become steps (``"**"`` is the wildcard, ``"@"`` the self
    token), ``(name, alias)`` tuples become aliased names, step objects
    pass through, and nested lists become ``Alternatives``. A path made
    only of lists is one set of alternatives.
    """
    if steps is None:
        return ()
    if isinstance(steps, (str, Name, Wildcard, SelfToken, Alternatives)):
        return (_as_step(steps),)
    items = list(steps)
    if items and all(isinstance(item, list) for item in items):
        return (Alternatives(tuple(as_path(item) for item in items)),)
    return tuple(_as_step(item) for item in items)


def _as_step(item: Any) -> PathStep:
    if isinstance(item, (Name, Wildcard, SelfToken, Alternatives)):
        return item
    if isinstance(item, str):
        if item == "**":
            return WILDCARD
        if item == "@":
            return SELF
        return Name(item)
    if isinstance(item, list):
        return Alternatives(tuple(as_path(sub) for sub in item))
    if isinstance(item, tuple) and len(item) == 2 and all(isinstance(p, str) for p in item):
        return Name(item[0], item[1])
    raise TypeError(f"Cannot use {item!r} as a path step")


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LiteralValue:
    value: Any


@dataclass(frozen=True, slots=True)
class ConfigLookup:
    """A value read from registered application settings."""

    app: str
    env: str
    key: str


@dataclass(frozen=True, slots=True)
class PathValue:
    """A value resolved by evaluating a path against the authorization context."""

    path: Path

    def __init__(self, path: Any) -> None:
        object.__setattr__(self, "path", as_path(path))


ValueSpec = Union[LiteralValue, ConfigLookup, PathValue]


def as_value(value: Any) -> ValueSpec:
    """Wrap plain values as ``LiteralValue``; value specs pass through."""
    if isinstance(value, (LiteralValue, ConfigLookup, PathValue)):
        return value
    if isinstance(value, list):
        value = tuple(value)
    return LiteralValue(value)


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


class _Composable:
    """``&``, ``|`` and ``~`` composition shared by every expression node."""

    __slots__ = ()

    def __and__(self, other: Expression) -> AllOf:
        return AllOf(_flatten(AllOf, [self, other]))

    def __or__(self, other: Expression) -> AnyOf:
        return AnyOf(_flatten(AnyOf, [self, other]))

    def __invert__(self) -> Not:
        return Not(self)  # type: ignore[arg-type]


@dataclass(frozen=True, slots=True)
class AllOf(_Composable):
    """Every child must hold. ``AllOf([])`` matches nothing."""

    children: tuple[Expression, ...]

    def __init__(self, children: Iterable[Expression] = ()) -> None:
        object.__setattr__(self, "children", tuple(children))


@dataclass(frozen=True, slots=True)
class AnyOf(_Composable):
    """At least one child must hold. ``AnyOf([])`` matches nothing."""

    children: tuple[Expression, ...]

    def __init__(self, children: Iterable[Expression] = ()) -> None:
        object.__setattr__(self, "children", tuple(children))


@dataclass(frozen=True, slots=True)
class Not(_Composable):
    expression: Expression


@dataclass(frozen=True, slots=True)
class Leaf(_Composable):
    """Compare the value found at ``prop`` with ``value`` using ``op``.

    Example::

        Leaf("eq", ["**", "user", "name"], "Alice")
        Leaf("in", ["post"], PathValue(["current_user", "posts"]))
    """

    op: Operator
    prop: Path
    value: ValueSpec

    def __init__(self, op: Operator, prop: Any, value: Any = None) -> None:
        if op not in OPERATORS:
            raise UnsupportedOperatorError(op=op)
        object.__setattr__(self, "op", op)
        object.__setattr__(self, "prop", as_path(prop))
        object.__setattr__(self, "value", as_value(value))


Expression = Union[AllOf, AnyOf, Not, Leaf]


def _flatten(kind: type, items: list[Any]) -> list[Expression]:
    flat: list[Expression] = []
    for item in items:
        if isinstance(item, kind):
            flat.extend(item.children)
        else:
            flat.append(item)
    return flat


def negate(expression: Expression) -> Expression:
    """Push a negation down to the leaves.

    Leaves invert their operator (``eq``/``neq``, ``in``/``not_in``);
    double negation cancels; ``AllOf``/``AnyOf`` follow De Morgan.

    Raises:
        NonNegatableOperatorError: If a leaf operator has no inverse.
    """
    if isinstance(expression, Leaf):
        inverse = _INVERSE_OPERATORS.get(expression.op)
        if inverse is None:
            raise NonNegatableOperatorError(op=expression.op)
        return Leaf(inverse, expression.prop, expression.value)
    if isinstance(expression, Not):
        return expression.expression
    if isinstance(expression, AllOf):
        return AnyOf(negate(child) for child in expression.children)
    if isinstance(expression, AnyOf):
        return AllOf(negate(child) for child in expression.children)
    raise TypeError(f"Not an expression: {expression!r}")
