"""QueryBuilder — immutable join/filter accumulator and its combinators.

Two ways of combining fragments are kept apart on purpose:

- ``combine_predicates()`` merges builders over the *same* row set. Joins
  are shared (deduplicated) and filters are wrapped in one ``And``/``Or``.
- ``combine_queries()`` combines finished ``Select`` statements with
  ``INTERSECT``/``UNION``. Each side keeps its own joins and aliases.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any, Union

from sqlalchemy import ColumnElement, Select, and_, false, intersect, or_, select, true, union
from sqlalchemy.orm import aliased

from sqla_scope._types import CombineOp, JoinKind, Operator, SetOp
from sqla_scope.exceptions import ScopeCompilationError, UnsupportedOperatorError

__all__ = [
    "EMPTY_SET",
    "And",
    "Comparison",
    "EmptySet",
    "FilterAtom",
    "JoinSpec",
    "Or",
    "QueryBuilder",
    "apply",
    "combine_predicates",
    "combine_queries",
]


@dataclass(frozen=True, slots=True)
class JoinSpec:
    """One aliased join: ``alias.join_column == parent_alias.parent_column``.

    Two specs are the same join only when every field matches.
    """

    kind: JoinKind
    target_entity: type
    alias: str
    join_column: str
    parent_alias: str
    parent_column: str


@dataclass(frozen=True, slots=True)
class Comparison:
    alias: str
    column: str
    op: Operator
    value: Any


@dataclass(frozen=True, slots=True)
class EmptySet:
    """Matches no rows."""

    def __repr__(self) -> str:
        return "EMPTY_SET"


@dataclass(frozen=True, slots=True)
class And:
    items: tuple[FilterAtom, ...]


@dataclass(frozen=True, slots=True)
class Or:
    items: tuple[FilterAtom, ...]


FilterAtom = Union[Comparison, EmptySet, And, Or]

EMPTY_SET = EmptySet()


@dataclass(frozen=True, slots=True)
class QueryBuilder:
    """Joins and filters accumulated for one root entity.

    Builders are values: every method returns a new builder.

    Example::

        builder = (
            QueryBuilder("comment")
            .with_join(JoinSpec("left", Post, "comment_post", "id", "comment", "post_id"))
            .with_filter(Comparison("comment_post", "user_id", "eq", 1))
        )
        stmt = apply(builder, select(Comment))
    """

    root_alias: str
    joins: tuple[JoinSpec, ...] = ()
    filters: tuple[FilterAtom, ...] = ()

    def with_join(self, join: JoinSpec) -> QueryBuilder:
        """Add *join* unless an identical one is already present."""
        if join in self.joins:
            return self
        return replace(self, joins=self.joins + (join,))

    def with_filter(self, atom: FilterAtom) -> QueryBuilder:
        return replace(self, filters=self.filters + (atom,))

    def empty_set(self) -> QueryBuilder:
        """Keep the joins, match nothing."""
        return self.with_filter(EMPTY_SET)

    @property
    def predicate(self) -> FilterAtom:
        """All filters as a single atom (an empty ``And`` when there are none)."""
        if len(self.filters) == 1:
            return self.filters[0]
        return And(self.filters)


# ---------------------------------------------------------------------------
# Predicate-level combination
# ---------------------------------------------------------------------------


def combine_predicates(
    op: CombineOp,
    fragments: Iterable[QueryBuilder | None],
) -> QueryBuilder | None:
    """AND/OR several builders over the same root.

    ``None`` fragments are skipped and a fragment equal to one already seen
    adds nothing, so ``combine_predicates(op, [q, q]) == q`` and
    ``combine_predicates(op, [q, None]) == q``. Joins are merged in order
    without duplicates.

    Raises:
        ScopeCompilationError: If the fragments have different roots.
        ValueError: If *op* is not ``"and"`` or ``"or"``.
    """
    if op not in ("and", "or"):
        raise ValueError(f"combine_predicates op must be 'and' or 'or', got {op!r}")

    unique: list[QueryBuilder] = []
    for fragment in fragments:
        if fragment is None or fragment in unique:
            continue
        if unique and fragment.root_alias != unique[0].root_alias:
            raise ScopeCompilationError(
                f"Cannot combine fragments rooted at {unique[0].root_alias!r} "
                f"and {fragment.root_alias!r}"
            )
        unique.append(fragment)

    if not unique:
        return None
    if len(unique) == 1:
        return unique[0]

    merged = QueryBuilder(unique[0].root_alias)
    for fragment in unique:
        for join in fragment.joins:
            merged = merged.with_join(join)
    node = And if op == "and" else Or
    return merged.with_filter(node(tuple(f.predicate for f in unique)))


# ---------------------------------------------------------------------------
# Query-level combination
# ---------------------------------------------------------------------------


def combine_queries(op: SetOp, queries: Iterable[Select[Any] | None]) -> Select[Any] | None:
    """INTERSECT (``"all"``) or UNION (``"any"``) finished statements.

    The result selects the entity back out of the compound subquery, so it
    can itself be combined again or have more criteria applied. ``None`` is
    skipped and statements that ``compare()`` equal are only used once.

    Example::

        by_post = apply(compile_scope(schema, Comment, leaf_a), select(Comment))
        by_user = apply(compile_scope(schema, Comment, leaf_b), select(Comment))
        stmt = combine_queries("any", [by_post, by_user])
    """
    if op not in ("all", "any"):
        raise ValueError(f"combine_queries op must be 'all' or 'any', got {op!r}")

    statements: list[Select[Any]] = []
    for query in queries:
        if query is None or any(query.compare(seen) for seen in statements):
            continue
        statements.append(query)

    if not statements:
        return None
    if len(statements) == 1:
        return statements[0]

    entity = statements[0].column_descriptions[0]["entity"]
    compound = intersect(*statements) if op == "all" else union(*statements)
    return select(aliased(entity, compound.subquery()))


# ---------------------------------------------------------------------------
# Applying a builder
# ---------------------------------------------------------------------------


def apply(builder: QueryBuilder, stmt: Select[Any], entity: type | None = None) -> Select[Any]:
    """Apply *builder*'s joins and filters to *stmt*.

    The root alias is bound to *entity* (by default the first entity the
    statement selects). Each join target is an ``aliased()`` entity named by
    its binding alias. The statement is made ``DISTINCT`` since to-many
    joins repeat root rows.

    Raises:
        ScopeCompilationError: If one alias is bound to two different joins,
            or a filter refers to an alias that was never joined.
    """
    if entity is None:
        entity = stmt.column_descriptions[0]["entity"]
        if entity is None:
            raise ScopeCompilationError("Cannot apply a scope to a statement without an entity")

    bound: dict[str, Any] = {builder.root_alias: entity}
    joined: dict[str, JoinSpec] = {}
    for join in builder.joins:
        existing = joined.get(join.alias)
        if existing is not None:
            if existing == join:
                continue
            raise ScopeCompilationError(
                f"Alias {join.alias!r} is bound to both {existing!r} and {join!r}"
            )
        if join.alias in bound:
            raise ScopeCompilationError(f"Alias {join.alias!r} clashes with the root alias")
        parent = _bound(bound, join.parent_alias)
        target = aliased(join.target_entity, name=join.alias)
        onclause = getattr(target, join.join_column) == getattr(parent, join.parent_column)
        stmt = stmt.join(target, onclause, isouter=join.kind == "left")
        bound[join.alias] = target
        joined[join.alias] = join

    return stmt.where(_compile(builder.predicate, bound)).distinct()


def _bound(bound: dict[str, Any], alias: str) -> Any:
    try:
        return bound[alias]
    except KeyError:
        raise ScopeCompilationError(f"Alias {alias!r} is not joined") from None


def _compile(atom: FilterAtom, bound: dict[str, Any]) -> ColumnElement[bool]:
    if isinstance(atom, EmptySet):
        return false()
    if isinstance(atom, And):
        if not atom.items:
            return true()
        return and_(*(_compile(item, bound) for item in atom.items))
    if isinstance(atom, Or):
        if not atom.items:
            return false()
        return or_(*(_compile(item, bound) for item in atom.items))
    if isinstance(atom, Comparison):
        column = getattr(_bound(bound, atom.alias), atom.column)
        return _comparison(column, atom.op, atom.value)
    raise TypeError(f"Not a filter atom: {atom!r}")


def _comparison(column: Any, op: Operator, value: Any) -> ColumnElement[bool]:
    many = isinstance(value, (list, tuple, set, frozenset))
    if op == "eq":
        if value is None:
            return column.is_(None)
        return column.in_(list(value)) if many else column == value
    if op == "neq":
        if value is None:
            return column.is_not(None)
        return column.not_in(list(value)) if many else column != value
    if op == "in":
        return column.in_(list(value) if many else [value])
    if op == "not_in":
        return column.not_in(list(value) if many else [value])
    if op == "gt":
        return column > value
    if op == "gte":
        return column >= value
    if op == "lt":
        return column < value
    if op == "lte":
        return column <= value
    raise UnsupportedOperatorError(op=op)
