"""compile_scope() — turn scope expressions into QueryBuilder state."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqla_scope._types import Operator
from sqla_scope.compiler._builder import (
    EMPTY_SET,
    Comparison,
    EmptySet,
    JoinSpec,
    QueryBuilder,
    combine_predicates,
)
from sqla_scope.config._config import ScopeConfig, get_global_config
from sqla_scope.evaluator._compare import has_identity, identity_of
from sqla_scope.evaluator._evaluate import Evaluator
from sqla_scope.exceptions import ScopeCompilationError, UnsupportedFilterValueError
from sqla_scope.expression._ast import (
    AllOf,
    Alternatives,
    AnyOf,
    Expression,
    Leaf,
    Name,
    Not,
    Path,
    SelfToken,
    Wildcard,
    negate,
)
from sqla_scope.schema._metadata import Attribute, BelongsTo, EntityMetadata, HasMany, Unknown
from sqla_scope.schema._schema import Schema

__all__ = ["compile_scope", "safe_value"]

logger = logging.getLogger(__name__)

_CONTAINERS = (list, tuple, set, frozenset, Mapping)


def compile_scope(
    schema: Schema,
    entity: type | str,
    expression: Expression,
    params: Any = None,
    *,
    config: ScopeConfig | None = None,
) -> QueryBuilder:
    """Compile *expression* for *entity* into a ``QueryBuilder``.

    Leaf values are resolved once against *params* (the authorization
    context) before the leaf path is walked. Unknown field names and
    unreachable ancestors compile to an always-false filter.

    Args:
        schema: The schema the expression is written against.
        entity: Root entity, as a mapped class or entity name.
        expression: The scope expression.
        params: Authorization context for ``PathValue`` leaf values.
        config: Optional config; defaults to the global config.

    Returns:
        A builder rooted at the entity name.

    Raises:
        UnsupportedFilterValueError: If a resolved value cannot be bound.
        NonNegatableOperatorError: If a negated leaf has no inverse operator.

    Example::

        builder = compile_scope(
            schema,
            Comment,
            Leaf("eq", ["**", "user"], PathValue(["user"])),
            {"user": current_user},
        )
        stmt = apply(builder, select(Comment))
    """
    cfg = config if config is not None else get_global_config()
    root = schema.entity(entity)
    compiler = _ScopeCompiler(schema, params, cfg)
    builder = compiler.compile(root, expression)
    return builder if builder is not None else QueryBuilder(root.name).empty_set()


def safe_value(entity: str, field: str, op: str, value: Any) -> Any:
    """Reduce *value* to something that can be bound against a key column.

    Identity-bearing values become their ids, lists become tuples and
    ``None`` stays ``None``. An empty list yields ``EMPTY_SET``.

    Raises:
        UnsupportedFilterValueError: For lists mixing identity-bearing
            values and scalars, and for nested containers.
    """
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        if not value:
            return EMPTY_SET
        if all(has_identity(item) for item in value):
            return tuple(identity_of(item) for item in value)
        if any(
            item is None or has_identity(item) or isinstance(item, _CONTAINERS) for item in value
        ):
            raise UnsupportedFilterValueError(entity=entity, field=field, op=op, value=value)
        return tuple(value)
    if has_identity(value):
        return identity_of(value)
    if isinstance(value, _CONTAINERS):
        raise UnsupportedFilterValueError(entity=entity, field=field, op=op, value=value)
    return value


class _ScopeCompiler:
    def __init__(self, schema: Schema, params: Any, config: ScopeConfig) -> None:
        self._schema = schema
        self._params = params
        self._config = config
        self._evaluator = Evaluator(schema, config=config)

    def compile(self, entity: EntityMetadata, expression: Expression) -> QueryBuilder | None:
        if isinstance(expression, Leaf):
            return self._leaf(entity, expression)
        if isinstance(expression, AllOf):
            if not expression.children:
                return QueryBuilder(entity.name).empty_set()
            return combine_predicates("and", (self.compile(entity, c) for c in expression.children))
        if isinstance(expression, AnyOf):
            if not expression.children:
                return QueryBuilder(entity.name).empty_set()
            return combine_predicates("or", (self.compile(entity, c) for c in expression.children))
        if isinstance(expression, Not):
            return self.compile(entity, negate(expression.expression))
        raise TypeError(f"Not an expression: {expression!r}")

    def _leaf(self, entity: EntityMetadata, leaf: Leaf) -> QueryBuilder:
        value = self._evaluator.value(self._params, leaf.value)
        return self._walk(entity, entity.name, leaf.prop, leaf.op, value, QueryBuilder(entity.name))

    def _walk(
        self,
        entity: EntityMetadata,
        binding: str,
        path: Path,
        op: Operator,
        value: Any,
        builder: QueryBuilder,
    ) -> QueryBuilder:
        if not path or (len(path) == 1 and isinstance(path[0], Wildcard)):
            return self._filter_key(entity, binding, op, value, builder)

        head, rest = path[0], path[1:]

        if isinstance(head, Alternatives):
            branches = [
                self._walk(entity, binding, alt + rest, op, value, builder) for alt in head.paths
            ]
            return combine_predicates("or", branches) or builder.empty_set()

        if isinstance(head, Wildcard):
            ancestor = rest[0]
            if not isinstance(ancestor, Name):
                return builder.empty_set()
            resolved = self._schema.shortest_path(entity.name, ancestor.name)
            if resolved is None:
                return self._unknown(entity, ancestor.name, builder)
            steps = tuple(Name(name) for name in resolved)
            if steps and steps[-1].name == ancestor.name:
                steps = steps[:-1] + (ancestor,)
            return self._walk(entity, binding, steps + rest[1:], op, value, builder)

        if isinstance(head, SelfToken):
            if not head.matches(entity.name):
                return builder.empty_set()
            return self._walk(entity, binding, rest, op, value, builder)

        if not isinstance(head, Name):
            raise TypeError(f"Unsupported path step {head!r}")

        field = entity.field(head.name)
        if isinstance(field, Unknown):
            if head.name != entity.name:
                return self._unknown(entity, head.name, builder)
            return self._walk(entity, binding, rest, op, value, builder)

        if not rest:
            if isinstance(field, Attribute):
                return builder.with_filter(Comparison(binding, field.column, op, value))
            if isinstance(field, BelongsTo):
                return self._filter(entity, binding, field.column, head.name, op, value, builder)
            if isinstance(field, HasMany):
                child = self._schema.entity(field.target)
                alias = _alias(binding, head)
                join = self._join(child, alias, field.inverse, binding, entity.primary_key)
                builder = builder.with_join(join)
                return self._filter(child, alias, child.primary_key, head.name, op, value, builder)
        else:
            if isinstance(field, BelongsTo):
                parent = self._schema.entity(field.target)
                alias = _alias(binding, head)
                join = self._join(parent, alias, parent.primary_key, binding, field.column)
                builder = builder.with_join(join)
                return self._walk(parent, alias, rest, op, value, builder)
            if isinstance(field, HasMany):
                child = self._schema.entity(field.target)
                alias = _alias(binding, head)
                join = self._join(child, alias, field.inverse, binding, entity.primary_key)
                builder = builder.with_join(join)
                return self._walk(child, alias, rest, op, value, builder)
            if isinstance(field, Attribute):
                return builder.empty_set()
        raise TypeError(f"Unsupported field metadata {field!r}")

    def _filter_key(
        self,
        entity: EntityMetadata,
        binding: str,
        op: Operator,
        value: Any,
        builder: QueryBuilder,
    ) -> QueryBuilder:
        key = entity.primary_key
        return self._filter(entity, binding, key, key, op, value, builder)

    def _filter(
        self,
        entity: EntityMetadata,
        binding: str,
        column: str,
        field: str,
        op: Operator,
        value: Any,
        builder: QueryBuilder,
    ) -> QueryBuilder:
        bound = safe_value(entity.name, field, op, value)
        if isinstance(bound, EmptySet):
            return builder.empty_set()
        return builder.with_filter(Comparison(binding, column, op, bound))

    def _join(
        self,
        target: EntityMetadata,
        alias: str,
        join_column: str,
        parent_alias: str,
        parent_column: str,
    ) -> JoinSpec:
        if target.model is None:
            raise ScopeCompilationError(f"Entity {target.name!r} has no mapped model to join")
        return JoinSpec(
            kind=self._config.join_kind,
            target_entity=target.model,
            alias=alias,
            join_column=join_column,
            parent_alias=parent_alias,
            parent_column=parent_column,
        )

    def _unknown(self, entity: EntityMetadata, field: str, builder: QueryBuilder) -> QueryBuilder:
        if self._config.on_unknown_field == "warn":
            from sqla_scope._audit import log_unknown_field

            log_unknown_field(entity=entity.name, field=field)
        else:
            logger.debug("Unknown field %r on %s compiles to an empty set", field, entity.name)
        return builder.empty_set()


def _alias(binding: str, step: Name) -> str:
    return step.alias or f"{binding}_{step.name}"
