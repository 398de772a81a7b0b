"""scope_query() / filter_query() — apply compiled scopes to SELECT statements."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select, select

from sqla_scope.compiler._builder import QueryBuilder, apply, combine_predicates, combine_queries
from sqla_scope.compiler._scope import compile_scope
from sqla_scope.config._config import ScopeConfig, get_global_config
from sqla_scope.exceptions import NoScopeError
from sqla_scope.expression._ast import AllOf, Alternatives, AnyOf, Expression, Leaf, Not, negate
from sqla_scope.policy._registry import ScopeRegistry, get_default_registry
from sqla_scope.schema._schema import Schema

__all__ = ["evaluate_scopes", "filter_query", "scope_query"]


def evaluate_scopes(
    schema: Schema,
    registry: ScopeRegistry,
    resource_type: type,
    action: str,
    context: Any,
    *,
    config: ScopeConfig | None = None,
) -> QueryBuilder:
    """Compile every scope registered for (resource_type, action).

    Multiple scopes for the same key are combined with OR: any matching
    scope grants access. With nothing registered the result matches no
    rows, or ``NoScopeError`` is raised when ``on_missing_scope="raise"``.

    When ``log_scope_decisions`` is enabled, the decision is logged via the
    ``sqla_scope`` logger.
    """
    cfg = config if config is not None else get_global_config()
    registrations = registry.lookup(resource_type, action)

    if not registrations:
        if cfg.on_missing_scope == "raise":
            raise NoScopeError(resource_type=resource_type.__name__, action=action)
        result = QueryBuilder(schema.entity(resource_type).name).empty_set()
    else:
        builders = [
            compile_scope(schema, resource_type, r.expression, context, config=cfg)
            for r in registrations
        ]
        result = combine_predicates("or", builders) or QueryBuilder(
            schema.entity(resource_type).name
        ).empty_set()

    if cfg.log_scope_decisions:
        from sqla_scope._audit import log_scope_evaluation

        log_scope_evaluation(
            entity=resource_type,
            action=action,
            context=context,
            scopes=registrations,
            builder=result,
        )

    return result


def scope_query(
    stmt: Select[Any],
    *,
    schema: Schema,
    context: Any,
    action: str,
    registry: ScopeRegistry | None = None,
    config: ScopeConfig | None = None,
) -> Select[Any]:
    """Restrict a SELECT to the rows *context* may access for *action*.

    Looks up registered scopes for each entity the statement selects,
    compiles them against *context* and applies the resulting joins and
    filters.

    Args:
        stmt: A SQLAlchemy 2.0 Select statement.
        schema: The schema scopes are written against.
        context: The authorization context (mapping or object).
        action: The action being performed (e.g., "read", "update").
        registry: Optional custom registry. Defaults to the global registry.
        config: Optional config. Defaults to the global config.

    Returns:
        A new Select with the scopes applied.

    Example::

        stmt = scope_query(
            select(Comment),
            schema=schema,
            context={"user": current_user},
            action="read",
        )
        # SELECT DISTINCT comments.* FROM comments
        #   LEFT OUTER JOIN posts AS comment_post ON comment_post.id = comments.post_id
        #   WHERE comment_post.user_id = :id
    """
    target_registry = registry if registry is not None else get_default_registry()

    desc_list: list[dict[str, Any]] = stmt.column_descriptions
    for desc in desc_list:
        entity: type | None = desc.get("entity")
        if entity is None:
            continue

        builder = evaluate_scopes(schema, target_registry, entity, action, context, config=config)
        stmt = apply(builder, stmt, entity)

    return stmt


def filter_query(
    schema: Schema,
    model: type,
    expression: Expression,
    params: Any = None,
    *,
    config: ScopeConfig | None = None,
) -> Select[Any]:
    """Compile a filter expression into a UNION/INTERSECT chain of SELECTs.

    Unlike scopes, each leaf becomes its own statement with its own joins:
    ``AllOf`` intersects them, ``AnyOf`` and multi-path (``Alternatives``)
    leaves union them. ``Not`` is pushed down to the leaves first.

    Example::

        stmt = filter_query(
            schema,
            Comment,
            AllOf([
                Leaf("eq", ["post", "slug"], "P123"),
                Leaf("eq", [["post"], ["**", "user"]], user.id),
            ]),
        )
        session.scalars(stmt).all()
    """
    if isinstance(expression, Not):
        return filter_query(schema, model, negate(expression.expression), params, config=config)
    if isinstance(expression, (AllOf, AnyOf)):
        op = "all" if isinstance(expression, AllOf) else "any"
        combined = combine_queries(
            op,
            (
                filter_query(schema, model, child, params, config=config)
                for child in expression.children
            ),
        )
        if combined is None:
            return _empty(schema, model)
        return combined
    if isinstance(expression, Leaf):
        prop = expression.prop
        if len(prop) == 1 and isinstance(prop[0], Alternatives):
            leaves = [Leaf(expression.op, alt, expression.value) for alt in prop[0].paths]
            return filter_query(schema, model, AnyOf(leaves), params, config=config)
        builder = compile_scope(schema, model, expression, params, config=config)
        return apply(builder, select(model), model)
    raise TypeError(f"Not an expression: {expression!r}")


def _empty(schema: Schema, model: type) -> Select[Any]:
    return apply(QueryBuilder(schema.entity(model).name).empty_set(), select(model), model)
