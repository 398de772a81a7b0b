"""In-memory path evaluation against live object graphs.

Walks a path expression over SQLAlchemy instances (or plain mappings and
objects) and returns what it reaches: a value, a list of values, or
``None``. Relations that are not loaded yet are fetched through a
``RelationLoader``, at most once per ``(entity, id, relation)`` edge for the
lifetime of an ``EvaluationCache``. The cache belongs to the caller and
should not outlive the request it was created for.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm.base import ATTR_EMPTY, NO_VALUE

from sqla_scope.config._config import ScopeConfig, get_global_config
from sqla_scope.config._settings import lookup_setting
from sqla_scope.evaluator._compare import compare
from sqla_scope.exceptions import RelationLoadTimeoutError, UnloadedRelationshipError
from sqla_scope.expression._ast import (
    AllOf,
    Alternatives,
    AnyOf,
    ConfigLookup,
    Expression,
    Leaf,
    LiteralValue,
    Name,
    Not,
    PathStep,
    PathValue,
    SelfToken,
    ValueSpec,
    Wildcard,
    as_path,
    negate,
)
from sqla_scope.schema._metadata import (
    Attribute,
    BelongsTo,
    EntityMetadata,
    HasMany,
    Unknown,
)
from sqla_scope.schema._schema import Schema

__all__ = [
    "EvaluationCache",
    "Evaluator",
    "RelationLoader",
    "SessionRelationLoader",
    "evaluate",
]

logger = logging.getLogger(__name__)

CacheKey = tuple[str, Any, str]


class RelationLoader(Protocol):
    """Fetches a relation that is not loaded on *instance*."""

    def __call__(self, instance: Any, relation: str) -> Any: ...


class SessionRelationLoader:
    """Load relations through the session the instance is attached to.

    Attribute access triggers SQLAlchemy's lazy loader. Instances without a
    session cannot be loaded; what happens then is governed by
    ``on_unloaded_relationship``.
    """

    def __init__(self, config: ScopeConfig | None = None) -> None:
        self._config = config

    def __call__(self, instance: Any, relation: str) -> Any:
        state = sa_inspect(instance)
        if state.session is None:
            config = self._config or get_global_config()
            _handle_unloaded_relationship(type(instance).__name__, relation, config)
            return None
        return getattr(instance, relation)


class EvaluationCache:
    """Relation values fetched during one evaluation, keyed by edge.

    Example::

        cache = EvaluationCache()
        evaluator = Evaluator(schema, cache=cache)
        evaluator.evaluate(comment, ["post", "user"])
        evaluator.evaluate(comment, ["post", "title"])  # post is not loaded again
    """

    def __init__(self) -> None:
        self._entries: dict[CacheKey, Any] = {}
        self.loads = 0

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __getitem__(self, key: CacheKey) -> Any:
        return self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)

    def store(self, key: CacheKey, value: Any) -> None:
        self._entries[key] = value
        self.loads += 1

    def clear(self) -> None:
        self._entries.clear()
        self.loads = 0


class Evaluator:
    """Request-scoped path interpreter.

    Args:
        schema: The shared schema.
        cache: Relation cache; a fresh one is created when omitted.
        loader: Relation loader; defaults to ``SessionRelationLoader``.
        config: Configuration snapshot; defaults to the global config.
            ``relation_load_timeout`` is measured from construction.
    """

    def __init__(
        self,
        schema: Schema,
        *,
        cache: EvaluationCache | None = None,
        loader: RelationLoader | None = None,
        config: ScopeConfig | None = None,
    ) -> None:
        self._schema = schema
        self._config = config if config is not None else get_global_config()
        self.cache = cache if cache is not None else EvaluationCache()
        self._loader = loader if loader is not None else SessionRelationLoader(self._config)
        timeout = self._config.relation_load_timeout
        self._deadline = None if timeout is None else time.monotonic() + timeout

    # -- values -------------------------------------------------------------

    def value(self, context: Any, spec: ValueSpec) -> Any:
        """Resolve a leaf value: literals and settings ignore *context*."""
        if isinstance(spec, LiteralValue):
            return spec.value
        if isinstance(spec, ConfigLookup):
            return lookup_setting(spec.app, spec.env, spec.key)
        if isinstance(spec, PathValue):
            return self.evaluate(context, spec.path)
        raise TypeError(f"Not a value spec: {spec!r}")

    def evaluate(self, context: Any, path: Any) -> Any:
        """Follow *path* from *context*.

        Missing data never raises: unknown attributes and absent relations
        come back as ``None`` (or an empty list for to-many hops).
        """
        if isinstance(path, (LiteralValue, ConfigLookup, PathValue)):
            return self.value(context, path)
        steps = as_path(path)
        if not steps:
            return context
        if context is None:
            return None

        head, rest = steps[0], steps[1:]
        if isinstance(head, Alternatives):
            return _unique(_flatten(self.evaluate(context, alt + rest) for alt in head.paths))
        if isinstance(context, (list, tuple)):
            return _unique(_flatten(self.evaluate(item, steps) for item in context))

        entity = self._schema.entity_of(context)
        if entity is None:
            return self._evaluate_plain(context, head, rest)
        return self._evaluate_entity(entity, context, head, rest)

    def _evaluate_plain(self, context: Any, head: PathStep, rest: tuple[PathStep, ...]) -> Any:
        if isinstance(head, Wildcard):
            return context if not rest else None
        if isinstance(head, SelfToken):
            return self.evaluate(context, rest)
        if isinstance(head, Name):
            return self.evaluate(_raw_lookup(context, head.name), rest)
        raise TypeError(f"Unsupported path step {head!r}")

    def _evaluate_entity(
        self,
        entity: EntityMetadata,
        context: Any,
        head: PathStep,
        rest: tuple[PathStep, ...],
    ) -> Any:
        if isinstance(head, Wildcard):
            if not rest:
                return context
            ancestor = rest[0]
            if not isinstance(ancestor, Name):
                return None
            resolved = self._schema.shortest_path(entity.name, ancestor.name)
            if resolved is None:
                return None
            return self.evaluate(context, tuple(Name(n) for n in resolved) + rest[1:])

        if isinstance(head, SelfToken):
            return self.evaluate(context, rest) if head.matches(entity.name) else None

        if not isinstance(head, Name):
            raise TypeError(f"Unsupported path step {head!r}")

        field = entity.field(head.name)
        if not rest:
            if isinstance(field, Attribute):
                return getattr(context, field.name, None)
            if isinstance(field, BelongsTo):
                return self._relation(entity, context, field.name)
            if isinstance(field, HasMany):
                children = self._relation(entity, context, field.name) or ()
                return [item for item in children if item is not None]
            if isinstance(field, Unknown):
                if head.name == entity.name:
                    return context
                return _raw_lookup(context, head.name)
        else:
            if isinstance(field, BelongsTo):
                return self.evaluate(self._relation(entity, context, field.name), rest)
            if isinstance(field, HasMany):
                related = self._relation(entity, context, field.name) or ()
                return _unique(_flatten(self.evaluate(item, rest) for item in related))
            if isinstance(field, Attribute):
                return None
            if isinstance(field, Unknown):
                return self.evaluate(context, rest) if head.name == entity.name else None
        raise TypeError(f"Unsupported field metadata {field!r}")

    # -- relations ----------------------------------------------------------

    def _relation(self, entity: EntityMetadata, instance: Any, relation: str) -> Any:
        state = sa_inspect(instance, raiseerr=False)
        if state is None:
            return getattr(instance, relation, None)
        loaded = state.attrs[relation].loaded_value
        if loaded is not NO_VALUE and loaded is not ATTR_EMPTY:
            return loaded

        pk = getattr(instance, entity.primary_key, None)
        key: CacheKey | None = (entity.name, pk, relation) if pk is not None else None
        if key is not None and key in self.cache:
            return self.cache[key]

        if self._deadline is not None and time.monotonic() > self._deadline:
            raise RelationLoadTimeoutError(
                model=entity.name,
                relationship=relation,
                timeout=self._config.relation_load_timeout or 0.0,
            )
        logger.debug("Loading %s.%s for %r", entity.name, relation, pk)
        value = self._loader(instance, relation)
        # Unsaved instances share a None key, so they are never cached.
        if key is not None:
            self.cache.store(key, value)
        return value

    # -- decisions ----------------------------------------------------------

    def check(self, expression: Expression, resource: Any, context: Any) -> bool:
        """Decide *expression* for one resource in memory.

        Leaves compare the value reached from *resource* with the leaf value
        resolved against *context*. ``AllOf([])`` and ``AnyOf([])`` are false,
        matching the empty result their compiled queries return.
        """
        if isinstance(expression, Leaf):
            left = self.evaluate(resource, expression.prop)
            right = self.value(context, expression.value)
            return compare(left, right, expression.op)
        if isinstance(expression, AllOf):
            return bool(expression.children) and all(
                self.check(child, resource, context) for child in expression.children
            )
        if isinstance(expression, AnyOf):
            return any(self.check(child, resource, context) for child in expression.children)
        if isinstance(expression, Not):
            return self.check(negate(expression.expression), resource, context)
        raise TypeError(f"Not an expression: {expression!r}")


def evaluate(
    schema: Schema,
    context: Any,
    path: Any,
    *,
    cache: EvaluationCache | None = None,
    loader: RelationLoader | None = None,
) -> Any:
    """Evaluate *path* from *context* with a one-off ``Evaluator``.

    Example::

        evaluate(schema, comment, ["**", "user", "name"])  # "Alice"
        evaluate(schema, comment, [])                      # comment
    """
    return Evaluator(schema, cache=cache, loader=loader).evaluate(context, path)


def _raw_lookup(context: Any, name: str) -> Any:
    if isinstance(context, Mapping):
        return context.get(name)
    return getattr(context, name, None)


def _flatten(values: Iterable[Any]) -> list[Any]:
    flat: list[Any] = []
    for value in values:
        if isinstance(value, (list, tuple)):
            flat.extend(_flatten(value))
        elif value is not None:
            flat.append(value)
    return flat


def _unique(values: list[Any]) -> list[Any]:
    seen: list[Any] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


def _handle_unloaded_relationship(model_name: str, rel_name: str, config: ScopeConfig) -> None:
    """Handle an unloadable relationship per configuration."""
    mode = config.on_unloaded_relationship

    if mode == "raise":
        raise UnloadedRelationshipError(model=model_name, relationship=rel_name)
    if mode == "warn":
        logger.warning(
            "Relationship '%s' on %s is not loaded and the instance is detached; "
            "treating it as empty.",
            rel_name,
            model_name,
        )
