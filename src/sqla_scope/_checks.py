"""Point checks — can() and authorize() for single resource instances."""

from __future__ import annotations

from typing import Any

from sqla_scope.config._config import ScopeConfig, get_global_config
from sqla_scope.evaluator._evaluate import EvaluationCache, Evaluator, RelationLoader
from sqla_scope.exceptions import AuthorizationDenied, NoScopeError
from sqla_scope.policy._registry import ScopeRegistry, get_default_registry
from sqla_scope.schema._schema import Schema

__all__ = ["authorize", "can"]


def can(
    schema: Schema,
    context: Any,
    action: str,
    resource: Any,
    *,
    registry: ScopeRegistry | None = None,
    config: ScopeConfig | None = None,
    cache: EvaluationCache | None = None,
    loader: RelationLoader | None = None,
) -> bool:
    """Check if *context* can perform *action* on a specific resource instance.

    The registered scopes are evaluated in memory against the resource's
    object graph; no SQL is issued except the lazy loads needed to reach
    relations that are not loaded yet. Each relation edge is loaded at most
    once for the whole check, across every registered scope.

    Args:
        schema: The schema scopes are written against.
        context: The authorization context (mapping or object).
        action: The action string (e.g., ``"read"``, ``"update"``).
        resource: A mapped SQLAlchemy model instance.
        registry: Optional custom registry. Defaults to the global registry.
        config: Optional config. Defaults to the global config.
        cache: Optional relation cache to share between several checks of
            the same request.
        loader: Optional relation loader.

    Returns:
        ``True`` if any registered scope matches the resource.

    Raises:
        NoScopeError: If nothing is registered and ``on_missing_scope="raise"``.

    Example::

        comment = session.get(Comment, 1)
        if can(schema, {"user": current_user}, "read", comment):
            return comment
    """
    target_registry = registry if registry is not None else get_default_registry()
    cfg = config if config is not None else get_global_config()
    resource_type = type(resource)

    registrations = target_registry.lookup(resource_type, action)
    if not registrations and cfg.on_missing_scope == "raise":
        raise NoScopeError(resource_type=resource_type.__name__, action=action)

    evaluator = Evaluator(schema, cache=cache, loader=loader, config=cfg)
    allowed = any(evaluator.check(r.expression, resource, context) for r in registrations)

    if cfg.log_scope_decisions:
        from sqla_scope._audit import log_check_decision

        log_check_decision(
            resource=resource,
            action=action,
            scopes=registrations,
            allowed=allowed,
        )

    return allowed


def authorize(
    schema: Schema,
    context: Any,
    action: str,
    resource: Any,
    *,
    registry: ScopeRegistry | None = None,
    config: ScopeConfig | None = None,
    message: str | None = None,
) -> None:
    """Assert that *context* is authorized to perform *action* on *resource*.

    Raises :class:`~sqla_scope.exceptions.AuthorizationDenied` when access
    is denied. Returns ``None`` on success.

    Example::

        authorize(schema, {"user": current_user}, "update", post)  # raises if denied
    """
    if not can(schema, context, action, resource, registry=registry, config=config):
        raise AuthorizationDenied(
            context=context,
            action=action,
            resource_type=type(resource).__name__,
            message=message,
        )
