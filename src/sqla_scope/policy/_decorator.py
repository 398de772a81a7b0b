"""@scope decorator — register scope expressions built by a function."""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from sqla_scope.expression._ast import AllOf, AnyOf, Expression, Leaf, Not
from sqla_scope.policy._registry import ScopeRegistry, get_default_registry

__all__ = ["scope"]

F = TypeVar("F", bound=Callable[[], Expression])


def scope(
    resource_type: type,
    action: str,
    *,
    registry: ScopeRegistry | None = None,
) -> Callable[[F], F]:
    """Decorator that registers the expression a function returns.

    The decorated function takes no arguments and is called exactly once,
    at decoration time: scope expressions are data, and anything that
    varies per request belongs in a ``PathValue`` resolved against the
    authorization context.

    Args:
        resource_type: The SQLAlchemy model class.
        action: The action string (e.g., "read", "update").
        registry: Optional custom registry. Defaults to the global registry.

    Returns:
        A decorator that registers the expression and returns the function
        unchanged.

    Raises:
        TypeError: If the function does not return an expression.

    Example::

        @scope(Comment, "read")
        def own_comments() -> Expression:
            return Leaf("eq", ["**", "user"], PathValue(["user"]))
    """

    def decorator(fn: F) -> F:
        target = registry if registry is not None else get_default_registry()
        expression = fn()
        if not isinstance(expression, (AllOf, AnyOf, Not, Leaf)):
            raise TypeError(
                f"@scope function {fn.__name__!r} must return an expression, "
                f"got {type(expression).__name__}"
            )
        target.register(
            resource_type,
            action,
            expression,
            name=fn.__name__,
            description=fn.__doc__ or "",
        )
        return fn

    return decorator
