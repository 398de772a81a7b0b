"""ScopeRegistry — stores and retrieves scope registrations."""

from __future__ import annotations

from sqla_scope.expression._ast import Expression
from sqla_scope.policy._base import ScopeRegistration

__all__ = ["ScopeRegistry", "get_default_registry"]


class ScopeRegistry:
    """Registry that maps (model, action) pairs to scope expressions.

    Thread-safe for reads after startup. Append-only during registration.

    Example::

        registry = ScopeRegistry()
        registry.register(Post, "read", Leaf("eq", ["user"], PathValue(["user"])),
                          name="own_posts", description="")
        scopes = registry.lookup(Post, "read")
    """

    def __init__(self) -> None:
        self._scopes: dict[tuple[type, str], list[ScopeRegistration]] = {}

    def register(
        self,
        resource_type: type,
        action: str,
        expression: Expression,
        *,
        name: str,
        description: str = "",
    ) -> ScopeRegistration:
        """Register a scope expression for a (model, action) pair.

        Multiple scopes can be registered for the same key; they are
        OR'd together when compiled.

        Args:
            resource_type: The SQLAlchemy model class.
            action: The action string (e.g., ``"read"``, ``"update"``).
            expression: The scope expression.
            name: Human-readable name for the scope (used in logging).
            description: Description of the scope (typically the docstring).

        Returns:
            The new ``ScopeRegistration``.

        Example::

            registry = ScopeRegistry()
            registry.register(
                Comment, "read",
                Leaf("eq", ["**", "user"], PathValue(["user"])),
                name="own_comments",
            )
        """
        registration = ScopeRegistration(
            resource_type=resource_type,
            action=action,
            expression=expression,
            name=name,
            description=description,
        )
        self._scopes.setdefault((resource_type, action), []).append(registration)
        return registration

    def lookup(self, resource_type: type, action: str) -> list[ScopeRegistration]:
        """Look up all scopes for a (model, action) pair.

        Returns a copy of the internal list so callers cannot mutate
        the registry state. Empty when nothing is registered.
        """
        return list(self._scopes.get((resource_type, action), []))

    def has_scope(self, resource_type: type, action: str) -> bool:
        """Check whether at least one scope exists for (model, action)."""
        return (resource_type, action) in self._scopes

    def registered_entities(self, action: str) -> set[type]:
        """Return all entity types that have scopes registered for *action*.

        Example::

            entities = registry.registered_entities("read")
            # e.g., {Post, Comment}
        """
        return {entity for entity, act in self._scopes if act == action}

    def clear(self) -> None:
        """Remove all registered scopes.

        Primarily useful in test teardown to reset the registry state
        between tests.
        """
        self._scopes.clear()


# Module-level default registry (singleton).
_default_registry = ScopeRegistry()


def get_default_registry() -> ScopeRegistry:
    """Return the global default (singleton) scope registry.

    This is the registry used by ``@scope``, ``scope_query``, ``can``
    and other APIs when no explicit registry is provided.

    Example::

        registry = get_default_registry()
        registry.clear()  # reset between tests
    """
    return _default_registry
