"""Exception hierarchy for sqla-scope."""

from __future__ import annotations

from typing import Any

__all__ = [
    "AuthorizationDenied",
    "ConfigLookupError",
    "IncomparableValuesError",
    "NoScopeError",
    "NonNegatableOperatorError",
    "RelationLoadTimeoutError",
    "ScopeCompilationError",
    "ScopeError",
    "UnloadedRelationshipError",
    "UnsupportedFilterValueError",
    "UnsupportedOperatorError",
]


class ScopeError(Exception):
    """Base exception for all sqla-scope errors."""


class ScopeCompilationError(ScopeError):
    """A scope expression could not be compiled into a query.

    Unknown field names are *not* compilation errors: they compile to
    an always-false filter instead. This is raised for malformed input
    such as unsupported filter values or conflicting join aliases.
    """


class UnsupportedFilterValueError(ScopeCompilationError):
    """A filter value has a shape the compiler cannot bind.

    Raised for heterogeneous lists (identity-bearing values mixed with
    plain scalars) and nested containers.

    Attributes:
        entity: Name of the entity being filtered.
        field: The field the value was compared against.
        op: The comparison operator.
        value: The offending value.
    """

    def __init__(self, *, entity: str, field: str, op: str, value: Any) -> None:
        self.entity = entity
        self.field = field
        self.op = op
        self.value = value
        super().__init__(
            f"Unsupported filter value for field {field!r} of entity {entity!r} "
            f"with the {op!r} operator: {value!r}"
        )


class NonNegatableOperatorError(ScopeCompilationError):
    """An expression was negated whose operator has no defined inverse.

    Only ``eq``/``neq`` and ``in``/``not_in`` can be negated.

    Attributes:
        op: The operator that could not be inverted.
    """

    def __init__(self, *, op: str) -> None:
        self.op = op
        super().__init__(f"Operator {op!r} has no inverse and cannot be negated")


class NoScopeError(ScopeError):
    """No scope registered for (resource_type, action).

    Raised when configured to error on missing scopes instead of
    the default deny-by-default (WHERE FALSE) behavior.

    Attributes:
        resource_type: The resource type with no scope.
        action: The action with no scope.

    Example::

        configure(on_missing_scope="raise")
        # Now missing scopes raise instead of silently denying
    """

    def __init__(self, *, resource_type: str, action: str) -> None:
        self.resource_type = resource_type
        self.action = action
        super().__init__(f"No scope registered for ({resource_type}, {action!r})")


class AuthorizationDenied(ScopeError):  # noqa: N818
    """Context is not authorized to perform the requested action.

    Attributes:
        context: The authorization context that was denied.
        action: The action that was attempted.
        resource_type: The type of resource involved.

    Example::

        try:
            authorize(schema, {"user": user}, "delete", comment)
        except AuthorizationDenied as exc:
            print(f"cannot {exc.action} {exc.resource_type}")
    """

    def __init__(
        self,
        *,
        context: object,
        action: str,
        resource_type: str,
        message: str | None = None,
    ) -> None:
        self.context = context
        self.action = action
        self.resource_type = resource_type
        if message is None:
            message = f"Context {context!r} is not authorized to {action} {resource_type}"
        super().__init__(message)


class UnloadedRelationshipError(ScopeError):
    """Relationship was not loaded and cannot be loaded for evaluation.

    Raised when ``on_unloaded_relationship`` is set to ``"raise"`` and
    the evaluator meets a relationship that is neither loaded on the
    instance nor loadable (the instance is not attached to a session).

    Attributes:
        model: The model class that owns the relationship.
        relationship: The name of the unloaded relationship.
    """

    def __init__(self, *, model: str, relationship: str) -> None:
        self.model = model
        self.relationship = relationship
        super().__init__(
            f"Relationship '{relationship}' on {model} is not loaded and the instance "
            f"is detached. Either eagerly load it or set on_unloaded_relationship='deny'."
        )


class RelationLoadTimeoutError(ScopeError):
    """The evaluation deadline passed before a relation could be loaded.

    Attributes:
        model: The model class that owns the relationship.
        relationship: The relationship that was about to be loaded.
        timeout: The configured ``relation_load_timeout`` in seconds.
    """

    def __init__(self, *, model: str, relationship: str, timeout: float) -> None:
        self.model = model
        self.relationship = relationship
        self.timeout = timeout
        super().__init__(
            f"Evaluation exceeded relation_load_timeout={timeout}s "
            f"before loading '{relationship}' on {model}"
        )


class IncomparableValuesError(ScopeError, TypeError):
    """Ordering comparison between missing or incomparable operands.

    Attributes:
        left: The left operand.
        right: The right operand.
        op: The ordering operator (``gt``, ``gte``, ``lt``, ``lte``).
    """

    def __init__(self, *, left: Any, right: Any, op: str) -> None:
        self.left = left
        self.right = right
        self.op = op
        super().__init__(f"Cannot compare {left!r} and {right!r} with {op!r}")


class UnsupportedOperatorError(ScopeError, ValueError):
    """Operator is not one of the supported comparison operators."""

    def __init__(self, *, op: str) -> None:
        self.op = op
        super().__init__(f"Unsupported operator: {op!r}")


class ConfigLookupError(ScopeError, LookupError):
    """A ``ConfigLookup`` value refers to a setting that was never registered.

    Attributes:
        app: The application namespace.
        env: The settings group within the application.
        key: The missing key.
    """

    def __init__(self, *, app: str, env: str, key: str) -> None:
        self.app = app
        self.env = env
        self.key = key
        super().__init__(f"No setting {key!r} registered under ({app!r}, {env!r})")
