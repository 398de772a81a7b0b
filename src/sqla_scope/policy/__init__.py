"""Scope registry — registration and lookup of scope expressions."""

from sqla_scope.policy._base import ScopeRegistration
from sqla_scope.policy._decorator import scope
from sqla_scope.policy._registry import ScopeRegistry, get_default_registry

__all__ = [
    "ScopeRegistration",
    "ScopeRegistry",
    "get_default_registry",
    "scope",
]
