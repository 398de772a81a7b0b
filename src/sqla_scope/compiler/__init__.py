"""Compiler — transforms scope expressions into SQL joins and filters."""

from sqla_scope.compiler._builder import (
    EMPTY_SET,
    And,
    Comparison,
    EmptySet,
    FilterAtom,
    JoinSpec,
    Or,
    QueryBuilder,
    apply,
    combine_predicates,
    combine_queries,
)
from sqla_scope.compiler._query import evaluate_scopes, filter_query, scope_query
from sqla_scope.compiler._scope import compile_scope, safe_value

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
    "compile_scope",
    "evaluate_scopes",
    "filter_query",
    "safe_value",
    "scope_query",
]
