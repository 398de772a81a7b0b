"""Tests for public API surface — verifies all __init__.py re-exports."""

from __future__ import annotations

import importlib
import inspect

import pytest


class TestTopLevelExports:
    """Verify sqla_scope top-level exports."""

    EXPECTED = {
        "__version__",
        "SELF",
        "WILDCARD",
        "AllOf",
        "AnyOf",
        "AuthorizationDenied",
        "ConfigLookup",
        "EntityMetadata",
        "EvaluationCache",
        "Evaluator",
        "IdentityLike",
        "Leaf",
        "LiteralValue",
        "Name",
        "NoScopeError",
        "Not",
        "PathValue",
        "QueryBuilder",
        "Schema",
        "ScopeCompilationError",
        "ScopeConfig",
        "ScopeError",
        "ScopeRegistry",
        "SelfToken",
        "apply",
        "authorize",
        "can",
        "combine_predicates",
        "combine_queries",
        "compare",
        "compile_scope",
        "configure",
        "evaluate",
        "filter_query",
        "register_settings",
        "scope",
        "scope_query",
    }

    def test_all_is_complete(self) -> None:
        import sqla_scope

        actual = set(sqla_scope.__all__)
        assert actual == self.EXPECTED, (
            f"__all__ mismatch.\n"
            f"  Missing: {self.EXPECTED - actual}\n"
            f"  Extra:   {actual - self.EXPECTED}"
        )

    def test_callable_symbols_are_callable(self) -> None:
        from sqla_scope import (
            apply,
            authorize,
            can,
            combine_predicates,
            combine_queries,
            compile_scope,
            configure,
            evaluate,
            filter_query,
            scope,
            scope_query,
        )

        for sym in [
            apply,
            authorize,
            can,
            combine_predicates,
            combine_queries,
            compile_scope,
            configure,
            evaluate,
            filter_query,
            scope,
            scope_query,
        ]:
            assert callable(sym), f"{sym!r} should be callable"

    def test_exceptions_are_classes(self) -> None:
        from sqla_scope import (
            AuthorizationDenied,
            NoScopeError,
            ScopeCompilationError,
            ScopeError,
        )

        for sym in [AuthorizationDenied, NoScopeError, ScopeCompilationError, ScopeError]:
            assert inspect.isclass(sym)
            assert issubclass(sym, ScopeError)

    def test_path_tokens(self) -> None:
        from sqla_scope import SELF, WILDCARD, SelfToken

        assert isinstance(SELF, SelfToken)
        assert WILDCARD is not None

    def test_version(self) -> None:
        import sqla_scope

        assert isinstance(sqla_scope.__version__, str)


@pytest.mark.parametrize(
    "module_name",
    [
        "sqla_scope",
        "sqla_scope.compiler",
        "sqla_scope.config",
        "sqla_scope.evaluator",
        "sqla_scope.expression",
        "sqla_scope.graph",
        "sqla_scope.policy",
        "sqla_scope.schema",
        "sqla_scope.testing",
    ],
)
def test_all_matches_module_attrs(module_name: str) -> None:
    module = importlib.import_module(module_name)
    for name in module.__all__:
        assert hasattr(module, name), f"{module_name}.__all__ lists {name!r} but it is missing"
