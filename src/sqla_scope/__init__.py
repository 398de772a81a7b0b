"""sqla-scope — declarative, path-based scoping for SQLAlchemy 2.0.

Scopes are written as path expressions relative to an entity ("comments
whose post's user is the current user"). The same expression compiles to
joins and filters on a ``Select`` and is evaluated in memory for point
checks on loaded instances.

Example::

    from sqla_scope import Leaf, PathValue, Schema, scope, scope_query

    schema = Schema.from_base(Base)

    @scope(Comment, "read")
    def own_comments():
        return Leaf("eq", ["**", "user"], PathValue(["user"]))

    stmt = scope_query(select(Comment), schema=schema,
                       context={"user": current_user}, action="read")
    comments = session.scalars(stmt).all()
"""

from importlib.metadata import PackageNotFoundError, version

from sqla_scope._checks import authorize, can
from sqla_scope._types import IdentityLike
from sqla_scope.compiler import (
    QueryBuilder,
    apply,
    combine_predicates,
    combine_queries,
    compile_scope,
    filter_query,
    scope_query,
)
from sqla_scope.config import ScopeConfig, configure, register_settings
from sqla_scope.evaluator import EvaluationCache, Evaluator, compare, evaluate
from sqla_scope.exceptions import (
    AuthorizationDenied,
    NoScopeError,
    ScopeCompilationError,
    ScopeError,
)
from sqla_scope.expression import (
    SELF,
    WILDCARD,
    AllOf,
    AnyOf,
    ConfigLookup,
    Leaf,
    LiteralValue,
    Name,
    Not,
    PathValue,
    SelfToken,
)
from sqla_scope.policy import ScopeRegistry, scope
from sqla_scope.schema import EntityMetadata, Schema

try:
    __version__ = version("sqla-scope")
except PackageNotFoundError:
    __version__ = "dev"

__all__ = [
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
]
