"""Path and scope expression trees."""

from sqla_scope.expression._ast import (
    OPERATORS,
    SELF,
    WILDCARD,
    AllOf,
    Alternatives,
    AnyOf,
    ConfigLookup,
    Expression,
    Leaf,
    LiteralValue,
    Name,
    Not,
    Path,
    PathStep,
    PathValue,
    SelfToken,
    ValueSpec,
    Wildcard,
    as_path,
    as_value,
    negate,
)

__all__ = [
    "OPERATORS",
    "SELF",
    "WILDCARD",
    "AllOf",
    "Alternatives",
    "AnyOf",
    "ConfigLookup",
    "Expression",
    "Leaf",
    "LiteralValue",
    "Name",
    "Not",
    "Path",
    "PathStep",
    "PathValue",
    "SelfToken",
    "ValueSpec",
    "Wildcard",
    "as_path",
    "as_value",
    "negate",
]
