"""Evaluator — in-memory path evaluation and comparison."""

from sqla_scope.evaluator._compare import comparable, compare, has_identity, identity_of
from sqla_scope.evaluator._evaluate import (
    EvaluationCache,
    Evaluator,
    RelationLoader,
    SessionRelationLoader,
    evaluate,
)

__all__ = [
    "EvaluationCache",
    "Evaluator",
    "RelationLoader",
    "SessionRelationLoader",
    "comparable",
    "compare",
    "evaluate",
    "has_identity",
    "identity_of",
]
