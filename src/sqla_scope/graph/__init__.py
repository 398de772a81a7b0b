"""Entity relationship graph and path resolution."""

from sqla_scope.graph._graph import (
    AttributeNode,
    EntityGraph,
    EntityNode,
    ParentRelationNode,
    Vertex,
)

__all__ = [
    "AttributeNode",
    "EntityGraph",
    "EntityNode",
    "ParentRelationNode",
    "Vertex",
]
