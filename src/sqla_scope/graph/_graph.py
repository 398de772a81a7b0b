"""EntityGraph — weighted graph of entities, attributes and parent relations.

Shortest paths prefer required ancestry: a hop through an optional
``BelongsTo`` costs twice as much as a hop through a required one, and
attributes hang off their entity at no cost. Among equal-weight paths the
first one reached in edge-insertion order wins, which follows schema
declaration order. That tie-break is observable but not guaranteed.
"""

from __future__ import annotations

import heapq
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from itertools import count
from types import MappingProxyType
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from sqla_scope.schema._metadata import EntityMetadata

__all__ = [
    "AttributeNode",
    "EntityGraph",
    "EntityNode",
    "ParentRelationNode",
    "Vertex",
]

logger = logging.getLogger(__name__)

REQUIRED_WEIGHT = 1
OPTIONAL_WEIGHT = 2
ATTRIBUTE_WEIGHT = 0


@dataclass(frozen=True, slots=True)
class EntityNode:
    name: str


@dataclass(frozen=True, slots=True)
class AttributeNode:
    entity: str
    name: str


@dataclass(frozen=True, slots=True)
class ParentRelationNode:
    entity: str
    name: str


Vertex = Union[EntityNode, AttributeNode, ParentRelationNode]


class EntityGraph:
    """Immutable weighted graph built once from entity metadata.

    Safe to share between threads: nothing mutates it after ``build()``.

    Example::

        graph = EntityGraph.build([user, post, comment])
        graph.shortest_path("comment", "user")   # ("post", "user")
        graph.shortest_path("comment", "name")   # ("post", "user", "name")
        graph.shortest_path("comment", "comment")  # ()
        graph.shortest_path("comment", "nope")   # None
    """

    def __init__(
        self,
        adjacency: dict[Vertex, tuple[tuple[Vertex, int], ...]],
    ) -> None:
        self._adjacency = MappingProxyType(adjacency)
        parents: dict[str, list[ParentRelationNode]] = {}
        attributes: dict[str, list[AttributeNode]] = {}
        for vertex in adjacency:
            if isinstance(vertex, ParentRelationNode):
                parents.setdefault(vertex.name, []).append(vertex)
            elif isinstance(vertex, AttributeNode):
                attributes.setdefault(vertex.name, []).append(vertex)
        self._parents = {name: frozenset(nodes) for name, nodes in parents.items()}
        self._attributes = {name: frozenset(nodes) for name, nodes in attributes.items()}

    @classmethod
    def build(cls, entities: Iterable[EntityMetadata]) -> EntityGraph:
        """Build the graph for *entities*."""
        adjacency: dict[Vertex, list[tuple[Vertex, int]]] = {}

        def add_vertex(vertex: Vertex) -> None:
            adjacency.setdefault(vertex, [])

        def add_edge(source: Vertex, target: Vertex, weight: int) -> None:
            add_vertex(source)
            add_vertex(target)
            adjacency[source].append((target, weight))

        for entity in entities:
            node = EntityNode(entity.name)
            add_vertex(node)
            for attr in entity.attributes:
                add_edge(node, AttributeNode(entity.name, attr.name), ATTRIBUTE_WEIGHT)
            for rel in entity.parents:
                weight = OPTIONAL_WEIGHT if rel.optional else REQUIRED_WEIGHT
                relation = ParentRelationNode(entity.name, rel.name)
                add_edge(node, relation, weight)
                add_edge(relation, EntityNode(rel.target), weight)

        return cls({vertex: tuple(edges) for vertex, edges in adjacency.items()})

    @property
    def vertices(self) -> tuple[Vertex, ...]:
        return tuple(self._adjacency)

    def edges(self, vertex: Vertex) -> tuple[tuple[Vertex, int], ...]:
        """Outgoing ``(target, weight)`` pairs of *vertex*."""
        return self._adjacency.get(vertex, ())

    def targets(self, field_name: str) -> frozenset[Vertex]:
        """Vertices matching *field_name*.

        Parent relations take precedence: attributes are only considered
        when no relation anywhere in the graph carries that name.
        """
        if field_name in self._parents:
            return self._parents[field_name]
        return self._attributes.get(field_name, frozenset())

    def shortest_path(self, from_entity: str, field_name: str) -> tuple[str, ...] | None:
        """Cheapest chain of field names leading from *from_entity* to *field_name*.

        Returns:
            The relation (and trailing attribute) names along the path,
            ``()`` when *field_name* is *from_entity* itself, and ``None``
            when no vertex matches or none is reachable.
        """
        if field_name == from_entity:
            return ()
        start = EntityNode(from_entity)
        targets = self.targets(field_name)
        if not targets or start not in self._adjacency:
            return None

        tie = count()
        queue: list[tuple[int, int, Vertex, tuple[Vertex, ...]]] = [(0, next(tie), start, ())]
        settled: set[Vertex] = set()
        while queue:
            distance, _, vertex, path = heapq.heappop(queue)
            if vertex in settled:
                continue
            settled.add(vertex)
            if vertex in targets:
                resolved = _field_names(path)
                logger.debug(
                    "Resolved %s -> %s via %s (weight %d)",
                    from_entity,
                    field_name,
                    resolved,
                    distance,
                )
                return resolved
            for target, weight in self._adjacency[vertex]:
                if target not in settled:
                    heapq.heappush(queue, (distance + weight, next(tie), target, path + (target,)))
        return None

    def all_paths(self, from_entity: str, field_name: str) -> list[tuple[str, ...]]:
        """Every simple path from *from_entity* to a vertex matching *field_name*.

        Sorted by ascending length; paths of equal length keep discovery order.
        """
        start = EntityNode(from_entity)
        targets = self.targets(field_name)
        if not targets or start not in self._adjacency:
            return []
        found = [_field_names(path) for path in self._walk(start, targets, (), {start})]
        found.sort(key=len)
        return found

    def _walk(
        self,
        vertex: Vertex,
        targets: frozenset[Vertex],
        path: tuple[Vertex, ...],
        visited: set[Vertex],
    ) -> Iterator[tuple[Vertex, ...]]:
        for target, _ in self._adjacency[vertex]:
            if target in visited:
                continue
            step = path + (target,)
            if target in targets:
                yield step
                continue
            visited.add(target)
            yield from self._walk(target, targets, step, visited)
            visited.discard(target)

    def to_dot(self) -> str:
        """Render the graph in Graphviz DOT format."""
        lines = ["digraph entities {"]
        for vertex, edges in self._adjacency.items():
            lines.append(
                f"  {_dot_id(vertex)} [label={_dot_label(vertex)}, shape={_dot_shape(vertex)}];"
            )
            for target, weight in edges:
                lines.append(f'  {_dot_id(vertex)} -> {_dot_id(target)} [label="{weight}"];')
        lines.append("}")
        return "\n".join(lines)


def _field_names(path: tuple[Vertex, ...]) -> tuple[str, ...]:
    return tuple(v.name for v in path if not isinstance(v, EntityNode))


def _dot_id(vertex: Vertex) -> str:
    if isinstance(vertex, EntityNode):
        return f'"entity:{vertex.name}"'
    kind = "parent" if isinstance(vertex, ParentRelationNode) else "attribute"
    return f'"{kind}:{vertex.entity}.{vertex.name}"'


def _dot_label(vertex: Vertex) -> str:
    return f'"{vertex.name}"'


def _dot_shape(vertex: Vertex) -> str:
    if isinstance(vertex, EntityNode):
        return "box"
    if isinstance(vertex, ParentRelationNode):
        return "diamond"
    return "ellipse"
