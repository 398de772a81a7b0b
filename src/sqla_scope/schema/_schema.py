"""Schema — the immutable entity registry shared by compiler and evaluator."""

from __future__ import annotations

from collections.abc import Iterable
from types import MappingProxyType
from typing import Any

from sqla_scope.graph._graph import EntityGraph
from sqla_scope.schema._inspect import entity_name_for, metadata_from_model
from sqla_scope.schema._metadata import EntityMetadata

__all__ = ["Schema"]


class Schema:
    """Entities by name and by model, plus their relationship graph.

    Built once at startup and read concurrently afterwards.

    Example::

        schema = Schema.from_base(Base)
        schema.entity(Comment).field("post")   # BelongsTo(...)
        schema.shortest_path("comment", "user")  # ("post", "user")
    """

    def __init__(self, entities: Iterable[EntityMetadata]) -> None:
        by_name: dict[str, EntityMetadata] = {}
        by_model: dict[type, EntityMetadata] = {}
        for entity in entities:
            if entity.name in by_name:
                raise ValueError(f"Duplicate entity name {entity.name!r}")
            by_name[entity.name] = entity
            if entity.model is not None:
                by_model[entity.model] = entity
        self._by_name = MappingProxyType(by_name)
        self._by_model = MappingProxyType(by_model)
        self.graph = EntityGraph.build(by_name.values())

    @classmethod
    def from_models(cls, *models: type) -> Schema:
        """Build a schema by inspecting SQLAlchemy mapped classes, in the given order."""
        names = {model: entity_name_for(model) for model in models}
        return cls(metadata_from_model(model, names) for model in models)

    @classmethod
    def from_base(cls, base: Any) -> Schema:
        """Build a schema from every class mapped on a declarative base.

        Entities are ordered by table declaration order so that path
        tie-breaking follows the order models were written in.
        """
        table_order = {name: index for index, name in enumerate(base.metadata.tables)}
        mappers = sorted(
            base.registry.mappers,
            key=lambda m: table_order.get(getattr(m.local_table, "fullname", ""), len(table_order)),
        )
        return cls.from_models(*(m.class_ for m in mappers))

    @property
    def entities(self) -> tuple[EntityMetadata, ...]:
        return tuple(self._by_name.values())

    def entity(self, key: str | type) -> EntityMetadata:
        """Look up an entity by name or mapped class.

        Raises:
            KeyError: If the entity is not part of the schema.
        """
        if isinstance(key, str):
            return self._by_name[key]
        return self._by_model[key]

    def entity_of(self, instance: Any) -> EntityMetadata | None:
        """Entity of a live instance, or ``None`` for plain values."""
        return self._by_model.get(type(instance))

    def shortest_path(self, from_entity: str, field_name: str) -> tuple[str, ...] | None:
        return self.graph.shortest_path(from_entity, field_name)

    def all_paths(self, from_entity: str, field_name: str) -> list[tuple[str, ...]]:
        return self.graph.all_paths(from_entity, field_name)
