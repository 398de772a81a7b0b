"""Entity and field metadata consumed by the graph, compiler and evaluator."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Union

__all__ = [
    "Attribute",
    "BelongsTo",
    "EntityMetadata",
    "FieldMetadata",
    "HasMany",
    "UNKNOWN",
    "Unknown",
]


@dataclass(frozen=True, slots=True)
class Attribute:
    """A plain column attribute.

    Attributes:
        name: Field name used in paths.
        column: Mapped attribute key of the column.
    """

    name: str
    column: str


@dataclass(frozen=True, slots=True)
class BelongsTo:
    """A many-to-one relation to a parent entity.

    Attributes:
        name: Relation name used in paths.
        column: Foreign-key attribute key on the owning entity.
        target: Name of the parent entity.
        optional: Whether the foreign key is nullable.
    """

    name: str
    column: str
    target: str
    optional: bool = False


@dataclass(frozen=True, slots=True)
class HasMany:
    """A one-to-many relation to child entities.

    Attributes:
        name: Relation name used in paths.
        target: Name of the child entity.
        inverse: Foreign-key attribute key on the child pointing back.
    """

    name: str
    target: str
    inverse: str


@dataclass(frozen=True, slots=True)
class Unknown:
    """Lookup result for a name the entity does not declare."""


UNKNOWN = Unknown()

FieldMetadata = Union[Attribute, BelongsTo, HasMany, Unknown]


@dataclass(frozen=True)
class EntityMetadata:
    """Everything the core needs to know about one entity.

    Attributes:
        name: Entity name, as used by path expressions (e.g. ``"comment"``).
        fields: Declared fields in declaration order.
        model: The mapped class, when the entity is backed by SQLAlchemy.
        primary_key: Attribute key of the identity column.

    Example::

        comment = EntityMetadata(
            name="comment",
            fields=[
                Attribute("text", "text"),
                BelongsTo("post", "post_id", target="post"),
            ],
        )
    """

    name: str
    fields: Iterable[FieldMetadata] = ()
    model: type | None = None
    primary_key: str = "id"
    _by_name: Mapping[str, FieldMetadata] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        fields = tuple(self.fields)
        object.__setattr__(self, "fields", fields)
        object.__setattr__(self, "_by_name", MappingProxyType({f.name: f for f in fields}))

    def field(self, name: str) -> FieldMetadata:
        """Return the field called *name*, or ``UNKNOWN``."""
        return self._by_name.get(name, UNKNOWN)

    @property
    def attributes(self) -> tuple[Attribute, ...]:
        return tuple(f for f in self.fields if isinstance(f, Attribute))

    @property
    def parents(self) -> tuple[BelongsTo, ...]:
        return tuple(f for f in self.fields if isinstance(f, BelongsTo))

    @property
    def children(self) -> tuple[HasMany, ...]:
        return tuple(f for f in self.fields if isinstance(f, HasMany))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, model: type | None = None) -> EntityMetadata:
        """Build metadata from the plain-data form used by schema loaders.

        The mapping holds ``name``, ``attributes`` (``{name, column}``) and
        ``relations`` (``{name, kind, column, target, inverse, optional}``
        with ``kind`` either ``"belongs_to"`` or ``"has_many"``).
        """
        fields: list[FieldMetadata] = []
        for attr in data.get("attributes", ()):
            fields.append(Attribute(attr["name"], attr.get("column", attr["name"])))
        for rel in data.get("relations", ()):
            kind = rel["kind"]
            if kind == "belongs_to":
                fields.append(
                    BelongsTo(
                        rel["name"],
                        rel.get("column", f"{rel['name']}_id"),
                        target=rel.get("target", rel["name"]),
                        optional=bool(rel.get("optional", False)),
                    )
                )
            elif kind == "has_many":
                fields.append(HasMany(rel["name"], target=rel["target"], inverse=rel["inverse"]))
            else:
                raise ValueError(f"Unsupported relation kind {kind!r} on {data['name']!r}")
        return cls(
            name=data["name"],
            fields=fields,
            model=model,
            primary_key=data.get("primary_key", "id"),
        )
