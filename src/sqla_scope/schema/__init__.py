"""Schema metadata — entities, fields and the SQLAlchemy bridge."""

from sqla_scope.schema._inspect import entity_name_for, metadata_from_model
from sqla_scope.schema._metadata import (
    UNKNOWN,
    Attribute,
    BelongsTo,
    EntityMetadata,
    FieldMetadata,
    HasMany,
    Unknown,
)
from sqla_scope.schema._schema import Schema

__all__ = [
    "UNKNOWN",
    "Attribute",
    "BelongsTo",
    "EntityMetadata",
    "FieldMetadata",
    "HasMany",
    "Schema",
    "Unknown",
    "entity_name_for",
    "metadata_from_model",
]
