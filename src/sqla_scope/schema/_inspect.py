"""Derive entity metadata from SQLAlchemy mappers."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from sqlalchemy.inspection import inspect as sa_inspect
from sqlalchemy.orm import Mapper, RelationshipDirection

from sqla_scope.schema._metadata import Attribute, BelongsTo, EntityMetadata, FieldMetadata, HasMany

__all__ = ["entity_name_for", "metadata_from_model"]

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def entity_name_for(model: type) -> str:
    """Entity name of a mapped class.

    ``__entity_name__`` wins when declared; otherwise the class name in
    snake_case (``BlogPost`` -> ``"blog_post"``).
    """
    explicit = getattr(model, "__entity_name__", None)
    if explicit:
        return str(explicit)
    return _CAMEL_BOUNDARY.sub("_", model.__name__).lower()


def metadata_from_model(
    model: type,
    names: Mapping[type, str] | None = None,
) -> EntityMetadata:
    """Build ``EntityMetadata`` for a mapped class.

    Column attributes become ``Attribute`` fields, many-to-one
    relationships ``BelongsTo`` and one-to-many relationships ``HasMany``.
    Many-to-many relationships have no counterpart and are left out, so
    paths through them resolve as unknown fields.

    Args:
        model: A SQLAlchemy mapped class.
        names: Entity names of related classes, when they differ from
            ``entity_name_for``.

    Returns:
        The entity's metadata, with ``model`` set.
    """
    names = names or {}
    mapper: Mapper[Any] = sa_inspect(model)
    fields: list[FieldMetadata] = []

    for prop in mapper.column_attrs:
        fields.append(Attribute(prop.key, prop.key))

    for rel in mapper.relationships:
        target_model: type = rel.mapper.class_
        target = names.get(target_model) or entity_name_for(target_model)

        if rel.direction is RelationshipDirection.MANYTOONE:
            local_columns = [local for local, _ in rel.local_remote_pairs]
            fk = mapper.get_property_by_column(local_columns[0]).key
            optional = any(col.nullable for col in local_columns)
            fields.append(BelongsTo(rel.key, fk, target=target, optional=optional))
        elif rel.direction is RelationshipDirection.ONETOMANY and rel.secondary is None:
            remote_columns = [remote for _, remote in rel.local_remote_pairs]
            inverse = rel.mapper.get_property_by_column(remote_columns[0]).key
            fields.append(HasMany(rel.key, target=target, inverse=inverse))
        else:
            logger.debug(
                "Skipping relationship %s.%s (%s): not a belongs-to or has-many",
                model.__name__,
                rel.key,
                rel.direction.name,
            )

    primary_key = mapper.get_property_by_column(mapper.primary_key[0]).key
    return EntityMetadata(
        name=names.get(model) or entity_name_for(model),
        fields=fields,
        model=model,
        primary_key=primary_key,
    )
