"""
Entity-set resolution against the ORM mapper registry.
"""

from typing import Optional, Tuple, Type
from sqlalchemy import inspect
from sqlalchemy.orm import Mapper
from datarepo.exceptions.errors import MetadataResolutionError, MissingIdentityKeyError


def get_mapper(entity_type: Type) -> Mapper:
    """Return the mapper of entity_type, or raise MetadataResolutionError."""
    mapper = inspect(entity_type, raiseerr=False)
    if not isinstance(mapper, Mapper):
        raise MetadataResolutionError(
            f"{getattr(entity_type, '__name__', entity_type)!r} is not a mapped entity type"
        )
    return mapper


def resolve_entity_set_name(entity_type: Type) -> str:
    """Find the table mapped for the class whose name matches entity_type.

    Scans the registry the type belongs to, so the lookup fails loudly when the
    type is unmapped or its name is shared by several mapped classes.
    """
    mapper = get_mapper(entity_type)
    matches = [
        m for m in mapper.registry.mappers
        if m.class_.__name__ == entity_type.__name__
    ]
    if len(matches) != 1:
        raise MetadataResolutionError(
            f"Expected one entity set for {entity_type.__name__}, found {len(matches)}"
        )

    table = matches[0].local_table
    name = getattr(table, "name", None)
    if not name or table.key not in mapper.registry.metadata.tables:
        raise MetadataResolutionError(
            f"{entity_type.__name__} is not mapped to a table in its metadata"
        )
    return name


def identity_key_of(entity, entity_set_name: Optional[str] = None) -> Tuple:
    """Identity of a tracked entity, or its primary key values when untracked."""
    state = inspect(entity)
    if state.identity is not None:
        return state.identity

    key = tuple(state.mapper.primary_key_from_instance(entity))
    if not key or any(value is None for value in key):
        raise MissingIdentityKeyError(
            f"Cannot derive an identity key in {entity_set_name or state.mapper.class_.__name__} "
            f"for {type(entity).__name__}: primary key is incomplete"
        )
    return key
