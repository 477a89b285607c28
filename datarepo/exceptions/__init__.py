"""
Error taxonomy and HTTP exception handling.
"""

from .errors import (
    AmbiguousResultError,
    ConstructionError,
    DataAccessError,
    DisposedError,
    InvalidArgumentError,
    MetadataResolutionError,
    MissingIdentityKeyError,
    NotFoundError,
    PersistenceError,
)

__all__ = [
    "AmbiguousResultError",
    "ConstructionError",
    "DataAccessError",
    "DisposedError",
    "InvalidArgumentError",
    "MetadataResolutionError",
    "MissingIdentityKeyError",
    "NotFoundError",
    "PersistenceError",
]
