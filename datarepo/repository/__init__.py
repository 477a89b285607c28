"""
Repository pattern: generic data access over a scope-shared persistence context.
"""

from .base import BaseRepository, IRepository
from .metadata import resolve_entity_set_name
from .options import SaveOptions

__all__ = ["BaseRepository", "IRepository", "SaveOptions", "resolve_entity_set_name"]
