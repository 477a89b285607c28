"""
Request-scoped persistence contexts.
"""

from .cache import ContextCache, context_cache
from .scope import Scope

__all__ = ["ContextCache", "Scope", "context_cache"]
