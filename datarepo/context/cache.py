"""
Context cache: memoizes one persistence context per (scope, context type).
"""

from typing import Any, Callable, Dict, Optional, Type, TypeVar
from loguru import logger
from datarepo.exceptions.errors import ConstructionError
from .scope import Scope

C = TypeVar("C")

ContextFactory = Callable[[], Any]


class ContextCache:
    """Factory registry keyed by context type, plus per-scope memoization.

    Factories are registered at setup time (see ``DatabaseManager.register_contexts``).
    Within a scope the same context instance is handed to every caller; without a
    scope a fresh, unmemoized context is built on every call.
    """

    def __init__(self):
        self._factories: Dict[type, ContextFactory] = {}

    def register(self, context_type: Type[C], factory: Optional[Callable[[], C]] = None) -> None:
        """Register the factory for context_type (defaults to its no-argument constructor)."""
        self._factories[context_type] = factory or context_type
        logger.debug(f"Context factory registered for {context_type.__name__}")

    def unregister(self, context_type: type) -> None:
        self._factories.pop(context_type, None)

    def is_registered(self, context_type: type) -> bool:
        return context_type in self._factories

    def get_context(self, context_type: Type[C], scope: Optional[Scope] = None) -> C:
        """Resolve the context of context_type for scope, creating it on first access."""
        if scope is None:
            return self._construct(context_type)

        context = scope.get_item(context_type)
        if context is None:
            context = self._construct(context_type)
            scope.set_item(context_type, context)
            logger.debug(f"Scope {scope.scope_id}: created {context_type.__name__}")
        return context

    def _construct(self, context_type: Type[C]) -> C:
        factory = self._factories.get(context_type)
        if factory is None:
            raise ConstructionError(
                f"No context factory registered for {context_type.__name__}"
            )

        try:
            context = factory()
        except Exception as e:
            raise ConstructionError(
                f"Failed to construct {context_type.__name__}: {e}"
            ) from e

        if not isinstance(context, context_type):
            raise ConstructionError(
                f"Factory for {context_type.__name__} returned {type(context).__name__}"
            )
        return context


# Default cache, configured at application startup
context_cache = ContextCache()
