"""
Scope: one unit of work (typically one inbound request) that owns its persistence contexts.
"""

import uuid
from typing import Any, Dict, Hashable, List, Optional
from loguru import logger
from datarepo.exceptions.errors import DisposedError


class Scope:
    """Unit-of-work boundary holding scope-local items such as persistence contexts.

    Items are stored in a dict owned by the scope itself, so two live scopes can
    never share an entry. Closing the scope closes every context it holds.

    Usage::

        async with Scope() as scope:
            repo = UserRepository(scope)
            ...
        # contexts closed here
    """

    def __init__(self, scope_id: Optional[str] = None):
        self.scope_id = scope_id or uuid.uuid4().hex
        self._items: Dict[Hashable, Any] = {}
        self._contexts: List[Any] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def get_item(self, key: Hashable) -> Optional[Any]:
        """Return the item stored under key, or None."""
        self._ensure_open()
        return self._items.get(key)

    def set_item(self, key: Hashable, value: Any) -> None:
        """Store an item; values with an async close() are closed with the scope."""
        self._ensure_open()
        self._items[key] = value
        if hasattr(value, "close") and value not in self._contexts:
            self._contexts.append(value)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._items

    def contexts(self) -> List[Any]:
        """Contexts registered in this scope, in creation order."""
        return list(self._contexts)

    async def close(self) -> None:
        """Close every registered context once, newest first; idempotent."""
        if self._closed:
            return
        self._closed = True

        first_error: Optional[BaseException] = None
        for context in reversed(self._contexts):
            try:
                await context.close()
            except Exception as e:
                logger.opt(exception=e).error(
                    f"Scope {self.scope_id}: failed to close {type(context).__name__}"
                )
                if first_error is None:
                    first_error = e

        self._contexts.clear()
        self._items.clear()
        logger.debug(f"Scope {self.scope_id} closed")

        if first_error is not None:
            raise first_error

    def _ensure_open(self) -> None:
        if self._closed:
            raise DisposedError(f"Scope {self.scope_id} is closed")

    async def __aenter__(self) -> "Scope":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Scope(id={self.scope_id}, {state}, contexts={len(self._contexts)})"
