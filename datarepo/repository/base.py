"""
Repository abstract base class and generic implementation.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, List, Optional, Type, TypeVar
from loguru import logger
from sqlalchemy import inspect
from sqlalchemy.exc import InvalidRequestError, MultipleResultsFound, NoResultFound, SQLAlchemyError
from sqlalchemy.orm import make_transient, make_transient_to_detached
from sqlalchemy.sql import ColumnElement
from sqlmodel import SQLModel, func, select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel.sql.expression import Select, SelectOfScalar

from datarepo.context.cache import ContextCache, context_cache
from datarepo.context.scope import Scope
from datarepo.exceptions.errors import (
    AmbiguousResultError,
    DisposedError,
    InvalidArgumentError,
    NotFoundError,
    PersistenceError,
)
from .metadata import get_mapper, identity_key_of, resolve_entity_set_name
from .options import SaveOptions

T = TypeVar("T", bound=SQLModel)
C = TypeVar("C", bound=AsyncSession)


class IRepository(ABC, Generic[T, C]):
    """Repository interface; defines standard data access API."""

    @property
    @abstractmethod
    def context(self) -> C:
        """The persistence context the repository works against."""

    @abstractmethod
    def fetch(self) -> SelectOfScalar[T]:
        """Lazy, composable query over the entity set."""

    @abstractmethod
    async def get_all(self) -> List[T]:
        """Materialize every entity of the set."""

    @abstractmethod
    async def find(self, *predicates: ColumnElement[bool], **filters: Any) -> List[T]:
        """Entities matching the criteria."""

    @abstractmethod
    async def single(self, *predicates: ColumnElement[bool], **filters: Any) -> T:
        """The exactly-one entity matching the criteria."""

    @abstractmethod
    async def first(self, *predicates: ColumnElement[bool], **filters: Any) -> T:
        """The first entity matching the criteria."""

    @abstractmethod
    def add(self, entity: T) -> T:
        """Mark entity as pending insert."""

    @abstractmethod
    async def update(self, entity: T) -> Optional[T]:
        """Apply entity's current values to its tracked original."""

    @abstractmethod
    async def delete(self, entity: T) -> None:
        """Mark entity as pending delete."""

    @abstractmethod
    def attach(self, entity: T) -> T:
        """Track entity as unchanged."""

    @abstractmethod
    async def save_changes(self, options: SaveOptions = SaveOptions.DEFAULT) -> None:
        """Flush all pending changes of the context."""

    @abstractmethod
    async def dispose(self) -> None:
        """Release the held context."""


class BaseRepository(IRepository[T, C]):
    """Generic repository over one entity type and one persistence context.

    The context comes from the context cache for ``scope`` (one shared session per
    scope and context type) unless one is passed explicitly. Repositories created
    in the same scope observe each other's pending changes: queries autoflush.
    Subclasses add domain queries on top of find/find_first/single/first.
    """

    def __init__(
        self,
        model: Type[T],
        scope: Optional[Scope] = None,
        context_type: Type[C] = AsyncSession,
        *,
        cache: Optional[ContextCache] = None,
        context: Optional[C] = None,
    ):
        """Initialize repository with model and a context resolved for scope."""
        self.model = model
        self.context_type = context_type
        self._mapper = get_mapper(model)
        self._entity_set_name = resolve_entity_set_name(model)
        self._column_keys = {attr.key for attr in self._mapper.column_attrs}
        self._primary_key_keys = {
            self._mapper.get_property_by_column(column).key
            for column in self._mapper.primary_key
        }

        if context is None:
            context = (cache or context_cache).get_context(context_type, scope)
        self._context: Optional[C] = context

    # --- Context ---

    @property
    def context(self) -> C:
        if self._context is None:
            raise DisposedError(f"Repository for {self._entity_set_name} has been disposed")
        return self._context

    @context.setter
    def context(self, value: C) -> None:
        if value is None:
            raise InvalidArgumentError("context must not be None")
        self._context = value

    @property
    def entity_set_name(self) -> str:
        """Name of the table backing the entity type."""
        return self._entity_set_name

    # --- Queries ---

    def fetch(self) -> SelectOfScalar[T]:
        return select(self.model)

    async def get_all(self) -> List[T]:
        result = await self.context.exec(self.fetch())
        return list(result.all())

    async def get_by_id(self, id: Any) -> Optional[T]:
        """Get entity by primary key; the identity map is checked before the store."""
        return await self.context.get(self.model, id)

    async def find(self, *predicates: ColumnElement[bool], **filters: Any) -> List[T]:
        """Find entities by SQL predicates and/or column filters (e.g. username='admin')."""
        result = await self.context.exec(self._filtered(self.fetch(), predicates, filters))
        return list(result.all())

    async def find_first(self, *predicates: ColumnElement[bool], **filters: Any) -> Optional[T]:
        """First match, or None when nothing matches."""
        result = await self.context.exec(self._filtered(self.fetch(), predicates, filters))
        return result.first()

    async def single(self, *predicates: ColumnElement[bool], **filters: Any) -> T:
        result = await self.context.exec(self._filtered(self.fetch(), predicates, filters))
        try:
            return result.one()
        except NoResultFound as e:
            raise NotFoundError(f"No {self.model.__name__} matches the criteria") from e
        except MultipleResultsFound as e:
            raise AmbiguousResultError(
                f"More than one {self.model.__name__} matches the criteria"
            ) from e

    async def first(self, *predicates: ColumnElement[bool], **filters: Any) -> T:
        entity = await self.find_first(*predicates, **filters)
        if entity is None:
            raise NotFoundError(f"No {self.model.__name__} matches the criteria")
        return entity

    async def count(self, *predicates: ColumnElement[bool], **filters: Any) -> int:
        """Count entities matching the criteria."""
        statement = select(func.count()).select_from(self.model)
        result = await self.context.exec(self._filtered(statement, predicates, filters))
        return result.one()

    # --- Change tracking ---

    def add(self, entity: T) -> T:
        self._check_entity(entity)
        self.context.add(entity)
        return entity

    async def delete(self, entity: T) -> None:
        self._check_entity(entity)
        state = inspect(entity)
        if state.transient:
            raise InvalidArgumentError(
                f"{self.model.__name__} is not tracked and has never been persisted"
            )
        if state.pending:
            # Never flushed: cancel the insert instead
            self.context.expunge(entity)
            return
        await self.context.delete(entity)

    async def delete_where(self, *predicates: ColumnElement[bool], **filters: Any) -> int:
        """Mark every matching entity as pending delete; returns how many."""
        records = await self.find(*predicates, **filters)
        for record in records:
            await self.context.delete(record)
        return len(records)

    def attach(self, entity: T) -> T:
        self._check_entity(entity)
        if entity in self.context:
            return entity

        converted = inspect(entity).transient
        if converted:
            identity_key_of(entity, self._entity_set_name)
            make_transient_to_detached(entity)
        try:
            self.context.add(entity)
        except InvalidRequestError as e:
            if converted:
                # Drop the borrowed identity so a later add() inserts instead of updating
                make_transient(entity)
            raise InvalidArgumentError(
                f"Cannot attach {self.model.__name__}: {e}"
            ) from e
        return entity

    def detach(self, entity: T) -> None:
        self._check_entity(entity)
        if entity not in self.context:
            raise InvalidArgumentError(f"{self.model.__name__} is not tracked by this context")
        self.context.expunge(entity)

    async def update(self, entity: T) -> Optional[T]:
        """Copy entity's loaded scalar values onto the tracked original.

        Every non-key column held by entity is copied, including values SQLModel
        filled from field defaults: modify(Tenant(id=1, name="x")) resets
        description to None. Pass a fully populated copy to keep other columns.

        The original is looked up by identity key (identity map first, then the
        store). Nothing happens when no original exists or it is a pending insert.
        Relationships are never touched.
        """
        self._check_entity(entity)
        key = identity_key_of(entity, self._entity_set_name)

        original = await self.context.get(self.model, key)
        if original is None:
            logger.debug(f"{self._entity_set_name}: no original for key {key}, update skipped")
            return None
        if original is entity or inspect(original).pending:
            return original

        values = inspect(entity).dict
        for attr_key in self._column_keys - self._primary_key_keys:
            if attr_key in values:
                setattr(original, attr_key, values[attr_key])
        return original

    async def save_changes(self, options: SaveOptions = SaveOptions.DEFAULT) -> None:
        """Write all pending changes of the context to the store in one unit."""
        context = self.context
        try:
            if options & SaveOptions.ACCEPT_ALL_CHANGES_AFTER_SAVE:
                await context.commit()
            else:
                await context.flush()
        except SQLAlchemyError as e:
            logger.error(f"{self._entity_set_name}: save rejected by the store: {e}")
            if options & SaveOptions.ROLLBACK_ON_FAILURE:
                await context.rollback()
            raise PersistenceError(f"Saving changes failed: {e}") from e

    # --- Mutations followed by save ---

    async def create(self, entity: T) -> T:
        """Add entity and persist it."""
        self.add(entity)
        await self.save_changes()
        return entity

    async def modify(self, entity: T) -> Optional[T]:
        """Update entity and persist the change."""
        original = await self.update(entity)
        await self.save_changes()
        return original

    async def remove(self, entity: T) -> None:
        """Delete entity and persist the removal."""
        await self.delete(entity)
        await self.save_changes()

    async def remove_where(self, *predicates: ColumnElement[bool], **filters: Any) -> int:
        """Delete every matching entity and persist the removal."""
        removed = await self.delete_where(*predicates, **filters)
        await self.save_changes()
        return removed

    # --- Lifecycle ---

    async def dispose(self) -> None:
        if self._context is None:
            return
        context, self._context = self._context, None
        await context.close()
        logger.debug(f"{self._entity_set_name}: repository context released")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.dispose()

    # --- Helpers ---

    def _check_entity(self, entity: Any) -> None:
        if entity is None:
            raise InvalidArgumentError("entity must not be None")
        if not isinstance(entity, self.model):
            raise InvalidArgumentError(
                f"Expected {self.model.__name__}, got {type(entity).__name__}"
            )

    def _filtered(self, statement: Select, predicates, filters) -> Select:
        for predicate in predicates:
            if not isinstance(predicate, ColumnElement):
                raise InvalidArgumentError(
                    f"Predicates must be SQL expressions such as {self.model.__name__}.id == 1, "
                    f"got {type(predicate).__name__}"
                )
            statement = statement.where(predicate)
        for key, value in filters.items():
            if key not in self._column_keys:
                raise InvalidArgumentError(f"{self.model.__name__} has no column {key!r}")
            statement = statement.where(getattr(self.model, key) == value)
        return statement
