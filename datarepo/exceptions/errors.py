"""
Data access error taxonomy.

Every error raised by the context cache, scopes and repositories derives from
``DataAccessError``. Errors translated from SQLAlchemy keep the original failure
as ``__cause__``.
"""


class DataAccessError(Exception):
    """Base class for data access layer errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgumentError(DataAccessError, ValueError):
    """A required entity was absent or of the wrong type."""


class MissingIdentityKeyError(InvalidArgumentError):
    """No identity key can be derived for an entity."""


class NotFoundError(DataAccessError, LookupError):
    """A query that requires a match returned nothing."""


class AmbiguousResultError(DataAccessError, LookupError):
    """A query that requires exactly one match returned several."""


class ConstructionError(DataAccessError):
    """A persistence context could not be built for the requested type."""


class PersistenceError(DataAccessError):
    """The backing store rejected a flush."""


class MetadataResolutionError(DataAccessError):
    """The entity set of a model cannot be found in the ORM metadata."""


class DisposedError(DataAccessError):
    """A closed scope or disposed repository was used."""
