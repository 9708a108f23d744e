"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError so callers can
catch the whole family with one clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Database could not be initialized or reached.

    Examples:
    - Empty or malformed database URL
    - Database file not accessible
    - Database used before init_database()
    """

    pass


class RecordNotFoundError(PersistenceError):
    """A record the operation requires does not exist.

    Optional lookups return None instead of raising this.
    """

    pass


class DataIntegrityError(PersistenceError):
    """A database constraint was violated (unique key, foreign key, ...)."""

    pass
