"""Persistence layer for owners, tasks and notification jobs using SQLite.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repository classes
    - OwnerRepository / TaskRepository: the entities notifications are about
    - NotificationJobRepository: durable queue for deferred delivery
    - DeliveryRecordRepository: captured notifications

Example usage:
    >>> from task_notifier.persistence import init_database, get_session, OwnerRepository
    >>> init_database("sqlite:///./data/task_notifier.db")
    >>> with get_session() as session:
    ...     owner = OwnerRepository(session).get(1)
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import (
    DeliveryRecordRepository,
    NotificationJobRepository,
    OwnerRepository,
    TaskRepository,
)

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Repositories
    "OwnerRepository",
    "TaskRepository",
    "NotificationJobRepository",
    "DeliveryRecordRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
