"""Task and owner services: the creation path that raises ``task.created``."""

from .models import TaskCreationResult
from .service import OwnerService, TaskService

__all__ = [
    "OwnerService",
    "TaskService",
    "TaskCreationResult",
]
