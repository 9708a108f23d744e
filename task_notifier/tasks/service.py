"""Services that create owners and tasks.

``TaskService`` commits the task first and only then publishes
``task.created``, so subscribers always see a persisted task and a failing
subscriber can never undo the creation.
"""

import logging
from typing import Optional

from task_notifier.domain.models import NotificationJob, Owner, Task
from task_notifier.events import TASK_CREATED, EventBus
from task_notifier.logging import get_logger
from task_notifier.logging.context import log_context
from task_notifier.notifications.models import NotificationError
from task_notifier.persistence.database import get_session
from task_notifier.persistence.exceptions import RecordNotFoundError
from task_notifier.persistence.repositories import OwnerRepository, TaskRepository

from .models import TaskCreationResult

logger = get_logger(__name__, component="tasks")


class TaskService:
    """Creates tasks and announces them on the event bus."""

    def __init__(self, bus: EventBus, logger_instance: Optional[logging.Logger] = None):
        self.bus = bus
        self.logger = logger_instance or logger

    def create_task(self, owner_id: int, content: str) -> TaskCreationResult:
        """Persist a task for ``owner_id`` and publish ``task.created``.

        Raises:
            pydantic.ValidationError: If content is empty
            RecordNotFoundError: If the owner does not exist
            PersistenceError: If the task could not be stored (nothing is published)
        """
        task = Task(owner_id=owner_id, content=content)

        with get_session() as session:
            if OwnerRepository(session).get(owner_id) is None:
                raise RecordNotFoundError(f"Owner with id {owner_id} not found")
            task = TaskRepository(session).add(task)

        with log_context(task_id=task.id, owner_id=owner_id):
            self.logger.info(
                f"Task {task.id} created for owner {owner_id}",
                extra={"event": "task.created"},
            )

            result = TaskCreationResult(task=task)
            for outcome in self.bus.publish(TASK_CREATED, task):
                if outcome.error is None:
                    if isinstance(outcome.result, NotificationJob):
                        result.job = outcome.result
                    continue

                result.notification_error = outcome.error
                if isinstance(outcome.error, NotificationError):
                    self.logger.warning(
                        f"Task {task.id} created but its owner was not notified: {outcome.error}",
                        extra={
                            "event": "task.notification_failed",
                            "error_type": type(outcome.error).__name__,
                        },
                    )
                else:
                    self.logger.error(
                        f"Unexpected error notifying owner of task {task.id}: {outcome.error}",
                        exc_info=outcome.error,
                        extra={
                            "event": "task.notification_error",
                            "error_type": type(outcome.error).__name__,
                        },
                    )

        return result


class OwnerService:
    """Registers owners and maintains their contact addresses."""

    def register_owner(self, name: str, email: str) -> Owner:
        """
        Raises:
            pydantic.ValidationError: If name is empty
            PersistenceError: If the owner could not be stored
        """
        owner = Owner(name=name, email=email)
        with get_session() as session:
            owner = OwnerRepository(session).add(owner)

        logger.info(
            f"Owner {owner.id} registered",
            extra={"event": "owner.registered", "owner_id": owner.id},
        )
        if not owner.email:
            logger.warning(
                f"Owner {owner.id} has no email address and will not receive notifications",
                extra={"event": "owner.missing_email", "owner_id": owner.id},
            )
        return owner

    def change_email(self, owner_id: int, email: str) -> Owner:
        """Update the address used for future notifications.

        Jobs already built keep the address they were built with.

        Raises:
            RecordNotFoundError: If the owner does not exist
        """
        with get_session() as session:
            owner = OwnerRepository(session).update_email(owner_id, email)

        logger.info(
            f"Email changed for owner {owner_id}",
            extra={"event": "owner.email_changed", "owner_id": owner_id},
        )
        return owner
