"""Notification trigger: "a task was created, tell its owner".

The trigger subscribes explicitly to ``task.created`` on an EventBus. For
each event it resolves the owner, renders the mail, builds exactly one
NotificationJob and hands it to the delivery backend.
"""

import logging
from typing import Optional, Protocol

from task_notifier.config.environment import is_valid_email
from task_notifier.domain.models import NotificationJob, Owner, Task
from task_notifier.events import TASK_CREATED, EventBus
from task_notifier.logging import get_logger
from task_notifier.logging.context import log_context
from task_notifier.persistence.database import get_session
from task_notifier.persistence.repositories import OwnerRepository
from task_notifier.utils.hashing import compute_idempotency_key

from .backend import DeliveryBackend
from .models import MissingRecipient, RenderError
from .templates import TemplateRenderer

logger = get_logger(__name__, component="trigger")


class OwnerDirectory(Protocol):
    """Resolves a task to its owner with a cheap local lookup."""

    def resolve(self, task: Task) -> Optional[Owner]:  # pragma: no cover - Protocol
        ...


class DatabaseOwnerDirectory:
    """Owner lookup against the owners table."""

    def resolve(self, task: Task) -> Optional[Owner]:
        with get_session() as session:
            return OwnerRepository(session).get(task.owner_id)


class NotificationTrigger:
    """Turns one ``task.created`` event into one NotificationJob."""

    def __init__(
        self,
        backend: DeliveryBackend,
        directory: Optional[OwnerDirectory] = None,
        renderer: Optional[TemplateRenderer] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.backend = backend
        self.directory = directory or DatabaseOwnerDirectory()
        self.renderer = renderer or TemplateRenderer()
        self.logger = logger_instance or logger

    def register(self, bus: EventBus) -> None:
        """Subscribe ``handle`` to task creation events on ``bus``."""
        bus.subscribe(TASK_CREATED, self.handle)

    def handle(self, task: Task) -> NotificationJob:
        """Build and deliver the notification for a persisted task.

        Returns:
            The job as returned by the delivery backend

        Raises:
            MissingRecipient: Owner not found, or its email is empty or invalid
            RenderError: Templates could not be rendered
            DeliveryError: Immediate delivery failed
        """
        with log_context(task_id=task.id, owner_id=task.owner_id):
            owner = self.directory.resolve(task)
            self._check_recipient(task, owner)

            try:
                rendered = self.renderer.render(task, owner)
            except RenderError as e:
                self.logger.error(
                    f"Could not render notification for task {task.id}: {e}",
                    extra={"event": "notification.render_failed"},
                )
                raise

            job = NotificationJob(
                idempotency_key=compute_idempotency_key(TASK_CREATED, "task", task.id),
                entity_type="task",
                entity_id=task.id,
                recipient=owner.email,
                subject=rendered.subject,
                text_body=rendered.text_body,
                html_body=rendered.html_body,
            )

            self.logger.debug(
                f"Built notification job {job.id} for task {task.id}",
                extra={"event": "notification.job_built", "job_id": job.id},
            )
            return self.backend.deliver(job)

    def _check_recipient(self, task: Task, owner: Optional[Owner]) -> None:
        if owner is None:
            reason = f"Owner {task.owner_id} of task {task.id} not found"
        elif not owner.email:
            reason = f"Owner {task.owner_id} of task {task.id} has no email address"
        elif not is_valid_email(owner.email):
            reason = f"Owner {task.owner_id} of task {task.id} has an invalid email address"
        else:
            return

        self.logger.warning(
            reason,
            extra={"event": "notification.missing_recipient"},
        )
        raise MissingRecipient(reason, entity_id=task.id, owner_id=task.owner_id)
