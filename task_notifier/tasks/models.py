"""Result types for task creation."""

from dataclasses import dataclass
from typing import Optional

from task_notifier.domain.models import NotificationJob, Task


@dataclass
class TaskCreationResult:
    """
    Outcome of creating one task.

    The task is always persisted when a result is returned. Notification
    failures are reported here instead of being raised.

    Attributes:
        task: The persisted task, with its id
        job: The notification job as returned by the delivery backend, if any
        notification_error: Error raised while notifying the owner, if any
    """

    task: Task
    job: Optional[NotificationJob] = None
    notification_error: Optional[Exception] = None

    @property
    def notified(self) -> bool:
        """True when a notification job was handed to the backend."""
        return self.job is not None and self.notification_error is None
