"""Exceptions and result types for the notification pipeline."""

from dataclasses import dataclass, field
from typing import List, Optional


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class MissingRecipient(NotificationError):
    """The entity's owner is missing or has no usable contact address."""

    def __init__(self, message: str, entity_id: Optional[int] = None, owner_id: Optional[int] = None):
        self.entity_id = entity_id
        self.owner_id = owner_id
        super().__init__(message)


class RenderError(NotificationError):
    """A required template field is absent or the template failed to render."""

    pass


class DeliveryError(NotificationError):
    """Base for failures reported by the transmission provider."""

    retryable = False


class TransientDeliveryFailure(DeliveryError):
    """Provider-side failure worth retrying (throttling, network, 4xx)."""

    retryable = True


class PermanentDeliveryFailure(DeliveryError):
    """Invalid recipient or policy rejection. Never retried."""

    retryable = False


@dataclass
class WorkerRunResult:
    """Counters for one drain of the deferred-delivery queue.

    Attributes:
        delivered: Jobs transmitted successfully
        failed: Jobs that ended in ``failed`` (transient exhausted or permanent)
        duplicates: Redelivered jobs dropped because their key was already delivered
        job_ids: Ids of every job processed, in processing order
    """

    delivered: int = 0
    failed: int = 0
    duplicates: int = 0
    job_ids: List[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.delivered + self.failed + self.duplicates
