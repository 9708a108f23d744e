"""Transactional notifications for newly created tasks.

- NotificationTrigger: subscribes to ``task.created`` and builds one job per task
- TemplateRenderer: Jinja2 rendering of subject, text and HTML bodies
- DeliveryBackend: immediate, deferred or captured delivery of a job
- DeliveryWorker: drains the deferred queue with retry/backoff
- SMTPTransmitter / SMTPClient: the SMTP transmission provider
"""

from .backend import DeliveryBackend, DeliveryConfig, Transmitter
from .capture import DatabaseInspectionStore, InMemoryInspectionStore, InspectionStore
from .factory import build_backend, build_worker
from .models import (
    DeliveryError,
    MissingRecipient,
    NotificationError,
    PermanentDeliveryFailure,
    RenderError,
    TransientDeliveryFailure,
    WorkerRunResult,
)
from .payloads import build_notification_context
from .queue import DatabaseWorkerQueue, InMemoryWorkerQueue, WorkerQueue
from .smtp_client import (
    SMTPClient,
    SMTPTransmitter,
    build_sender_address,
    classify_smtp_error,
)
from .templates import TemplateRenderer
from .trigger import DatabaseOwnerDirectory, NotificationTrigger, OwnerDirectory
from .worker import DeliveryWorker

__all__ = [
    # Trigger and backend
    "NotificationTrigger",
    "DeliveryBackend",
    "DeliveryConfig",
    "DeliveryWorker",
    "build_backend",
    "build_worker",
    # Collaborators
    "OwnerDirectory",
    "DatabaseOwnerDirectory",
    "Transmitter",
    "WorkerQueue",
    "InMemoryWorkerQueue",
    "DatabaseWorkerQueue",
    "InspectionStore",
    "InMemoryInspectionStore",
    "DatabaseInspectionStore",
    "TemplateRenderer",
    "SMTPClient",
    "SMTPTransmitter",
    # Exceptions and results
    "NotificationError",
    "MissingRecipient",
    "RenderError",
    "DeliveryError",
    "TransientDeliveryFailure",
    "PermanentDeliveryFailure",
    "WorkerRunResult",
    # Utilities
    "build_notification_context",
    "build_sender_address",
    "classify_smtp_error",
]
