"""Domain models for the task notifier."""

from .models import (
    DeliveryRecord,
    DeliveryStatus,
    NotificationJob,
    Owner,
    RenderedNotification,
    Task,
)

__all__ = [
    "Owner",
    "Task",
    "NotificationJob",
    "DeliveryRecord",
    "DeliveryStatus",
    "RenderedNotification",
]
