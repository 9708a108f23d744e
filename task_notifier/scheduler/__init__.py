"""Periodic execution of the deferred-delivery worker."""

from .service import SchedulerService

__all__ = [
    "SchedulerService",
]
