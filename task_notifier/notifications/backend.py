"""Delivery backend: one entry point, three strategies.

The strategy is fixed when the backend is built. Call sites only ever call
``deliver(job)`` and never need to know how the job leaves the process.

- immediate: transmit now, in the caller's thread; errors reach the caller
- deferred: put the job on a work queue and return; a worker transmits later
- captured: store the job for inspection; nothing is transmitted
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

from task_notifier.config.exceptions import ConfigurationError
from task_notifier.config.models import DeliveryStrategy
from task_notifier.domain.models import DeliveryStatus, NotificationJob
from task_notifier.logging import get_logger
from task_notifier.logging.context import log_context

from .capture import InspectionStore
from .models import DeliveryError
from .queue import WorkerQueue

logger = get_logger(__name__, component="delivery")


class Transmitter(Protocol):
    """Transmission provider: sends one job or raises a DeliveryError subclass."""

    def transmit(self, job: NotificationJob) -> None:  # pragma: no cover - Protocol
        ...


@dataclass
class DeliveryConfig:
    """Explicit delivery configuration handed to ``DeliveryBackend``.

    Attributes:
        strategy: immediate, deferred or captured
        worker_queue: Required for deferred
        inspection_store: Required for captured
        transmitter: Required for immediate
    """

    strategy: DeliveryStrategy
    worker_queue: Optional[WorkerQueue] = None
    inspection_store: Optional[InspectionStore] = None
    transmitter: Optional[Transmitter] = None


class DeliveryBackend:
    """Accepts rendered jobs and reports their delivery outcome."""

    def __init__(self, config: DeliveryConfig, logger_instance: Optional[logging.Logger] = None):
        """
        Raises:
            ConfigurationError: If the handle the strategy needs is missing
        """
        self.strategy = DeliveryStrategy(config.strategy)
        self.config = config
        self.logger = logger_instance or logger

        required = {
            DeliveryStrategy.IMMEDIATE: ("transmitter", config.transmitter),
            DeliveryStrategy.DEFERRED: ("worker_queue", config.worker_queue),
            DeliveryStrategy.CAPTURED: ("inspection_store", config.inspection_store),
        }
        handle_name, handle = required[self.strategy]
        if handle is None:
            raise ConfigurationError(
                f"Delivery strategy '{self.strategy.value}' requires {handle_name}",
                suggestions=[f"Pass {handle_name} in DeliveryConfig"],
            )

        handlers: Dict[DeliveryStrategy, Callable[[NotificationJob], NotificationJob]] = {
            DeliveryStrategy.IMMEDIATE: self._deliver_immediate,
            DeliveryStrategy.DEFERRED: self._deliver_deferred,
            DeliveryStrategy.CAPTURED: self._deliver_captured,
        }
        self._handler = handlers[self.strategy]

    def deliver(self, job: NotificationJob) -> NotificationJob:
        """Hand ``job`` to the configured strategy.

        Returns:
            The job in its post-hand-off state: ``delivered`` (immediate),
            ``created`` i.e. pending (deferred) or ``captured``

        Raises:
            TransientDeliveryFailure, PermanentDeliveryFailure: immediate only
        """
        with log_context(job_id=job.id, delivery_strategy=self.strategy.value):
            return self._handler(job)

    def _deliver_immediate(self, job: NotificationJob) -> NotificationJob:
        delivering = job.transition(DeliveryStatus.DELIVERING, attempts=job.attempts + 1)
        try:
            self.config.transmitter.transmit(delivering)
        except DeliveryError as e:
            self.logger.error(
                f"Immediate delivery to {job.recipient} failed: {e}",
                extra={
                    "event": "notification.delivery.failed",
                    "error_type": type(e).__name__,
                    "retryable": e.retryable,
                },
            )
            raise

        self.logger.info(
            f"Notification delivered to {job.recipient}",
            extra={"event": "notification.delivered", "attempt": delivering.attempts},
        )
        return delivering.transition(DeliveryStatus.DELIVERED)

    def _deliver_deferred(self, job: NotificationJob) -> NotificationJob:
        queued = self.config.worker_queue.enqueue(job)
        self.logger.info(
            f"Notification for {job.recipient} enqueued",
            extra={"event": "notification.enqueued"},
        )
        return queued

    def _deliver_captured(self, job: NotificationJob) -> NotificationJob:
        record = self.config.inspection_store.append(job)
        self.logger.info(
            f"Notification for {job.recipient} captured",
            extra={"event": "notification.captured", "sequence": record.sequence},
        )
        return job.transition(DeliveryStatus.CAPTURED)
