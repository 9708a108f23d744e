"""Deferred-delivery worker.

Drains a WorkerQueue and transmits each job with retry/backoff. Transient
failures are retried up to ``max_retries`` times; permanent failures end
the job at once. Jobs whose idempotency key was already delivered are
dropped without transmitting. Any other error puts the job back on the queue
and propagates.
"""

import logging
import time
from typing import Callable, Optional

from task_notifier.config.models import DeliverySettings
from task_notifier.domain.models import DeliveryStatus, NotificationJob
from task_notifier.logging import get_logger
from task_notifier.logging.context import log_context

from .backend import Transmitter
from .models import DeliveryError, PermanentDeliveryFailure, WorkerRunResult
from .queue import WorkerQueue

logger = get_logger(__name__, component="worker")

MAX_RETRY_DELAY = 60.0


class DeliveryWorker:
    """Consumer side of deferred delivery."""

    def __init__(
        self,
        queue: WorkerQueue,
        transmitter: Transmitter,
        settings: DeliverySettings,
        sleep: Callable[[float], None] = time.sleep,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.queue = queue
        self.transmitter = transmitter
        self.settings = settings
        self.sleep = sleep
        self.logger = logger_instance or logger

    def run_once(self, limit: Optional[int] = None) -> WorkerRunResult:
        """Process queued jobs until the queue is empty or ``limit`` is reached."""
        result = WorkerRunResult()

        while limit is None or result.processed < limit:
            job = self.queue.dequeue()
            if job is None:
                break

            outcome = self.process(job)
            result.job_ids.append(job.id)
            if outcome is None:
                result.duplicates += 1
            elif outcome.status == DeliveryStatus.DELIVERED:
                result.delivered += 1
            else:
                result.failed += 1

        if result.processed:
            self.logger.info(
                f"Worker run complete: {result.delivered} delivered, "
                f"{result.failed} failed, {result.duplicates} duplicates",
                extra={
                    "event": "worker.run.complete",
                    "delivered": result.delivered,
                    "failed": result.failed,
                    "duplicates": result.duplicates,
                },
            )
        return result

    def process(self, job: NotificationJob) -> Optional[NotificationJob]:
        """Deliver one dequeued job and record its outcome on the queue.

        Returns:
            The job in its final state, or None when it was a duplicate
        """
        with log_context(job_id=job.id, idempotency_key=job.idempotency_key):
            if self.queue.has_delivered(job.idempotency_key):
                self.logger.info(
                    f"Dropping redelivered job {job.id}: already delivered",
                    extra={"event": "notification.duplicate_dropped"},
                )
                self.queue.mark_delivered(job.transition(DeliveryStatus.DELIVERED))
                return None

            try:
                return self._deliver_with_retry(job)
            except Exception as e:
                self.logger.error(
                    f"Unexpected error delivering job {job.id}, returning it to the queue: {e}",
                    extra={
                        "event": "notification.delivery.aborted",
                        "error_type": type(e).__name__,
                    },
                    exc_info=True,
                )
                self.queue.release(job.transition(DeliveryStatus.CREATED, last_error=str(e)))
                raise

    def _deliver_with_retry(self, job: NotificationJob) -> NotificationJob:
        max_attempts = self.settings.max_retries + 1
        attempts = job.attempts
        last_error: Optional[DeliveryError] = None

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                delay = self.settings.retry_initial_delay * (
                    self.settings.retry_backoff_multiplier ** (attempt - 2)
                )
                delay = min(delay, MAX_RETRY_DELAY)
                self.logger.warning(
                    f"Retrying job {job.id} (attempt {attempt}/{max_attempts}) after {delay:.1f}s delay",
                    extra={"event": "notification.delivery.retry", "attempt": attempt},
                )
                self.sleep(delay)

            attempts += 1
            current = job.transition(DeliveryStatus.DELIVERING, attempts=attempts)
            try:
                self.transmitter.transmit(current)
            except PermanentDeliveryFailure as e:
                self.logger.error(
                    f"Permanent delivery failure for job {job.id} to {job.recipient}: {e}",
                    extra={
                        "event": "notification.delivery.permanent_failure",
                        "attempt": attempt,
                        "error_type": type(e).__name__,
                    },
                )
                failed = current.transition(DeliveryStatus.FAILED, last_error=str(e))
                self.queue.mark_failed(failed, retryable=False)
                return failed
            except DeliveryError as e:
                last_error = e
                self.logger.warning(
                    f"Delivery failed for job {job.id} (attempt {attempt}/{max_attempts}): {e}",
                    extra={
                        "event": "notification.delivery.failure",
                        "attempt": attempt,
                        "error_type": type(e).__name__,
                        "retry_remaining": attempt < max_attempts,
                    },
                )
                continue

            delivered = current.transition(DeliveryStatus.DELIVERED, last_error=None)
            self.queue.mark_delivered(delivered)
            self.logger.info(
                f"Notification delivered to {job.recipient} (attempts: {attempt})",
                extra={"event": "notification.delivered", "attempt": attempt},
            )
            return delivered

        self.logger.error(
            f"Delivery for job {job.id} failed after {max_attempts} attempts: {last_error}",
            extra={
                "event": "notification.delivery.exhausted",
                "attempts": max_attempts,
                "error_type": type(last_error).__name__,
            },
        )
        failed = job.transition(
            DeliveryStatus.FAILED, attempts=attempts, last_error=str(last_error)
        )
        self.queue.mark_failed(failed, retryable=True)
        return failed
