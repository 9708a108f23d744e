"""Work queues for deferred delivery.

The producer side (``enqueue``) is used by the delivery backend; the
consumer side (``dequeue`` and the ``mark_*`` calls) by ``DeliveryWorker``.
Consumption is at-least-once: a job can come out of a queue more than once,
and the worker uses ``has_delivered`` to drop such redeliveries.
"""

import threading
from collections import deque
from typing import Deque, Dict, List, Optional, Protocol

from task_notifier.domain.models import DeliveryStatus, NotificationJob
from task_notifier.persistence.database import get_session
from task_notifier.persistence.repositories import CLAIM_LEASE_SECONDS, NotificationJobRepository


class WorkerQueue(Protocol):
    """Producer/consumer boundary between the trigger and the worker."""

    def enqueue(self, job: NotificationJob) -> NotificationJob:  # pragma: no cover - Protocol
        ...

    def dequeue(self) -> Optional[NotificationJob]:  # pragma: no cover - Protocol
        ...

    def mark_delivered(self, job: NotificationJob) -> None:  # pragma: no cover - Protocol
        ...

    def mark_failed(self, job: NotificationJob, retryable: bool) -> None:  # pragma: no cover - Protocol
        ...

    def release(self, job: NotificationJob) -> None:  # pragma: no cover - Protocol
        ...

    def has_delivered(self, idempotency_key: str) -> bool:  # pragma: no cover - Protocol
        ...

    def pending(self) -> List[NotificationJob]:  # pragma: no cover - Protocol
        ...


class InMemoryWorkerQueue:
    """Thread-safe FIFO queue living in process memory.

    Not durable; suited to tests and single-process development. ``redeliver``
    pushes a job back to simulate a broker delivering it twice.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: Deque[NotificationJob] = deque()
        self._outcomes: Dict[str, NotificationJob] = {}
        self._delivered_keys: set = set()

    def enqueue(self, job: NotificationJob) -> NotificationJob:
        with self._lock:
            self._pending.append(job)
        return job

    def redeliver(self, job: NotificationJob) -> None:
        self.enqueue(job)

    def dequeue(self) -> Optional[NotificationJob]:
        with self._lock:
            if not self._pending:
                return None
            return self._pending.popleft().transition(DeliveryStatus.DELIVERING)

    def mark_delivered(self, job: NotificationJob) -> None:
        with self._lock:
            self._outcomes[job.id] = job
            self._delivered_keys.add(job.idempotency_key)

    def mark_failed(self, job: NotificationJob, retryable: bool) -> None:
        with self._lock:
            self._outcomes[job.id] = job

    def release(self, job: NotificationJob) -> None:
        """Return a claimed job to the head of the queue."""
        with self._lock:
            self._pending.appendleft(job.transition(DeliveryStatus.CREATED))

    def has_delivered(self, idempotency_key: str) -> bool:
        with self._lock:
            return idempotency_key in self._delivered_keys

    def pending(self) -> List[NotificationJob]:
        with self._lock:
            return list(self._pending)

    def outcome(self, job_id: str) -> Optional[NotificationJob]:
        """Last recorded state of a processed job."""
        with self._lock:
            return self._outcomes.get(job_id)


class DatabaseWorkerQueue:
    """Durable queue backed by the ``notification_jobs`` table.

    Every call runs in its own committed session, so an enqueued job survives
    a crash of the producing process. A claim that gets no outcome within
    ``lease_seconds`` is handed out again, which covers a crashed worker.
    """

    def __init__(self, lease_seconds: float = CLAIM_LEASE_SECONDS):
        self.lease_seconds = lease_seconds

    def enqueue(self, job: NotificationJob) -> NotificationJob:
        with get_session() as session:
            return NotificationJobRepository(session).add(job)

    def dequeue(self) -> Optional[NotificationJob]:
        with get_session() as session:
            return NotificationJobRepository(session).claim_next(self.lease_seconds)

    def mark_delivered(self, job: NotificationJob) -> None:
        with get_session() as session:
            NotificationJobRepository(session).save_outcome(job)

    def mark_failed(self, job: NotificationJob, retryable: bool) -> None:
        with get_session() as session:
            NotificationJobRepository(session).save_outcome(job, retryable=retryable)

    def release(self, job: NotificationJob) -> None:
        with get_session() as session:
            NotificationJobRepository(session).release(job)

    def has_delivered(self, idempotency_key: str) -> bool:
        with get_session() as session:
            return NotificationJobRepository(session).has_delivered(idempotency_key)

    def pending(self) -> List[NotificationJob]:
        with get_session() as session:
            return NotificationJobRepository(session).list_by_status(DeliveryStatus.CREATED)

    def get(self, job_id: str) -> Optional[NotificationJob]:
        with get_session() as session:
            return NotificationJobRepository(session).get(job_id)
