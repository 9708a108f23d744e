"""Inspection stores for captured (non-transmitted) notifications.

A store keeps a copy of every captured job, numbered in capture order, and
makes it readable immediately after ``append`` returns.
"""

import threading
from typing import List, Optional, Protocol

from task_notifier.domain.models import DeliveryRecord, NotificationJob
from task_notifier.persistence.database import get_session
from task_notifier.persistence.repositories import DeliveryRecordRepository


class InspectionStore(Protocol):
    """Append-only log of captured notifications."""

    def append(self, job: NotificationJob) -> DeliveryRecord:  # pragma: no cover - Protocol
        ...

    def list(self, recipient: Optional[str] = None) -> List[DeliveryRecord]:  # pragma: no cover - Protocol
        ...

    def get(self, job_id: str) -> Optional[DeliveryRecord]:  # pragma: no cover - Protocol
        ...

    def clear(self) -> int:  # pragma: no cover - Protocol
        ...


class InMemoryInspectionStore:
    """Process-local capture log."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: List[DeliveryRecord] = []

    def append(self, job: NotificationJob) -> DeliveryRecord:
        with self._lock:
            record = DeliveryRecord.from_job(job, sequence=len(self._records) + 1)
            self._records.append(record)
        return record

    def list(self, recipient: Optional[str] = None) -> List[DeliveryRecord]:
        with self._lock:
            records = list(self._records)
        if recipient is None:
            return records
        return [record for record in records if record.recipient == recipient]

    def by_recipient(self, recipient: str) -> List[DeliveryRecord]:
        return self.list(recipient=recipient)

    def get(self, job_id: str) -> Optional[DeliveryRecord]:
        with self._lock:
            for record in self._records:
                if record.job_id == job_id:
                    return record
        return None

    def clear(self) -> int:
        with self._lock:
            removed = len(self._records)
            self._records = []
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class DatabaseInspectionStore:
    """Capture log persisted in the ``delivery_records`` table.

    Survives restarts, so the CLI mailbox viewer can read what a separate
    process captured.
    """

    def append(self, job: NotificationJob) -> DeliveryRecord:
        with get_session() as session:
            return DeliveryRecordRepository(session).append(job)

    def list(self, recipient: Optional[str] = None) -> List[DeliveryRecord]:
        with get_session() as session:
            return DeliveryRecordRepository(session).list(recipient=recipient)

    def by_recipient(self, recipient: str) -> List[DeliveryRecord]:
        return self.list(recipient=recipient)

    def get(self, job_id: str) -> Optional[DeliveryRecord]:
        with get_session() as session:
            return DeliveryRecordRepository(session).get_by_job_id(job_id)

    def clear(self) -> int:
        with get_session() as session:
            return DeliveryRecordRepository(session).clear()
