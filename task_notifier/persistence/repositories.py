"""Data access layer (repositories) for persistence operations.

Repositories wrap a caller-owned session, never commit, and return domain
models rather than ORM models.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from task_notifier.domain.models import (
    DeliveryRecord,
    DeliveryStatus,
    NotificationJob,
    Owner,
    Task,
)
from task_notifier.utils.timestamps import utc_now

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import (
    DeliveryRecordModel,
    NotificationJobModel,
    OwnerModel,
    TaskModel,
    format_db_datetime,
)

logger = logging.getLogger(__name__)

# Longer than a full retry cycle at the largest allowed max_retries
CLAIM_LEASE_SECONDS = 900


class OwnerRepository:
    """Repository for owner records."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, owner: Owner) -> Owner:
        """Insert a new owner and return it with its assigned id.

        Raises:
            DataIntegrityError: On constraint violation
            PersistenceError: If database error occurs
        """
        try:
            owner_model = OwnerModel.from_domain(owner)
            self.session.add(owner_model)
            self.session.flush()
            return owner_model.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error adding owner {owner.name}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to add owner due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error adding owner {owner.name}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to add owner: {e}") from e

    def get(self, owner_id: int) -> Optional[Owner]:
        """Owner by id, or None."""
        try:
            owner_model = self.session.get(OwnerModel, owner_id)
            return owner_model.to_domain() if owner_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving owner {owner_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve owner: {e}") from e

    def update_email(self, owner_id: int, email: str) -> Owner:
        """Change an owner's contact address.

        Raises:
            RecordNotFoundError: If owner_id doesn't exist
            PersistenceError: If database error occurs
        """
        try:
            owner_model = self.session.get(OwnerModel, owner_id)
            if owner_model is None:
                raise RecordNotFoundError(f"Owner with id {owner_id} not found")
            owner_model.email = (email or "").strip()
            self.session.flush()
            return owner_model.to_domain()
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error updating email for owner {owner_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update owner email: {e}") from e


class TaskRepository:
    """Repository for task records."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, task: Task) -> Task:
        """Insert a task and return it with its assigned id.

        Raises:
            DataIntegrityError: If owner_id references no owner
            PersistenceError: If database error occurs
        """
        try:
            task_model = TaskModel.from_domain(task)
            self.session.add(task_model)
            self.session.flush()
            return task_model.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error adding task for owner {task.owner_id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to add task due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error adding task for owner {task.owner_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to add task: {e}") from e

    def get(self, task_id: int) -> Optional[Task]:
        try:
            task_model = self.session.get(TaskModel, task_id)
            return task_model.to_domain() if task_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving task {task_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve task: {e}") from e

    def list_for_owner(self, owner_id: int) -> List[Task]:
        """Tasks of one owner, oldest first."""
        try:
            stmt = select(TaskModel).where(TaskModel.owner_id == owner_id).order_by(TaskModel.id)
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing tasks for owner {owner_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list tasks: {e}") from e


class NotificationJobRepository:
    """Repository backing the durable deferred-delivery queue."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, job: NotificationJob) -> NotificationJob:
        """Append a job to the end of the queue.

        Raises:
            DataIntegrityError: If a job with the same id is already queued
            PersistenceError: If database error occurs
        """
        try:
            job_model = NotificationJobModel.from_domain(job)
            self.session.add(job_model)
            self.session.flush()
            return job_model.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error queueing job {job.id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to queue job due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error queueing job {job.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to queue job: {e}") from e

    def get(self, job_id: str) -> Optional[NotificationJob]:
        try:
            job_model = self._find(job_id)
            return job_model.to_domain() if job_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve job: {e}") from e

    def _find(self, job_id: str) -> Optional[NotificationJobModel]:
        stmt = select(NotificationJobModel).where(NotificationJobModel.id == job_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def claim_next(
        self, lease_seconds: float = CLAIM_LEASE_SECONDS, now: Optional[datetime] = None
    ) -> Optional[NotificationJob]:
        """Mark the oldest claimable job as ``delivering`` and return it.

        Claimable means ``created``, or ``delivering`` with a claim older than
        ``lease_seconds`` (its worker died or gave up without recording an
        outcome).
        """
        now = now or utc_now()
        stale_before = format_db_datetime(now - timedelta(seconds=lease_seconds))
        try:
            stmt = (
                select(NotificationJobModel)
                .where(
                    or_(
                        NotificationJobModel.status == DeliveryStatus.CREATED.value,
                        and_(
                            NotificationJobModel.status == DeliveryStatus.DELIVERING.value,
                            NotificationJobModel.claimed_at < stale_before,
                        ),
                    )
                )
                .order_by(NotificationJobModel.queue_position)
                .limit(1)
            )
            job_model = self.session.execute(stmt).scalar_one_or_none()
            if job_model is None:
                return None

            if job_model.status == DeliveryStatus.DELIVERING.value:
                logger.warning(
                    f"Reclaiming job {job_model.id}: claim from {job_model.claimed_at} expired"
                )
            job_model.status = DeliveryStatus.DELIVERING.value
            job_model.claimed_at = format_db_datetime(now)
            self.session.flush()
            return job_model.to_domain()
        except SQLAlchemyError as e:
            logger.error(f"Error claiming next job: {e}", exc_info=True)
            raise PersistenceError(f"Failed to claim job: {e}") from e

    def save_outcome(self, job: NotificationJob, retryable: bool = False) -> NotificationJob:
        """Persist status, attempts and last_error of a job already in the queue.

        Raises:
            RecordNotFoundError: If the job is not queued
            PersistenceError: If database error occurs
        """
        try:
            job_model = self._find(job.id)
            if job_model is None:
                raise RecordNotFoundError(f"Notification job {job.id} not found")

            job_model.status = DeliveryStatus(job.status).value
            job_model.attempts = job.attempts
            job_model.last_error = job.last_error
            job_model.retryable = 1 if retryable else 0
            job_model.claimed_at = None
            self.session.flush()
            return job_model.to_domain()
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error saving outcome for job {job.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to save job outcome: {e}") from e

    def release(self, job: NotificationJob) -> NotificationJob:
        """Put a claimed job back at its place in the queue as ``created``.

        Raises:
            RecordNotFoundError: If the job is not queued
            PersistenceError: If database error occurs
        """
        try:
            job_model = self._find(job.id)
            if job_model is None:
                raise RecordNotFoundError(f"Notification job {job.id} not found")

            job_model.status = DeliveryStatus.CREATED.value
            job_model.attempts = job.attempts
            job_model.last_error = job.last_error
            job_model.claimed_at = None
            self.session.flush()
            return job_model.to_domain()
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error releasing job {job.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to release job: {e}") from e

    def has_delivered(self, idempotency_key: str) -> bool:
        """Whether any job with this key already reached ``delivered``."""
        try:
            stmt = select(NotificationJobModel.id).where(
                NotificationJobModel.idempotency_key == idempotency_key,
                NotificationJobModel.status == DeliveryStatus.DELIVERED.value,
            )
            return self.session.execute(stmt.limit(1)).first() is not None
        except SQLAlchemyError as e:
            logger.error(f"Error checking delivery for key {idempotency_key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to check delivery status: {e}") from e

    def list_by_status(self, status: DeliveryStatus) -> List[NotificationJob]:
        try:
            stmt = (
                select(NotificationJobModel)
                .where(NotificationJobModel.status == DeliveryStatus(status).value)
                .order_by(NotificationJobModel.queue_position)
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing jobs with status {status}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list jobs: {e}") from e


class DeliveryRecordRepository:
    """Repository for captured notifications."""

    def __init__(self, session: Session):
        self.session = session

    def append(self, job: NotificationJob) -> DeliveryRecord:
        """Store a captured copy of ``job`` with the next sequence number.

        Raises:
            DataIntegrityError: If the job was already captured
            PersistenceError: If database error occurs
        """
        try:
            record_model = DeliveryRecordModel.from_job(job, captured_at=utc_now())
            self.session.add(record_model)
            self.session.flush()
            return record_model.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error capturing job {job.id}: {e}", exc_info=True)
            raise DataIntegrityError(
                f"Failed to capture job due to constraint violation: {e}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error capturing job {job.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to capture job: {e}") from e

    def list(self, recipient: Optional[str] = None) -> List[DeliveryRecord]:
        """Captured records in capture order, optionally for one recipient."""
        try:
            stmt = select(DeliveryRecordModel).order_by(DeliveryRecordModel.sequence)
            if recipient is not None:
                stmt = stmt.where(DeliveryRecordModel.recipient == recipient)
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing delivery records: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list delivery records: {e}") from e

    def get_by_job_id(self, job_id: str) -> Optional[DeliveryRecord]:
        try:
            stmt = select(DeliveryRecordModel).where(DeliveryRecordModel.job_id == job_id)
            record_model = self.session.execute(stmt).scalar_one_or_none()
            return record_model.to_domain() if record_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving delivery record {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve delivery record: {e}") from e

    def clear(self) -> int:
        """Delete every captured record. Returns the number removed."""
        try:
            result = self.session.execute(delete(DeliveryRecordModel))
            self.session.flush()
            return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Error clearing delivery records: {e}", exc_info=True)
            raise PersistenceError(f"Failed to clear delivery records: {e}") from e
