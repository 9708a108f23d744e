"""Database schema definition and ORM models.

Defines SQLAlchemy ORM models plus conversions to and from domain models.
Timestamps are stored as ISO 8601 UTC strings.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from task_notifier.domain.models import (
    DeliveryRecord,
    DeliveryStatus,
    NotificationJob,
    Owner,
    Task,
)
from task_notifier.utils.timestamps import parse_timestamp

logger = logging.getLogger(__name__)

Base = declarative_base()


class OwnerModel(Base):
    """ORM model for owners table."""

    __tablename__ = "owners"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(320), nullable=False, default="")

    def to_domain(self) -> Owner:
        return Owner(id=self.id, name=self.name, email=self.email or "")

    @classmethod
    def from_domain(cls, owner: Owner) -> "OwnerModel":
        return cls(id=owner.id, name=owner.name, email=owner.email)


class TaskModel(Base):
    """ORM model for tasks table."""

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("owners.id"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(String(50), nullable=False)

    __table_args__ = (Index("idx_tasks_owner", "owner_id"),)

    def to_domain(self) -> Task:
        return Task(
            id=self.id,
            owner_id=self.owner_id,
            content=self.content,
            created_at=parse_timestamp(self.created_at),
        )

    @classmethod
    def from_domain(cls, task: Task) -> "TaskModel":
        return cls(
            id=task.id,
            owner_id=task.owner_id,
            content=task.content,
            created_at=format_db_datetime(task.created_at),
        )


class NotificationJobModel(Base):
    """ORM model for notification_jobs table.

    Durable queue for deferred delivery. Rows are claimed oldest first;
    queue_position is the autoincrement key that fixes that order, and
    claimed_at marks when a worker took the row.
    """

    __tablename__ = "notification_jobs"

    queue_position = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(32), nullable=False, unique=True)
    idempotency_key = Column(String(64), nullable=False)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(Integer, nullable=False)
    recipient = Column(String(320), nullable=False)
    subject = Column(Text, nullable=False)
    text_body = Column(Text, nullable=False)
    html_body = Column(Text, nullable=False, default="")
    created_at = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    retryable = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    claimed_at = Column(String(50), nullable=True)

    __table_args__ = (
        Index("idx_notification_jobs_status", "status", "queue_position"),
        Index("idx_notification_jobs_idempotency", "idempotency_key"),
    )

    def to_domain(self) -> NotificationJob:
        return NotificationJob(
            id=self.id,
            idempotency_key=self.idempotency_key,
            entity_type=self.entity_type,
            entity_id=self.entity_id,
            recipient=self.recipient,
            subject=self.subject,
            text_body=self.text_body,
            html_body=self.html_body or "",
            created_at=parse_timestamp(self.created_at),
            status=DeliveryStatus(self.status),
            attempts=self.attempts,
            last_error=self.last_error,
        )

    @classmethod
    def from_domain(cls, job: NotificationJob) -> "NotificationJobModel":
        return cls(
            id=job.id,
            idempotency_key=job.idempotency_key,
            entity_type=job.entity_type,
            entity_id=job.entity_id,
            recipient=job.recipient,
            subject=job.subject,
            text_body=job.text_body,
            html_body=job.html_body,
            created_at=format_db_datetime(job.created_at),
            status=DeliveryStatus(job.status).value,
            attempts=job.attempts,
            retryable=0,
            last_error=job.last_error,
        )


class DeliveryRecordModel(Base):
    """ORM model for delivery_records table (captured notifications)."""

    __tablename__ = "delivery_records"

    sequence = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(String(32), nullable=False, unique=True)
    recipient = Column(String(320), nullable=False)
    subject = Column(Text, nullable=False)
    text_body = Column(Text, nullable=False)
    html_body = Column(Text, nullable=False, default="")
    created_at = Column(String(50), nullable=False)
    captured_at = Column(String(50), nullable=False)

    __table_args__ = (Index("idx_delivery_records_recipient", "recipient"),)

    def to_domain(self) -> DeliveryRecord:
        return DeliveryRecord(
            sequence=self.sequence,
            job_id=self.job_id,
            recipient=self.recipient,
            subject=self.subject,
            text_body=self.text_body,
            html_body=self.html_body or "",
            created_at=parse_timestamp(self.created_at),
            captured_at=parse_timestamp(self.captured_at),
        )

    @classmethod
    def from_job(cls, job: NotificationJob, captured_at: datetime) -> "DeliveryRecordModel":
        """Captured copy of ``job``; the sequence is assigned on insert."""
        return cls(
            job_id=job.id,
            recipient=job.recipient,
            subject=job.subject,
            text_body=job.text_body,
            html_body=job.html_body,
            created_at=format_db_datetime(job.created_at),
            captured_at=format_db_datetime(captured_at),
        )


def format_db_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime as ISO 8601 UTC string for storage."""
    if dt is None:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
