"""Core domain models for owners, tasks and notification jobs.

- Owner: the person a task belongs to, reachable at ``email``
- Task: the entity whose creation triggers a notification
- NotificationJob: an immutable, already-rendered notification snapshot
- DeliveryRecord: a captured copy of a job, kept for inspection
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from task_notifier.utils.timestamps import ensure_utc, utc_now


class DeliveryStatus(str, Enum):
    """Lifecycle of a notification job.

    ``created -> delivering -> delivered | failed`` for transmitted jobs,
    ``created -> captured`` for captured ones.
    """

    CREATED = "created"
    DELIVERING = "delivering"
    DELIVERED = "delivered"
    FAILED = "failed"
    CAPTURED = "captured"


class Owner(BaseModel):
    """Recipient of task notifications.

    ``email`` is stored as given; whether it is usable is decided when a
    notification is dispatched, not when the owner is saved.
    """

    id: Optional[int] = Field(None, description="Database identifier")
    name: str = Field(..., description="Display name")
    email: str = Field("", description="Contact address (may be empty)")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Owner name cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("email")
    @classmethod
    def strip_email(cls, v: Optional[str]) -> str:
        return (v or "").strip()


class Task(BaseModel):
    """A unit of work owned by exactly one Owner."""

    id: Optional[int] = Field(None, description="Database identifier")
    owner_id: int = Field(..., description="Owning Owner id")
    content: str = Field(..., description="What needs doing")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time (UTC)")

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Task content cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    model_config = {"json_schema_extra": {"example": {
        "id": 1,
        "owner_id": 1,
        "content": "Buy milk",
        "created_at": "2025-11-03T10:30:00Z",
    }}}


class RenderedNotification(BaseModel):
    """Output of the renderer: subject plus text and HTML bodies."""

    subject: str
    text_body: str
    html_body: str

    model_config = {"frozen": True}


class NotificationJob(BaseModel):
    """One pending or finished notification about one entity.

    Jobs are frozen: the recipient and rendered content are a snapshot taken
    when the job was built. Status changes go through ``transition`` which
    returns a new job.
    """

    id: str = Field(default_factory=lambda: uuid4().hex, description="Job identifier")
    idempotency_key: str = Field(..., description="Stable key of the triggering event")
    entity_type: str = Field("task", description="Kind of entity the job is about")
    entity_id: int = Field(..., description="Identifier of that entity")
    recipient: str = Field(..., min_length=1, description="Owner contact address")
    subject: str = Field(..., description="Rendered subject line")
    text_body: str = Field(..., description="Rendered plain text body")
    html_body: str = Field("", description="Rendered HTML body")
    created_at: datetime = Field(default_factory=utc_now, description="When the job was built")
    status: DeliveryStatus = Field(DeliveryStatus.CREATED, description="Delivery status")
    attempts: int = Field(0, ge=0, description="Transmission attempts so far")
    last_error: Optional[str] = Field(None, description="Most recent delivery error")

    model_config = {"frozen": True}

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @property
    def body(self) -> str:
        """The plain text body, i.e. the logical ``body`` of the payload."""
        return self.text_body

    def transition(self, status: DeliveryStatus, **changes) -> "NotificationJob":
        """Copy of this job in ``status`` with ``changes`` applied."""
        return self.model_copy(update={"status": status, **changes})


class DeliveryRecord(BaseModel):
    """A captured notification, keyed by capture order."""

    sequence: int = Field(..., ge=1, description="1-based capture order")
    job_id: str
    recipient: str
    subject: str
    text_body: str
    html_body: str = ""
    created_at: datetime
    captured_at: datetime = Field(default_factory=utc_now)

    model_config = {"frozen": True}

    @field_validator("created_at", "captured_at")
    @classmethod
    def timestamps_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @classmethod
    def from_job(cls, job: NotificationJob, sequence: int) -> "DeliveryRecord":
        return cls(
            sequence=sequence,
            job_id=job.id,
            recipient=job.recipient,
            subject=job.subject,
            text_body=job.text_body,
            html_body=job.html_body,
            created_at=job.created_at,
        )
