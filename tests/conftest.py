"""Shared fixtures for the task notifier test suite."""

from datetime import datetime, timezone

import pytest

from task_notifier.domain.models import NotificationJob, Owner, Task
from task_notifier.logging.context import clear_log_context
from task_notifier.persistence.database import close_database, init_database
from task_notifier.utils.hashing import compute_idempotency_key


@pytest.fixture(autouse=True)
def clean_log_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def db():
    """Fresh in-memory database per test."""
    init_database("sqlite:///:memory:")
    yield
    close_database()


@pytest.fixture
def owner():
    return Owner(id=1, name="Alice", email="a@example.com")


@pytest.fixture
def task():
    return Task(
        id=7,
        owner_id=1,
        content="Buy milk",
        created_at=datetime(2025, 11, 3, 10, 30, tzinfo=timezone.utc),
    )


@pytest.fixture
def make_job():
    """Factory for rendered notification jobs."""

    def _make_job(entity_id=7, recipient="a@example.com", **overrides):
        fields = {
            "idempotency_key": compute_idempotency_key("task.created", "task", entity_id),
            "entity_id": entity_id,
            "recipient": recipient,
            "subject": "New Task Created",
            "text_body": f"Task #{entity_id}",
            "html_body": f"<p>Task #{entity_id}</p>",
        }
        fields.update(overrides)
        return NotificationJob(**fields)

    return _make_job
