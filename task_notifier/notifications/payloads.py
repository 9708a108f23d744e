"""Template context for task notifications."""

from typing import Dict

from task_notifier.domain.models import Owner, Task
from task_notifier.utils.timestamps import format_timestamp

from .models import RenderError


def build_notification_context(task: Task, owner: Owner) -> Dict:
    """Build the template context for "task created" mail.

    Only presence is checked here: content and owner email must be
    non-empty. Everything in the context comes from the two inputs, so the
    same pair always yields the same context.

    Returns:
        Dictionary with template keys:
        - task_id, task_content, created_at: Task fields (created_at as ISO 8601 UTC)
        - owner_name, owner_email: Owner fields

    Raises:
        RenderError: If task content or owner email is missing
    """
    content = (task.content or "").strip()
    email = (owner.email or "").strip()

    missing = []
    if not content:
        missing.append("task.content")
    if not email:
        missing.append("owner.email")
    if missing:
        raise RenderError(f"Missing required template fields: {', '.join(missing)}")

    return {
        "task_id": task.id,
        "task_content": content,
        "created_at": format_timestamp(task.created_at),
        "owner_name": owner.name,
        "owner_email": email,
    }
