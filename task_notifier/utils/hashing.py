"""Deterministic keys for notification de-duplication."""

import hashlib


def compute_idempotency_key(event_name: str, entity_type: str, entity_id: int) -> str:
    """Key identifying "the notification for this creation event".

    Two jobs with the same key describe the same notification, so a worker
    that sees a key it has already delivered can drop the redelivery.

    Example:
        >>> len(compute_idempotency_key("task.created", "task", 1))
        64
    """
    composite_key = f"{event_name.strip().lower()}:{entity_type.strip().lower()}:{entity_id}"
    return hashlib.sha256(composite_key.encode("utf-8")).hexdigest()
