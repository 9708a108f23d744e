"""In-process domain events."""

from .bus import TASK_CREATED, EventBus, HandlerOutcome

__all__ = ["EventBus", "HandlerOutcome", "TASK_CREATED"]
