"""Explicit publish/subscribe for domain events.

Handlers are registered by name and run synchronously, in subscription
order, on the publisher's thread. A failing handler does not stop the
others: its exception is logged and returned in its HandlerOutcome, and the
publisher decides what the failure means.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, DefaultDict, List, Optional

from task_notifier.logging import get_logger

logger = get_logger(__name__, component="events")

TASK_CREATED = "task.created"

Handler = Callable[[Any], Any]


@dataclass
class HandlerOutcome:
    """Result of running one handler for one published event."""

    event_name: str
    handler_name: str
    result: Any = None
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class EventBus:
    """Registry of event handlers keyed by event name."""

    def __init__(self) -> None:
        self._handlers: DefaultDict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, event_name: str, handler: Handler) -> None:
        """Register ``handler`` for ``event_name``. Registering twice is a no-op."""
        if handler not in self._handlers[event_name]:
            self._handlers[event_name].append(handler)

    def unsubscribe(self, event_name: str, handler: Handler) -> None:
        if handler in self._handlers[event_name]:
            self._handlers[event_name].remove(handler)

    def handlers(self, event_name: str) -> List[Handler]:
        return list(self._handlers[event_name])

    def publish(self, event_name: str, payload: Any) -> List[HandlerOutcome]:
        """Run every handler for ``event_name`` with ``payload``.

        Returns:
            One HandlerOutcome per handler, in subscription order
        """
        outcomes = []
        for handler in self.handlers(event_name):
            handler_name = getattr(handler, "__qualname__", repr(handler))
            try:
                outcomes.append(
                    HandlerOutcome(event_name, handler_name, result=handler(payload))
                )
            except Exception as e:
                logger.warning(
                    f"Handler {handler_name} failed for {event_name}: {e}",
                    extra={
                        "event": "events.handler_failed",
                        "event_name": event_name,
                        "error_type": type(e).__name__,
                    },
                )
                outcomes.append(HandlerOutcome(event_name, handler_name, error=e))
        return outcomes
