"""Structured logging helpers for the task notifier."""

import logging
from typing import Optional


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges a default component into per-call extras."""

    def process(self, msg, kwargs):
        # Call-site extras win over the adapter's defaults
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(name: str, component: Optional[str] = None):
    """Return a logger, optionally tagging every record with ``component``.

    Example:
        >>> logger = get_logger(__name__, component="delivery")
        >>> logger.info("Job captured", extra={"event": "notification.captured"})
    """
    logger = logging.getLogger(name)

    if component:
        return ComponentLoggerAdapter(logger, {"component": component})

    return logger
