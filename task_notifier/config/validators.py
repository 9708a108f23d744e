"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for settings that are legal but probably unintended.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    delivery = config_dict.get("delivery", {})
    if not isinstance(delivery, dict):
        return warning_messages

    strategy = str(delivery.get("strategy", "captured")).lower()

    if strategy == "deferred" and delivery.get("max_retries") == 0:
        warning_messages.append(
            "Deferred delivery with max_retries=0 drops jobs on the first transient failure"
        )

    if strategy == "immediate" and "max_retries" in delivery:
        warning_messages.append(
            "max_retries is ignored by immediate delivery; errors surface to the caller"
        )

    if strategy == "captured":
        warning_messages.append(
            "Captured delivery stores notifications locally and never sends mail"
        )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit each message through the ``warnings`` module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
