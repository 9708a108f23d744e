"""Utility functions for hashing and time handling."""

from .hashing import compute_idempotency_key
from .timestamps import ensure_utc, format_timestamp, parse_timestamp, utc_now

__all__ = [
    # Hashing
    "compute_idempotency_key",
    # Timestamps
    "utc_now",
    "ensure_utc",
    "format_timestamp",
    "parse_timestamp",
]
