"""
Core Utilities.

Shared utility functions used across the backend.
All modules should import utilities from this module.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-naive datetime.

    All datetime values in the application should be timezone-naive
    and assumed to be UTC.

    Returns:
        Current UTC time with tzinfo stripped
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_now_ms() -> int:
    """
    Return current UTC time as epoch milliseconds.

    Note timestamps (created_at, expires_at) are stored as integers
    so that expiry comparisons are plain integer comparisons in SQL.
    """
    return int(datetime.now(timezone.utc).timestamp() * 1000)

