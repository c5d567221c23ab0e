"""
Datetime utility functions.
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Return the current datetime in UTC timezone.

    Sessions stamp their start and finish times through this function so tests
    can patch a single place.
    """
    return datetime.now(timezone.utc)
