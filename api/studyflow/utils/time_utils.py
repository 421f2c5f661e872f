"""
Time utility functions.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """
    Current UTC time as a naive datetime.

    Timestamp columns are stored without timezone, so every "now" used for
    scheduling and comparisons goes through this helper.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """
    Convert an aware datetime to naive UTC; naive values are assumed to be UTC already.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
