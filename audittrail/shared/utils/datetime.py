"""
UTC datetime helpers.

Audit timestamps are timezone-aware UTC end to end: the service stamps
events with utc_now(), hashing and diffing normalize through ensure_utc(),
and retention cutoffs come from days_ago_utc().
"""

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Normalize a datetime to aware UTC.

    Naive values are taken to be UTC already (SQLite and some drivers drop
    the zone on read); aware values are converted. None passes through.
    The same instant therefore always serializes to the same ISO string.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def days_ago_utc(days: int) -> datetime:
    """Return the UTC instant `days` days before now (retention cutoffs)."""
    return utc_now() - timedelta(days=days)
