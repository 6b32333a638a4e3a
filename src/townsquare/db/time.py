"""Time utilities for models and feed windows."""

from datetime import UTC, datetime, timedelta


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def days_ago(days: int, *, now: datetime | None = None) -> datetime:
    """Return the instant ``days`` whole days before ``now`` (default: current UTC time)."""
    return (now or utcnow()) - timedelta(days=days)
