# utils/time_utils.py
from datetime import datetime, timezone, time, timedelta
from typing import Optional

from utils.errors import BadRequestError


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso(s: Optional[str], *, end_of_day: bool = False) -> Optional[datetime]:
    """Parse an ISO date or datetime query value.

    A bare date (YYYY-MM-DD) is widened to the end of that day when
    ``end_of_day`` is set, so an inclusive range covers the whole day.
    """
    if not s:
        return None
    try:
        value = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        raise BadRequestError(f"Bad datetime format: {s}")
    if end_of_day and len(s) == 10:
        value = datetime.combine(value.date(), time.max)
    return to_naive_utc(value)


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min)


def days_ago(days: int, now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()) - timedelta(days=days)
