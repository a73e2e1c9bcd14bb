"""
Timezone handling.

Conventions:
- UTC for storage and for every effective-date comparison
- SCHEDULER_TIMEZONE only for evaluating cron expressions
"""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo


TZ_UTC = timezone.utc


def now_utc() -> datetime:
    """
    Current time in UTC (timezone-aware).

    Returns:
        datetime in UTC with tzinfo
    """
    return datetime.now(TZ_UTC)


def now_in(tz_name: str) -> datetime:
    """Current time in the named IANA timezone."""
    return datetime.now(ZoneInfo(tz_name))


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Naive datetimes are assumed to already be in UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=TZ_UTC)
    return dt.astimezone(TZ_UTC)


def iso_utc(dt: Optional[datetime] = None) -> str:
    """ISO 8601 string in UTC (defaults to now). Used for database writes."""
    if dt is None:
        dt = now_utc()
    return to_utc(dt).isoformat()


def parse_datetime(value: Optional[str | datetime]) -> Optional[datetime]:
    """
    Parse a timestamp coming from the database into an aware UTC datetime.

    Accepts ISO strings (including a trailing "Z") and datetime objects.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_utc(value)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_utc(datetime.fromisoformat(text))
