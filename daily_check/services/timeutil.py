"""Timezone helpers. Timestamps are stored in UTC; calendar days follow settings.timezone."""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from daily_check.config import settings


def local_zone() -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive values read back from the database (SQLite drops tzinfo)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Client input: naive datetimes are wall-clock time in the configured zone."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=local_zone())
    return value.astimezone(timezone.utc)


def local_date(value: datetime) -> date:
    """Calendar day of a timestamp in the configured zone."""
    return ensure_utc(value).astimezone(local_zone()).date()


def today() -> date:
    return utcnow().astimezone(local_zone()).date()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[start, end) of a calendar day in the configured zone, as UTC datetimes."""
    start = datetime.combine(day, time.min, tzinfo=local_zone())
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=local_zone())
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def iso(value: datetime | None) -> str | None:
    value = ensure_utc(value)
    return value.isoformat() if value else None
