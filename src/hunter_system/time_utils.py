from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo


DEFAULT_TZ = "UTC"

MS_PER_HOUR = 60 * 60 * 1000
DAY_NAMES = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")


def now_local(tz_name: str = DEFAULT_TZ) -> datetime:
    return datetime.now(tz=ZoneInfo(tz_name))


def to_epoch_ms(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def local_date_key(dt: datetime) -> str:
    """Calendar date of ``dt`` in its own timezone, formatted YYYY-MM-DD."""
    return dt.date().isoformat()


def parse_date_key(value: str) -> date | None:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def days_between(earlier: str, later: str) -> int | None:
    start = parse_date_key(earlier)
    end = parse_date_key(later)
    if start is None or end is None:
        return None
    return (end - start).days


def day_label(day: date) -> str:
    return DAY_NAMES[day.weekday()]


def hours_to_ms(hours: float) -> int:
    return int(hours * MS_PER_HOUR)


def date_range(start: date, days: int) -> list[date]:
    return [start + timedelta(days=i) for i in range(max(0, days))]
