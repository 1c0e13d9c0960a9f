"""
Local time helpers. Dates in the log store are local calendar dates of the device.
"""
from datetime import date, datetime, timedelta, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo


def resolve_zone(tz_name: Optional[str] = None) -> tzinfo:
    """Return the configured zone, or the system local zone when tz_name is empty."""
    if tz_name:
        return ZoneInfo(tz_name)
    return datetime.now().astimezone().tzinfo


def local_now(tz_name: Optional[str] = None) -> datetime:
    """Timezone-aware current time in the configured (or system) zone."""
    return datetime.now(resolve_zone(tz_name))


def local_today(tz_name: Optional[str] = None) -> date:
    return local_now(tz_name).date()


def to_date(day: Union[date, str]) -> date:
    """Accept a date or a canonical YYYY-MM-DD string."""
    if isinstance(day, datetime):
        return day.date()
    if isinstance(day, date):
        return day
    return date.fromisoformat(day)


def date_key(day: Union[date, str]) -> str:
    """Canonical YYYY-MM-DD key for a calendar date."""
    if isinstance(day, str):
        return day
    return to_date(day).isoformat()


def days_between(later: date, earlier: date) -> int:
    return (later - earlier).days


def previous_days(today: date, count: int):
    """The `count` days ending today, oldest first."""
    return [today - timedelta(days=i) for i in range(count - 1, -1, -1)]
