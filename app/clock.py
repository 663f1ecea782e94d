"""
Calo date/time utilities.

All persisted timestamps are naive UTC datetimes.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

END_OF_DAY = time(23, 59, 59, 999999)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_day(moment: Optional[datetime] = None) -> datetime:
    moment = moment or utcnow()
    return datetime.combine(moment.date(), time.min)


def end_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), END_OF_DAY)


def noon(day: date) -> datetime:
    """Menus start at noon so that day arithmetic is stable across timezones."""
    return datetime.combine(day, time(12, 0))


def menu_window(days: int, today: Optional[date] = None) -> tuple[datetime, datetime]:
    """Return (start, end) for a menu of `days` days starting today."""
    start = noon(today or utcnow().date())
    end = end_of_day(start + timedelta(days=days - 1))
    return start, end


def current_day_number(start_date: datetime, days_count: int, now: Optional[datetime] = None) -> int:
    """1-based day of a menu, clamped to [1, days_count]."""
    now = now or utcnow()
    elapsed = (noon(now.date()) - noon(start_date.date())).days
    return max(1, min(elapsed + 1, max(days_count, 1)))


def days_until(end: datetime, now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    return math.ceil((end - now).total_seconds() / 86400)


def local_now(tz_name: Optional[str], fallback: str) -> datetime:
    try:
        tz = ZoneInfo(tz_name or fallback)
    except (ZoneInfoNotFoundError, ValueError):
        tz = ZoneInfo(fallback)
    return datetime.now(timezone.utc).astimezone(tz)


def hhmm(moment: datetime) -> str:
    return moment.strftime("%H:%M")
