"""Date-key helpers: storage keys, display strings, the sidebar month grid."""

from __future__ import annotations

import calendar
from datetime import date

from .models import EntrySet


def date_key(day: date) -> str:
    """Storage key for *day* (``YYYY-MM-DD``)."""
    return day.isoformat()


def parse_date_key(key: str) -> date:
    """Inverse of :func:`date_key`. Raises ValueError on a malformed key."""
    return date.fromisoformat(key)


def format_for_display(key: str) -> str:
    """``"Sunday, 18 October 2026"``; the raw key if it doesn't parse."""
    try:
        day = parse_date_key(key)
    except ValueError:
        return key
    return f"{calendar.day_name[day.weekday()]}, {day.day} {calendar.month_name[day.month]} {day.year}"


def month_label(day: date) -> str:
    return f"{calendar.month_name[day.month]} {day.year}"


def month_days(year: int, month: int, entries: EntrySet | None = None) -> list[tuple[date, bool]]:
    """Every day of the month paired with whether it has an entry."""
    entries = entries or {}
    _, last = calendar.monthrange(year, month)
    days = [date(year, month, d) for d in range(1, last + 1)]
    return [(d, date_key(d) in entries) for d in days]
