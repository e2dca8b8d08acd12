"""
Date range helpers.

All dates are ISO ``YYYY-MM-DD`` strings. Functions that depend on the
current date accept ``today`` so callers can pin it.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class DateRange:
    """Inclusive date span."""
    since: str
    until: str


def _parse(iso: str) -> date:
    return date.fromisoformat(iso[:10])


def enumerate_days(start: str, end: str) -> List[str]:
    """Every day from start to end inclusive; empty if start is after end."""
    first = _parse(start)
    last = _parse(end)
    days = []
    current = first
    while current <= last:
        days.append(current.isoformat())
        current += timedelta(days=1)
    return days


def clamp_range(r: DateRange) -> DateRange:
    """Swap the bounds of a reversed range."""
    if r.since <= r.until:
        return r
    return DateRange(since=r.until, until=r.since)


def last_n_days(n: int, today: Optional[date] = None) -> DateRange:
    """The n days ending today, inclusive."""
    today = today or date.today()
    since = today - timedelta(days=max(n, 1) - 1)
    return DateRange(since=since.isoformat(), until=today.isoformat())


def this_month(today: Optional[date] = None) -> DateRange:
    today = today or date.today()
    return DateRange(since=today.replace(day=1).isoformat(), until=today.isoformat())


def year_to_date(today: Optional[date] = None) -> DateRange:
    today = today or date.today()
    return DateRange(since=today.replace(month=1, day=1).isoformat(), until=today.isoformat())


def month_from_iso(iso: str) -> Tuple[int, int]:
    """(year, month) of an ISO date string."""
    return int(iso[0:4]), int(iso[5:7])
