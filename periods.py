import calendar
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from config import get_settings

MIN_REPORT_YEAR = 2000
MAX_REPORT_YEAR = 2100


@dataclass(frozen=True)
class Period:
    """Inclusive date window. ``end`` is the last calendar day that counts."""

    slug: str
    start: date
    end: date


def today() -> date:
    return datetime.now(ZoneInfo(get_settings().timezone)).date()


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> Period:
    first = date(year, month, 1)
    last = first.replace(day=days_in_month(year, month))
    return Period("month", first, last)


def year_bounds(year: int) -> Period:
    return Period("year", date(year, 1, 1), date(year, 12, 31))


def month_buckets() -> list[int]:
    return list(range(1, 13))


def day_buckets(year: int, month: int) -> list[int]:
    return list(range(1, days_in_month(year, month) + 1))


def year_buckets(*observed: Iterable[int]) -> list[int]:
    """Years seen in any of the given sources, ascending. Never zero-filled."""
    years: set[int] = set()
    for source in observed:
        years.update(source)
    return sorted(years)


def resolve_stats_window(
    year: Optional[int], month: Optional[int]
) -> Optional[Period]:
    if year is None:
        # a month without a year does not narrow the window
        return None
    if month is None:
        return year_bounds(year)
    return month_bounds(year, month)
