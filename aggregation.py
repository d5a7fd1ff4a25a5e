"""
Bucket builders for the reporting endpoints.

Every function here is pure: it receives the plain mappings produced by the
repositories in ``services.py`` and returns stat rows. Absent income is
treated as zero; no other value is defaulted.
"""

from typing import Mapping, Optional

from categories import ExpenseCategory
from periods import day_buckets, month_buckets, year_buckets
from schemas import CategoryStat, DayStat, MonthStat, YearStat


def percentage_of(part: int, whole: int) -> float:
    """Share of ``whole`` in percent, rounded to two decimals; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    # half-up on the scaled value, matching Math.round(x * 10000) / 100
    scaled = (part * 10000 * 2 + whole) // (whole * 2)
    return scaled / 100


def build_category_stats(
    totals: Mapping[ExpenseCategory, int],
) -> list[CategoryStat]:
    rows = [(category, int(total or 0)) for category, total in totals.items()]
    grand_total = sum(total for _, total in rows)
    rows.sort(key=lambda row: row[1], reverse=True)
    return [
        CategoryStat(
            category=category,
            total_cents=total,
            percentage=percentage_of(total, grand_total),
        )
        for category, total in rows
    ]


def build_daily_stats(
    year: int,
    month: int,
    expenses_by_day: Mapping[int, int],
    income_cents: Optional[int],
) -> list[DayStat]:
    # income is monthly; every day carries the whole month's figure
    income = income_cents or 0
    return [
        DayStat(day=day, total_expenses=expenses_by_day.get(day, 0), income=income)
        for day in day_buckets(year, month)
    ]


def build_monthly_stats(
    expenses_by_month: Mapping[int, int],
    income_by_month: Mapping[int, int],
) -> list[MonthStat]:
    stats = []
    for month in month_buckets():
        total_expenses = expenses_by_month.get(month, 0)
        income = income_by_month.get(month, 0)
        stats.append(
            MonthStat(
                month=month,
                total_expenses=total_expenses,
                income=income,
                balance=income - total_expenses,
            )
        )
    return stats


def build_yearly_stats(
    expenses_by_year: Mapping[int, int],
    income_by_year: Mapping[int, int],
) -> list[YearStat]:
    stats = []
    for year in year_buckets(expenses_by_year.keys(), income_by_year.keys()):
        total_expenses = expenses_by_year.get(year, 0)
        total_income = income_by_year.get(year, 0)
        stats.append(
            YearStat(
                year=year,
                total_expenses=total_expenses,
                total_income=total_income,
                balance=total_income - total_expenses,
            )
        )
    return stats
