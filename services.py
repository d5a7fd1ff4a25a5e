from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterator, Optional

from sqlalchemy import extract, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aggregation import (
    build_category_stats,
    build_daily_stats,
    build_monthly_stats,
    build_yearly_stats,
)
from categories import ExpenseCategory
from errors import Forbidden, NotFound, StorageError, ValidationError
from models import Expense, MonthlyIncome
from money import format_currency
from periods import Period, month_bounds, resolve_stats_window, year_bounds
from schemas import (
    CategoryStat,
    DayStat,
    ExpenseIn,
    ExpensePatch,
    IncomeIn,
    MonthStat,
    MonthSummary,
    YearStat,
)

logger = logging.getLogger(__name__)


@contextmanager
def storage_guard(session: Session, operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception(f"storage_error: operation={operation}")
        raise StorageError(
            f"Storage failure during {operation}", operation=operation
        ) from exc


def _require_amount(value: object, field: str = "amountCents") -> int:
    if value is None:
        raise ValidationError(field, "Required")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field, "Expected an integer number of cents")
    if value < 0:
        raise ValidationError(field, "Must be greater than or equal to 0")
    return value


def _require_category(value: object) -> ExpenseCategory:
    try:
        return ExpenseCategory(value)
    except ValueError as exc:
        raise ValidationError("category", f"Unknown category: {value!r}") from exc


def _require_month(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 12:
        raise ValidationError("month", "Month must be between 1 and 12")
    return value


class ExpenseService:
    def __init__(self, session: Session, user_id: str) -> None:
        self.session = session
        self.user_id = user_id

    def create(self, data: ExpenseIn) -> Expense:
        amount_cents = _require_amount(data.amount_cents)
        category = _require_category(data.category)
        if data.date is None:
            raise ValidationError("date", "Required")
        expense = Expense(
            user_id=self.user_id,
            amount_cents=amount_cents,
            category=category,
            description=data.description,
            date=data.date,
        )
        with storage_guard(self.session, "expense_create"):
            self.session.add(expense)
            self.session.commit()
            self.session.refresh(expense)
        logger.info(
            f"expense_created: user_id={self.user_id} expense_id={expense.id} "
            f"amount_cents={amount_cents}"
        )
        return expense

    def get(self, expense_id: str) -> Expense:
        with storage_guard(self.session, "expense_get"):
            expense = self.session.get(Expense, expense_id)
        if expense is None:
            raise NotFound()
        if expense.user_id != self.user_id:
            logger.warning(
                f"expense_forbidden: user_id={self.user_id} expense_id={expense_id}"
            )
            raise Forbidden()
        return expense

    def update(self, expense_id: str, data: ExpensePatch) -> Expense:
        changes = data.changes()
        if "amount_cents" in changes:
            changes["amount_cents"] = _require_amount(changes["amount_cents"])
        if "category" in changes:
            changes["category"] = _require_category(changes["category"])
        if "date" in changes and changes["date"] is None:
            raise ValidationError("date", "Required")

        expense = self.get(expense_id)
        for name, value in changes.items():
            setattr(expense, name, value)
        with storage_guard(self.session, "expense_update"):
            self.session.commit()
            self.session.refresh(expense)
        logger.info(
            f"expense_updated: user_id={self.user_id} expense_id={expense_id} "
            f"fields={','.join(sorted(changes)) or '-'}"
        )
        return expense

    def delete(self, expense_id: str) -> None:
        expense = self.get(expense_id)
        with storage_guard(self.session, "expense_delete"):
            self.session.delete(expense)
            self.session.commit()
        logger.info(f"expense_deleted: user_id={self.user_id} expense_id={expense_id}")

    def list_by_range(self, start: date, end: date) -> list[Expense]:
        stmt = (
            select(Expense)
            .where(
                Expense.user_id == self.user_id,
                Expense.date.between(start, end),
            )
            .order_by(Expense.date.desc(), Expense.created_at.desc())
        )
        with storage_guard(self.session, "expense_list"):
            return list(self.session.scalars(stmt).all())

    def list_for_month(self, year: int, month: int) -> list[Expense]:
        period = month_bounds(year, month)
        return self.list_by_range(period.start, period.end)

    def sum_by_category(
        self, start: Optional[date] = None, end: Optional[date] = None
    ) -> dict[ExpenseCategory, int]:
        stmt = (
            select(Expense.category, func.sum(Expense.amount_cents).label("total"))
            .where(Expense.user_id == self.user_id)
            .group_by(Expense.category)
        )
        if start is not None and end is not None:
            stmt = stmt.where(Expense.date.between(start, end))
        with storage_guard(self.session, "expense_sum_by_category"):
            rows = self.session.execute(stmt).all()
        return {row.category: int(row.total or 0) for row in rows}

    def sum_by_date(self, start: date, end: date) -> dict[date, int]:
        stmt = (
            select(Expense.date, func.sum(Expense.amount_cents).label("total"))
            .where(
                Expense.user_id == self.user_id,
                Expense.date.between(start, end),
            )
            .group_by(Expense.date)
        )
        with storage_guard(self.session, "expense_sum_by_date"):
            rows = self.session.execute(stmt).all()
        return {row.date: int(row.total or 0) for row in rows}

    def sum_by_day_of_month(self, year: int, month: int) -> dict[int, int]:
        period = month_bounds(year, month)
        totals: dict[int, int] = {}
        for day, total in self.sum_by_date(period.start, period.end).items():
            totals[day.day] = totals.get(day.day, 0) + total
        return totals

    def sum_by_month(self, year: int) -> dict[int, int]:
        period = year_bounds(year)
        month = extract("month", Expense.date).label("month")
        stmt = (
            select(month, func.sum(Expense.amount_cents).label("total"))
            .where(
                Expense.user_id == self.user_id,
                Expense.date.between(period.start, period.end),
            )
            .group_by(month)
        )
        with storage_guard(self.session, "expense_sum_by_month"):
            rows = self.session.execute(stmt).all()
        return {int(row.month): int(row.total or 0) for row in rows}

    def sum_by_year(self) -> dict[int, int]:
        year = extract("year", Expense.date).label("year")
        stmt = (
            select(year, func.sum(Expense.amount_cents).label("total"))
            .where(Expense.user_id == self.user_id)
            .group_by(year)
        )
        with storage_guard(self.session, "expense_sum_by_year"):
            rows = self.session.execute(stmt).all()
        return {int(row.year): int(row.total or 0) for row in rows}


class IncomeService:
    def __init__(self, session: Session, user_id: str) -> None:
        self.session = session
        self.user_id = user_id

    def _insert_on_conflict(self, values: dict[str, object]):
        dialect = self.session.get_bind().dialect.name
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        elif dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        else:
            return None
        stmt = insert(MonthlyIncome).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=[
                MonthlyIncome.user_id,
                MonthlyIncome.year,
                MonthlyIncome.month,
            ],
            set_={
                "amount_cents": stmt.excluded.amount_cents,
                "updated_at": stmt.excluded.updated_at,
            },
        )

    def upsert(self, data: IncomeIn) -> MonthlyIncome:
        amount_cents = _require_amount(data.amount_cents)
        month = _require_month(data.month)
        now = datetime.utcnow()
        values = {
            "user_id": self.user_id,
            "year": data.year,
            "month": month,
            "amount_cents": amount_cents,
            "created_at": now,
            "updated_at": now,
        }
        stmt = self._insert_on_conflict(values)
        with storage_guard(self.session, "income_upsert"):
            if stmt is not None:
                self.session.execute(stmt)
            else:
                existing = self._find(data.year, month)
                if existing:
                    existing.amount_cents = amount_cents
                else:
                    self.session.add(MonthlyIncome(**values))
            self.session.commit()
            record = self._find(data.year, month)
            # the row may be cached in the identity map from an earlier read
            self.session.refresh(record)
        logger.info(
            f"income_upserted: user_id={self.user_id} year={data.year} "
            f"month={month} amount_cents={amount_cents}"
        )
        return record

    def _find(self, year: int, month: int) -> Optional[MonthlyIncome]:
        return self.session.scalar(
            select(MonthlyIncome).where(
                MonthlyIncome.user_id == self.user_id,
                MonthlyIncome.year == year,
                MonthlyIncome.month == month,
            )
        )

    def get(self, year: int, month: int) -> Optional[MonthlyIncome]:
        with storage_guard(self.session, "income_get"):
            return self._find(year, _require_month(month))

    def list_by_year(self, year: int) -> list[MonthlyIncome]:
        stmt = (
            select(MonthlyIncome)
            .where(MonthlyIncome.user_id == self.user_id, MonthlyIncome.year == year)
            .order_by(MonthlyIncome.month.asc())
        )
        with storage_guard(self.session, "income_list_by_year"):
            return list(self.session.scalars(stmt).all())

    def sum_all_by_year(self) -> dict[int, int]:
        stmt = (
            select(
                MonthlyIncome.year,
                func.sum(MonthlyIncome.amount_cents).label("total"),
            )
            .where(MonthlyIncome.user_id == self.user_id)
            .group_by(MonthlyIncome.year)
        )
        with storage_guard(self.session, "income_sum_all_by_year"):
            rows = self.session.execute(stmt).all()
        return {int(row.year): int(row.total or 0) for row in rows}


class MetricsService:
    """Reporting reads. Expense and income are read separately, not in one snapshot."""

    def __init__(self, session: Session, user_id: str) -> None:
        self.session = session
        self.user_id = user_id
        self.expenses = ExpenseService(session, user_id)
        self.income = IncomeService(session, user_id)

    def category_breakdown(
        self, year: Optional[int] = None, month: Optional[int] = None
    ) -> list[CategoryStat]:
        window: Optional[Period] = resolve_stats_window(year, month)
        if window is None:
            totals = self.expenses.sum_by_category()
        else:
            totals = self.expenses.sum_by_category(window.start, window.end)
        return build_category_stats(totals)

    def daily_breakdown(self, year: int, month: int) -> list[DayStat]:
        month = _require_month(month)
        expenses_by_day = self.expenses.sum_by_day_of_month(year, month)
        record = self.income.get(year, month)
        return build_daily_stats(
            year, month, expenses_by_day, record.amount_cents if record else None
        )

    def monthly_breakdown(self, year: int) -> list[MonthStat]:
        expenses_by_month = self.expenses.sum_by_month(year)
        income_by_month = {
            record.month: record.amount_cents
            for record in self.income.list_by_year(year)
        }
        return build_monthly_stats(expenses_by_month, income_by_month)

    def yearly_breakdown(self) -> list[YearStat]:
        return build_yearly_stats(
            self.expenses.sum_by_year(), self.income.sum_all_by_year()
        )

    def month_summary(self, year: int, month: int) -> MonthSummary:
        month = _require_month(month)
        stat = self.monthly_breakdown(year)[month - 1]
        return MonthSummary(
            year=year,
            month=month,
            income=stat.income,
            total_expenses=stat.total_expenses,
            balance=stat.balance,
            formatted={
                "income": format_currency(stat.income),
                "totalExpenses": format_currency(stat.total_expenses),
                "balance": format_currency(stat.balance),
            },
        )
