import datetime as dt
from typing import ClassVar, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from categories import ExpenseCategory
from money import parse_dollars
from periods import MAX_REPORT_YEAR, MIN_REPORT_YEAR


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AmountInput(CamelModel):
    """Accepts integer ``amountCents`` or a dollar string ``amount``, not both."""

    amount_cents: Optional[StrictInt] = Field(default=None, ge=0)
    amount: Optional[str] = Field(default=None, exclude=True)

    amount_required: ClassVar[bool] = True

    @field_validator("amount")
    @classmethod
    def amount_is_dollar_string(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            parse_dollars(value)
        return value

    @model_validator(mode="after")
    def resolve_amount(self):
        if self.amount is not None:
            if self.amount_cents is not None:
                raise ValueError("Send either amount or amountCents, not both")
            self.amount_cents = parse_dollars(self.amount)
        elif self.amount_cents is None and self.amount_required:
            raise ValueError("amountCents is required")
        return self


class ExpenseIn(AmountInput):
    category: ExpenseCategory
    description: Optional[str] = Field(default=None, max_length=500)
    date: dt.date


class ExpensePatch(AmountInput):
    category: Optional[ExpenseCategory] = None
    description: Optional[str] = Field(default=None, max_length=500)
    date: Optional[dt.date] = None

    amount_required: ClassVar[bool] = False

    def changes(self) -> dict[str, object]:
        return self.model_dump(exclude_unset=True, exclude={"amount"})


class ExpenseOut(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: str
    user_id: str
    amount_cents: int
    category: ExpenseCategory
    description: Optional[str] = None
    date: dt.date
    created_at: dt.datetime
    updated_at: dt.datetime


class IncomeIn(AmountInput):
    year: int = Field(..., ge=MIN_REPORT_YEAR, le=MAX_REPORT_YEAR)
    month: int = Field(..., ge=1, le=12)


class MonthlyIncomeOut(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: int
    user_id: str
    year: int
    month: int
    amount_cents: int
    created_at: dt.datetime
    updated_at: dt.datetime


class CategoryStat(CamelModel):
    category: ExpenseCategory
    total_cents: int
    percentage: float


class DayStat(CamelModel):
    day: int
    total_expenses: int
    income: int


class MonthStat(CamelModel):
    month: int
    total_expenses: int
    income: int
    balance: int


class YearStat(CamelModel):
    year: int
    total_expenses: int
    total_income: int
    balance: int


class MonthSummary(CamelModel):
    year: int
    month: int
    income: int
    total_expenses: int
    balance: int
    formatted: dict[str, str]
