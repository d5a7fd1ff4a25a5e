import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from config import get_settings
from errors import ValidationError

DOLLAR_PATTERN = re.compile(r"^\d+(\.\d{1,2})?$")


def parse_dollars(value: str, *, field: str = "amount") -> int:
    """
    Convert a user-typed dollar string such as ``"12.5"`` into integer cents.

    Only plain digits with an optional one- or two-digit fraction are accepted;
    signs, thousands separators and currency symbols are rejected.
    """
    clean = (value or "").strip()
    if not DOLLAR_PATTERN.match(clean):
        raise ValidationError(field, "Enter a valid dollar amount")
    try:
        amount = Decimal(clean)
    except InvalidOperation as exc:
        raise ValidationError(field, "Enter a valid dollar amount") from exc
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_currency(cents: int, symbol: Optional[str] = None) -> str:
    if symbol is None:
        symbol = get_settings().currency_symbol
    sign = "-" if cents < 0 else ""
    return f"{sign}{symbol}{abs(cents) / 100:,.2f}"
