from datetime import date

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from categories import ExpenseCategory
from database import Base
from errors import Forbidden, NotFound, StorageError, ValidationError
from schemas import ExpenseIn, ExpensePatch
from services import ExpenseService


def make_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return SessionLocal()


def expense(amount_cents: int, category: str, day: date, description=None) -> ExpenseIn:
    return ExpenseIn(
        amount_cents=amount_cents,
        category=category,
        date=day,
        description=description,
    )


def test_created_expense_round_trips() -> None:
    session = make_session()
    created = ExpenseService(session, "alice").create(
        expense(12500, "Groceries", date(2025, 1, 5), "Weekly shop")
    )

    fetched = ExpenseService(session, "alice").get(created.id)
    assert fetched.amount_cents == 12500
    assert fetched.category == ExpenseCategory.groceries
    assert fetched.date == date(2025, 1, 5)
    assert fetched.description == "Weekly shop"
    assert fetched.user_id == "alice"
    assert fetched.created_at is not None


def test_create_rejects_negative_amount_and_unknown_category() -> None:
    session = make_session()
    service = ExpenseService(session, "alice")

    bad_amount = ExpenseIn.model_construct(
        amount_cents=-1, category=ExpenseCategory.other, date=date(2025, 1, 1)
    )
    with pytest.raises(ValidationError) as exc_info:
        service.create(bad_amount)
    assert exc_info.value.field == "amountCents"

    bad_category = ExpenseIn.model_construct(
        amount_cents=100, category="Gadgets", date=date(2025, 1, 1)
    )
    with pytest.raises(ValidationError) as exc_info:
        service.create(bad_category)
    assert exc_info.value.field == "category"

    assert service.list_by_range(date(2000, 1, 1), date(2100, 1, 1)) == []


def test_expense_input_accepts_dollar_string() -> None:
    data = ExpenseIn.model_validate(
        {"amount": "12.50", "category": "Travel", "date": "2025-03-01"}
    )
    assert data.amount_cents == 1250
    assert data.category == ExpenseCategory.travel


def test_update_applies_only_provided_fields() -> None:
    session = make_session()
    service = ExpenseService(session, "alice")
    created = service.create(expense(500, "Shopping", date(2025, 2, 1), "Socks"))

    updated = service.update(created.id, ExpensePatch(amount_cents=750))
    assert updated.amount_cents == 750
    assert updated.category == ExpenseCategory.shopping
    assert updated.description == "Socks"
    assert updated.date == date(2025, 2, 1)

    updated = service.update(
        created.id, ExpensePatch(category="Other", description=None)
    )
    assert updated.category == ExpenseCategory.other
    assert updated.description is None
    assert updated.amount_cents == 750


def test_update_rejects_clearing_required_fields() -> None:
    session = make_session()
    service = ExpenseService(session, "alice")
    created = service.create(expense(500, "Shopping", date(2025, 2, 1)))

    with pytest.raises(ValidationError) as exc_info:
        service.update(created.id, ExpensePatch(category=None))
    assert exc_info.value.field == "category"

    with pytest.raises(ValidationError):
        service.update(created.id, ExpensePatch(date=None))

    assert service.get(created.id).category == ExpenseCategory.shopping


def test_update_and_delete_enforce_ownership() -> None:
    session = make_session()
    created = ExpenseService(session, "alice").create(
        expense(500, "Travel", date(2025, 2, 1))
    )
    mallory = ExpenseService(session, "mallory")

    with pytest.raises(Forbidden):
        mallory.update(created.id, ExpensePatch(amount_cents=1))
    with pytest.raises(Forbidden):
        mallory.delete(created.id)
    with pytest.raises(NotFound):
        mallory.delete("does-not-exist")

    assert ExpenseService(session, "alice").get(created.id).amount_cents == 500


def test_delete_is_permanent_and_not_idempotent() -> None:
    session = make_session()
    service = ExpenseService(session, "alice")
    created = service.create(expense(500, "Travel", date(2025, 2, 1)))

    service.delete(created.id)
    with pytest.raises(NotFound):
        service.get(created.id)
    with pytest.raises(NotFound):
        service.delete(created.id)


def test_list_by_range_is_scoped_and_sorted_by_date_desc() -> None:
    session = make_session()
    alice = ExpenseService(session, "alice")
    alice.create(expense(100, "Groceries", date(2025, 1, 5)))
    alice.create(expense(200, "Groceries", date(2025, 1, 31)))
    alice.create(expense(300, "Groceries", date(2025, 1, 1)))
    alice.create(expense(400, "Groceries", date(2025, 2, 1)))
    ExpenseService(session, "bob").create(expense(999, "Groceries", date(2025, 1, 10)))

    january = alice.list_for_month(2025, 1)
    assert [e.date for e in january] == [
        date(2025, 1, 31),
        date(2025, 1, 5),
        date(2025, 1, 1),
    ]
    assert all(e.user_id == "alice" for e in january)


def test_sums_group_by_category_date_month_and_year() -> None:
    session = make_session()
    service = ExpenseService(session, "alice")
    service.create(expense(12500, "Groceries", date(2025, 1, 5)))
    service.create(expense(5000, "Utilities", date(2025, 1, 10)))
    service.create(expense(1000, "Groceries", date(2025, 1, 10)))
    service.create(expense(700, "Travel", date(2024, 12, 31)))
    ExpenseService(session, "bob").create(expense(1, "Travel", date(2025, 1, 10)))

    assert service.sum_by_category() == {
        ExpenseCategory.groceries: 13500,
        ExpenseCategory.utilities: 5000,
        ExpenseCategory.travel: 700,
    }
    assert service.sum_by_category(date(2025, 1, 1), date(2025, 1, 31)) == {
        ExpenseCategory.groceries: 13500,
        ExpenseCategory.utilities: 5000,
    }
    assert service.sum_by_date(date(2025, 1, 1), date(2025, 1, 31)) == {
        date(2025, 1, 5): 12500,
        date(2025, 1, 10): 6000,
    }
    assert service.sum_by_day_of_month(2025, 1) == {5: 12500, 10: 6000}
    assert service.sum_by_month(2025) == {1: 18500}
    assert service.sum_by_month(2024) == {12: 700}
    assert service.sum_by_year() == {2024: 700, 2025: 18500}


def test_storage_failures_surface_as_storage_error(monkeypatch) -> None:
    session = make_session()
    service = ExpenseService(session, "alice")

    def broken_commit():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(session, "commit", broken_commit)
    with pytest.raises(StorageError) as exc_info:
        service.create(expense(100, "Other", date(2025, 1, 1)))
    assert exc_info.value.operation == "expense_create"
    assert isinstance(exc_info.value.__cause__, OperationalError)


def test_update_missing_expense_is_not_found() -> None:
    session = make_session()
    service = ExpenseService(session, "alice")

    with pytest.raises(NotFound) as exc_info:
        service.update("does-not-exist", ExpensePatch(amount_cents=100))
    assert exc_info.value.message == "Not found"


def test_expense_input_rejects_boolean_amount() -> None:
    with pytest.raises(PydanticValidationError):
        ExpenseIn.model_validate(
            {"amountCents": True, "category": "Travel", "date": "2025-03-01"}
        )
