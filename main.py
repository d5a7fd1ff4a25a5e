import logging
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from auth import current_user_id
from categories import display_table
from config import get_settings
from database import get_db
from errors import (
    ExpensesError,
    Forbidden,
    NotFound,
    StorageError,
    Unauthenticated,
    ValidationError,
)
from periods import MAX_REPORT_YEAR, MIN_REPORT_YEAR, today
from schemas import (
    CategoryStat,
    DayStat,
    ExpenseIn,
    ExpenseOut,
    ExpensePatch,
    IncomeIn,
    MonthlyIncomeOut,
    MonthStat,
    MonthSummary,
    YearStat,
)
from services import ExpenseService, IncomeService, MetricsService

logger = logging.getLogger(__name__)


def _load_app_version() -> str:
    try:
        import tomllib
    except Exception:
        return "unknown"
    try:
        with open("pyproject.toml", "rb") as f:
            data = tomllib.load(f)
        return str(data.get("project", {}).get("version", "unknown"))
    except Exception:
        return "unknown"


APP_VERSION = _load_app_version()

app = FastAPI(title="Expense Tracker", version=APP_VERSION)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.on_event("startup")
def startup_event():
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info(f"startup: version={APP_VERSION} timezone={settings.timezone}")


STATUS_BY_ERROR: dict[type[ExpensesError], int] = {
    Unauthenticated: 401,
    ValidationError: 400,
    Forbidden: 403,
    NotFound: 404,
    StorageError: 503,
}


@app.exception_handler(ExpensesError)
async def expenses_error_handler(request: Request, exc: ExpensesError):
    status_code = 500
    for error_type, code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            status_code = code
            break
    if isinstance(exc, ValidationError):
        return JSONResponse({"error": exc.as_field_errors()}, status_code=status_code)
    return JSONResponse({"error": exc.message}, status_code=status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    field_errors: dict[str, list[str]] = {}
    for error in exc.errors():
        names = [
            str(part)
            for part in error.get("loc", ())
            if part not in ("body", "query", "path")
        ]
        field = names[-1] if names else "_errors"
        field_errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return JSONResponse({"error": field_errors}, status_code=400)


@app.get("/health")
def health():
    return {"status": "ok", "version": APP_VERSION}


@app.get("/api/categories")
def api_categories():
    return display_table()


@app.get("/api/expenses", response_model=list[ExpenseOut])
def list_expenses(
    year: int = Query(..., ge=MIN_REPORT_YEAR, le=MAX_REPORT_YEAR),
    month: int = Query(..., ge=1, le=12),
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    return ExpenseService(db, user_id).list_for_month(year, month)


@app.post("/api/expenses", response_model=ExpenseOut, status_code=201)
def create_expense(
    payload: ExpenseIn,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    return ExpenseService(db, user_id).create(payload)


@app.patch("/api/expenses/{expense_id}", response_model=ExpenseOut)
def update_expense(
    expense_id: str,
    payload: ExpensePatch,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    return ExpenseService(db, user_id).update(expense_id, payload)


@app.delete("/api/expenses/{expense_id}", status_code=204)
def delete_expense(
    expense_id: str,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    ExpenseService(db, user_id).delete(expense_id)
    return Response(status_code=204)


@app.get("/api/income", response_model=Optional[MonthlyIncomeOut])
def get_income(
    year: int = Query(..., ge=MIN_REPORT_YEAR, le=MAX_REPORT_YEAR),
    month: int = Query(..., ge=1, le=12),
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    return IncomeService(db, user_id).get(year, month)


@app.post("/api/income", response_model=MonthlyIncomeOut)
def upsert_income(
    payload: IncomeIn,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    return IncomeService(db, user_id).upsert(payload)


@app.get("/api/stats/categories", response_model=list[CategoryStat])
def category_stats(
    year: Optional[int] = Query(None, ge=MIN_REPORT_YEAR, le=MAX_REPORT_YEAR),
    month: Optional[int] = Query(None, ge=1, le=12),
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    return MetricsService(db, user_id).category_breakdown(year, month)


@app.get("/api/stats/daily", response_model=list[DayStat])
def daily_stats(
    year: int = Query(..., ge=MIN_REPORT_YEAR, le=MAX_REPORT_YEAR),
    month: int = Query(..., ge=1, le=12),
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    return MetricsService(db, user_id).daily_breakdown(year, month)


@app.get("/api/stats/monthly", response_model=list[MonthStat])
def monthly_stats(
    year: Optional[int] = Query(None, ge=MIN_REPORT_YEAR, le=MAX_REPORT_YEAR),
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    if year is None:
        year = today().year
    return MetricsService(db, user_id).monthly_breakdown(year)


@app.get("/api/stats/yearly", response_model=list[YearStat])
def yearly_stats(
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    return MetricsService(db, user_id).yearly_breakdown()


@app.get("/api/stats/summary", response_model=MonthSummary)
def month_summary(
    year: int = Query(..., ge=MIN_REPORT_YEAR, le=MAX_REPORT_YEAR),
    month: int = Query(..., ge=1, le=12),
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    return MetricsService(db, user_id).month_summary(year, month)


def main():
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
