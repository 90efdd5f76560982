from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.errors import to_http_exception
from backend.app.core.database import get_db
from backend.app.core.exceptions import StoreError
from backend.app.schemas.income import AmountOut, DailyIncomeOut, SalesByMethodOut
from backend.app.services.income import (
    credit_cash_inflows,
    daily_income_snapshot,
    sales_by_method,
    services_net,
)

router = APIRouter()


@router.get("/{day}", response_model=DailyIncomeOut)
def get_daily_income(day: date, db: Session = Depends(get_db)) -> dict:
    try:
        return daily_income_snapshot(db, day)
    except StoreError as e:
        raise to_http_exception(e)


@router.get("/{day}/by-method", response_model=SalesByMethodOut)
def get_sales_by_method(day: date, db: Session = Depends(get_db)) -> dict:
    try:
        totals = sales_by_method(db, day)
    except StoreError as e:
        raise to_http_exception(e)
    return {"date": day.isoformat(), **{k: str(v) for k, v in totals.items()}}


@router.get("/{day}/credit-receipts", response_model=AmountOut)
def get_credit_receipts(day: date, db: Session = Depends(get_db)) -> dict:
    try:
        return {"date": day.isoformat(), "amount": str(credit_cash_inflows(db, day))}
    except StoreError as e:
        raise to_http_exception(e)


@router.get("/{day}/services", response_model=AmountOut)
def get_services_net(day: date, db: Session = Depends(get_db)) -> dict:
    try:
        return {"date": day.isoformat(), "amount": str(services_net(db, day))}
    except StoreError as e:
        raise to_http_exception(e)
