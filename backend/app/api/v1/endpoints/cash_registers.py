from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backend.app.api.errors import to_http_exception
from backend.app.core.database import get_db
from backend.app.core.exceptions import LedgerError, StoreError
from backend.app.schemas.cash_register import (
    CashRegisterCloseRequest,
    CashRegisterOpenRequest,
    CashRegisterOut,
    CashRegisterUpdate,
)
from backend.app.services.cash_register import (
    close_register,
    edit_register,
    get_current_register,
    get_register,
    list_registers,
    open_register,
)

router = APIRouter()


@router.get("", response_model=list[CashRegisterOut])
def get_all_registers(db: Session = Depends(get_db)) -> list[CashRegisterOut]:
    try:
        return list_registers(db)
    except StoreError as e:
        raise to_http_exception(e)


@router.get("/current", response_model=CashRegisterOut | None)
def get_today_register(db: Session = Depends(get_db)) -> CashRegisterOut | None:
    try:
        return get_current_register(db)
    except StoreError as e:
        raise to_http_exception(e)


@router.get("/{register_id}", response_model=CashRegisterOut)
def get_one_register(register_id: UUID, db: Session = Depends(get_db)) -> CashRegisterOut:
    try:
        return get_register(db, register_id)
    except (LedgerError, StoreError) as e:
        raise to_http_exception(e)


@router.post("/open", response_model=CashRegisterOut, status_code=status.HTTP_201_CREATED)
def open_today_register(
    payload: CashRegisterOpenRequest,
    db: Session = Depends(get_db),
) -> CashRegisterOut:
    try:
        return open_register(
            db,
            opening_float=payload.opening_float,
            operator_id=payload.operator_id,
        )
    except (LedgerError, StoreError) as e:
        raise to_http_exception(e)


@router.post("/{register_id}/close", response_model=CashRegisterOut)
def close_existing_register(
    register_id: UUID,
    payload: CashRegisterCloseRequest,
    db: Session = Depends(get_db),
) -> CashRegisterOut:
    try:
        return close_register(
            db,
            register_id=register_id,
            counted_cash=payload.counted_cash,
            note=payload.note,
            operator_id=payload.operator_id,
        )
    except (LedgerError, StoreError) as e:
        raise to_http_exception(e)


@router.patch("/{register_id}", response_model=CashRegisterOut)
def patch_register(
    register_id: UUID,
    payload: CashRegisterUpdate,
    db: Session = Depends(get_db),
) -> CashRegisterOut:
    try:
        return edit_register(
            db,
            register_id=register_id,
            patch=payload,
            operator_id=payload.operator_id,
        )
    except (LedgerError, StoreError) as e:
        raise to_http_exception(e)
