from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from backend.app.api.errors import to_http_exception
from backend.app.core.database import get_db
from backend.app.core.exceptions import LedgerError, StoreError
from backend.app.schemas.credit import (
    CreditPaymentCreate,
    CreditPaymentDeleted,
    CreditPaymentOut,
    CreditPaymentResult,
    CreditPaymentUpdate,
)
from backend.app.services.credit_ledger import (
    delete_installment_payment,
    list_payments,
    record_installment_payment,
    update_installment_payment,
)

router = APIRouter()


@router.get("", response_model=list[CreditPaymentOut])
def get_payments(
    sale_id: UUID | None = Query(None),
    db: Session = Depends(get_db),
) -> list[dict]:
    try:
        return list_payments(db, sale_id=sale_id)
    except (LedgerError, StoreError) as e:
        raise to_http_exception(e)


@router.post("", response_model=CreditPaymentResult, status_code=status.HTTP_201_CREATED)
def create_payment(
    body: CreditPaymentCreate,
    db: Session = Depends(get_db),
) -> dict:
    try:
        return record_installment_payment(
            db,
            sale_id=body.sale_id,
            installment_number=body.installment_number,
            amount=body.amount,
            payment_date=body.payment_date,
            payment_method=body.payment_method.value,
            operator_id=body.operator_id,
            note=body.note,
        )
    except (LedgerError, StoreError) as e:
        raise to_http_exception(e)


@router.patch("/{payment_id}", response_model=CreditPaymentResult)
def patch_payment(
    payment_id: UUID,
    body: CreditPaymentUpdate,
    db: Session = Depends(get_db),
) -> dict:
    try:
        return update_installment_payment(
            db,
            payment_id=payment_id,
            amount=body.amount,
            payment_date=body.payment_date,
            payment_method=body.payment_method.value if body.payment_method else None,
            note=body.note,
            operator_id=body.operator_id,
        )
    except (LedgerError, StoreError) as e:
        raise to_http_exception(e)


@router.delete("/{payment_id}", response_model=CreditPaymentDeleted)
def remove_payment(
    payment_id: UUID,
    operator_id: UUID | None = Query(None),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return delete_installment_payment(db, payment_id=payment_id, operator_id=operator_id)
    except (LedgerError, StoreError) as e:
        raise to_http_exception(e)
