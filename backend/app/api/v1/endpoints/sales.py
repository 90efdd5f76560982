from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from backend.app.api.errors import to_http_exception
from backend.app.core.database import get_db
from backend.app.core.exceptions import LedgerError, StoreError
from backend.app.schemas.credit import CreditSaleOut
from backend.app.schemas.sales import (
    InterestWaiverRequest,
    SaleCreate,
    SaleOut,
    SaleVoidRequest,
)
from backend.app.services.credit_ledger import get_credit_sale, list_credit_sales
from backend.app.services.sales import create_sale, get_sale, void_sale, waive_interest

router = APIRouter()


@router.post("", response_model=SaleOut, status_code=status.HTTP_201_CREATED)
def record_sale(body: SaleCreate, db: Session = Depends(get_db)) -> dict:
    try:
        return create_sale(
            db,
            total=body.total,
            payment_method=body.payment_method.value,
            seller_id=body.seller_id,
            sale_date=body.sale_date,
            customer_name=body.customer_name,
            installment_count=body.installment_count,
            down_payment=body.down_payment,
            interest_rate=body.interest_rate,
        )
    except (LedgerError, StoreError) as e:
        raise to_http_exception(e)


@router.get("/credit", response_model=list[CreditSaleOut])
def get_credit_sales(
    credit_status: str | None = Query(None),
    db: Session = Depends(get_db),
) -> list[dict]:
    try:
        return list_credit_sales(db, status=credit_status)
    except (LedgerError, StoreError) as e:
        raise to_http_exception(e)


@router.get("/credit/{sale_id}", response_model=CreditSaleOut)
def get_one_credit_sale(sale_id: UUID, db: Session = Depends(get_db)) -> dict:
    try:
        return get_credit_sale(db, sale_id)
    except (LedgerError, StoreError) as e:
        raise to_http_exception(e)


@router.get("/{sale_id}", response_model=SaleOut)
def get_one_sale(sale_id: UUID, db: Session = Depends(get_db)) -> dict:
    try:
        return get_sale(db, sale_id)
    except (LedgerError, StoreError) as e:
        raise to_http_exception(e)


@router.post("/{sale_id}/void", response_model=SaleOut)
def void_existing_sale(
    sale_id: UUID,
    body: SaleVoidRequest,
    db: Session = Depends(get_db),
) -> dict:
    try:
        return void_sale(db, sale_id=sale_id, operator_id=body.operator_id)
    except (LedgerError, StoreError) as e:
        raise to_http_exception(e)


@router.patch("/{sale_id}/interest-waiver", response_model=SaleOut)
def set_interest_waiver(
    sale_id: UUID,
    body: InterestWaiverRequest,
    db: Session = Depends(get_db),
) -> dict:
    try:
        return waive_interest(
            db, sale_id=sale_id, waived=body.waived, operator_id=body.operator_id
        )
    except (LedgerError, StoreError) as e:
        raise to_http_exception(e)
