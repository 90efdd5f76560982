"""Daily income aggregation.

Every figure here is computed from the source rows on each call. The register
reconciler relies on that: a value read here is never a cached running total.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import func as sa_func
from sqlalchemy.orm import Session

from backend.app.core.exceptions import translate_store_errors
from backend.app.models.sales import (
    CreditPayment,
    Sale,
    SalePaymentMethod,
    SaleStatus,
)
from backend.app.models.services import ServiceTransaction

ZERO = Decimal("0")


def _dec(value: object) -> Decimal:
    return Decimal(str(value)) if value is not None else ZERO


@translate_store_errors
def sales_by_method(db: Session, day: date) -> dict[str, Decimal]:
    """Sum of completed sale totals on *day*, per payment method."""
    totals = {method.value: ZERO for method in SalePaymentMethod}
    rows = (
        db.query(Sale.payment_method, sa_func.sum(Sale.total))
        .filter(Sale.sale_date == day, Sale.status == SaleStatus.COMPLETED)
        .group_by(Sale.payment_method)
        .all()
    )
    for method, amount in rows:
        totals[method.value] = _dec(amount)
    return totals


@translate_store_errors
def credit_cash_inflows(db: Session, day: date) -> Decimal:
    """Money received on *day* from credit sales.

    Down payments of credit sales made that day, plus installment payments
    dated that day regardless of when the sale itself happened.
    """
    down_payments = (
        db.query(sa_func.coalesce(sa_func.sum(Sale.down_payment), ZERO))
        .filter(
            Sale.sale_date == day,
            Sale.payment_method == SalePaymentMethod.CREDIT,
            Sale.status == SaleStatus.COMPLETED,
        )
        .scalar()
    )
    installments = (
        db.query(sa_func.coalesce(sa_func.sum(CreditPayment.amount_paid), ZERO))
        .join(Sale, CreditPayment.sale_id == Sale.id)
        .filter(
            CreditPayment.payment_date == day,
            Sale.status == SaleStatus.COMPLETED,
        )
        .scalar()
    )
    return _dec(down_payments) + _dec(installments)


@translate_store_errors
def services_net(db: Session, day: date) -> Decimal:
    """Signed sum of service transactions on *day* (outflows are negative)."""
    result = (
        db.query(sa_func.coalesce(sa_func.sum(ServiceTransaction.amount), ZERO))
        .filter(ServiceTransaction.transaction_date == day)
        .scalar()
    )
    return _dec(result)


def total_income(db: Session, day: date) -> Decimal:
    """Expected drawer income for *day*: cash + QR + transfer + credit cash-ins + services.

    Credit sale totals are not income on the day of sale; only the money
    actually received for them (down payment, installments) is.
    """
    by_method = sales_by_method(db, day)
    return (
        by_method[SalePaymentMethod.CASH.value]
        + by_method[SalePaymentMethod.QR.value]
        + by_method[SalePaymentMethod.TRANSFER.value]
        + credit_cash_inflows(db, day)
        + services_net(db, day)
    )


def daily_income_snapshot(db: Session, day: date) -> dict:
    by_method = sales_by_method(db, day)
    credit_receipts = credit_cash_inflows(db, day)
    services = services_net(db, day)
    total = (
        by_method[SalePaymentMethod.CASH.value]
        + by_method[SalePaymentMethod.QR.value]
        + by_method[SalePaymentMethod.TRANSFER.value]
        + credit_receipts
        + services
    )
    return {
        "date": day.isoformat(),
        "cash": str(by_method[SalePaymentMethod.CASH.value]),
        "qr": str(by_method[SalePaymentMethod.QR.value]),
        "transfer": str(by_method[SalePaymentMethod.TRANSFER.value]),
        "credit": str(by_method[SalePaymentMethod.CREDIT.value]),
        "credit_receipts": str(credit_receipts),
        "services_net": str(services),
        "total": str(total),
    }
