from __future__ import annotations

import calendar
import logging
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from backend.app.core.clock import local_today, utc_now
from backend.app.core.exceptions import (
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    translate_store_errors,
)
from backend.app.models.sales import Sale, SalePaymentMethod, SaleStatus
from backend.app.services.audit import log_action
from backend.app.services.credit_ledger import (
    ZERO,
    derive_credit_status,
    refresh_sale_totals,
    to_money,
    total_with_interest,
)

logger = logging.getLogger(__name__)

MAX_INSTALLMENTS = 120


def add_months(start: date, months: int) -> date:
    """Same day *months* later, clamped to the last day of the target month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _sale_to_dict(sale: Sale) -> dict:
    out = {
        "id": str(sale.id),
        "sale_date": sale.sale_date.isoformat(),
        "total": str(sale.total),
        "payment_method": sale.payment_method.value,
        "status": sale.status.value,
        "customer_name": sale.customer_name,
    }
    if sale.payment_method == SalePaymentMethod.CREDIT:
        out.update(
            {
                "installment_count": sale.installment_count,
                "down_payment": str(sale.down_payment),
                "interest_rate": str(sale.interest_rate),
                "interest_amount": str(sale.interest_amount),
                "interest_waived": bool(sale.interest_waived),
                "total_with_interest": str(total_with_interest(sale)),
                "amount_paid": str(sale.amount_paid),
                "credit_status": sale.credit_status.value if sale.credit_status else None,
                "due_date": sale.due_date.isoformat() if sale.due_date else None,
            }
        )
    return out


@translate_store_errors
def create_sale(
    db: Session,
    total: Decimal,
    payment_method: str,
    seller_id: UUID | None = None,
    sale_date: date | None = None,
    customer_name: str | None = None,
    installment_count: int | None = None,
    down_payment: Decimal | None = None,
    interest_rate: Decimal | None = None,
) -> dict:
    """Record a completed sale.

    For credit sales the interest is a flat amount added to every installment:
        interest_amount     = (total - down_payment) * interest_rate / 100
        total_with_interest = total + interest_amount * installment_count
    The down payment counts as already paid.
    """
    total = to_money(total)
    if total <= ZERO:
        raise InvalidInputError("Sale total must be greater than zero")

    try:
        method = SalePaymentMethod(payment_method)
    except ValueError:
        raise InvalidInputError(f"Invalid payment method: {payment_method}")

    sale_date = sale_date or local_today()
    sale = Sale(
        sale_date=sale_date,
        total=total,
        payment_method=method,
        status=SaleStatus.COMPLETED,
        seller_id=seller_id,
        customer_name=customer_name,
        updated_at=utc_now(),
    )

    if method == SalePaymentMethod.CREDIT:
        if not customer_name:
            raise InvalidInputError("A customer is required for credit sales")
        if not installment_count or installment_count < 1:
            raise InvalidInputError("Credit sales need at least one installment")
        if installment_count > MAX_INSTALLMENTS:
            raise InvalidInputError(
                f"Installment count cannot exceed {MAX_INSTALLMENTS}"
            )
        down = to_money(down_payment or ZERO)
        if down < ZERO or down > total:
            raise InvalidInputError(
                f"Down payment must be between 0 and the sale total ({total})"
            )
        rate = Decimal(str(interest_rate or ZERO))
        if rate < ZERO:
            raise InvalidInputError("Interest rate cannot be negative")

        sale.installment_count = installment_count
        sale.down_payment = down
        sale.interest_rate = rate
        sale.interest_amount = to_money((total - down) * rate / Decimal("100"))
        sale.interest_waived = False
        sale.amount_paid = down
        sale.credit_status = derive_credit_status(down, down, total_with_interest(sale))
        sale.due_date = add_months(sale_date, installment_count)

    db.add(sale)
    db.flush()

    log_action(
        db,
        user_id=seller_id,
        action="SALE_COMPLETED",
        resource_type="sales",
        resource_id=str(sale.id),
        changes={
            "total": str(total),
            "payment_method": method.value,
            "sale_date": sale_date.isoformat(),
            "down_payment": str(sale.down_payment),
            "installment_count": sale.installment_count,
        },
    )

    db.commit()
    db.refresh(sale)

    logger.info("Recorded %s sale %s for %s", method.value, sale.id, total)
    return _sale_to_dict(sale)


@translate_store_errors
def void_sale(db: Session, sale_id: UUID, operator_id: UUID | None = None) -> dict:
    """Void a sale. Its money leaves every income aggregate, payments included."""
    sale = db.query(Sale).filter(Sale.id == sale_id).first()
    if not sale:
        raise NotFoundError("Sale not found")
    if sale.status == SaleStatus.VOIDED:
        raise InvalidStateError("Sale is already voided")

    sale.status = SaleStatus.VOIDED
    sale.updated_at = utc_now()

    log_action(
        db,
        user_id=operator_id,
        action="SALE_VOIDED",
        resource_type="sales",
        resource_id=str(sale.id),
        changes={"total": str(sale.total), "sale_date": sale.sale_date.isoformat()},
    )

    db.commit()
    db.refresh(sale)

    logger.info("Voided sale %s", sale.id)
    return _sale_to_dict(sale)


@translate_store_errors
def waive_interest(
    db: Session,
    sale_id: UUID,
    waived: bool,
    operator_id: UUID | None = None,
) -> dict:
    """Waive (or reinstate) the interest of a credit sale.

    A waived sale owes only its pre-interest total. The stored interest figures
    are kept so the waiver can be lifted; amount paid and credit status are
    recomputed from the payment history either way.
    """
    sale = db.query(Sale).filter(Sale.id == sale_id).first()
    if not sale:
        raise NotFoundError("Sale not found")
    if sale.payment_method != SalePaymentMethod.CREDIT:
        raise InvalidStateError("This sale is not a credit sale")
    if sale.status == SaleStatus.VOIDED:
        raise InvalidStateError("Cannot change the interest of a voided sale")

    previous = {
        "interest_waived": bool(sale.interest_waived),
        "total_with_interest": str(total_with_interest(sale)),
        "credit_status": sale.credit_status.value if sale.credit_status else None,
    }

    sale.interest_waived = waived
    balance = refresh_sale_totals(db, sale)

    log_action(
        db,
        user_id=operator_id,
        action="SALE_INTEREST_WAIVED" if waived else "SALE_INTEREST_REINSTATED",
        resource_type="sales",
        resource_id=str(sale.id),
        previous=previous,
        changes={
            "interest_waived": waived,
            "total_with_interest": str(balance.total_due),
            "amount_paid": str(balance.amount_paid),
            "credit_status": balance.status.value,
        },
    )

    db.commit()
    db.refresh(sale)

    logger.info(
        "Interest of sale %s %s; now owes %s (status %s)",
        sale.id, "waived" if waived else "reinstated", balance.total_due, balance.status.value,
    )
    return _sale_to_dict(sale)


@translate_store_errors
def get_sale(db: Session, sale_id: UUID) -> dict:
    sale = db.query(Sale).filter(Sale.id == sale_id).first()
    if not sale:
        raise NotFoundError("Sale not found")
    return _sale_to_dict(sale)
