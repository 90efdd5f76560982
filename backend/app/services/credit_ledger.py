from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any
from uuid import UUID

from sqlalchemy import func as sa_func
from sqlalchemy.orm import Session

from backend.app.core.clock import local_today, utc_now
from backend.app.core.exceptions import (
    ConflictError,
    ExceedsBalanceError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    translate_store_errors,
)
from backend.app.models.sales import (
    CreditPayment,
    CreditStatus,
    InstallmentPaymentMethod,
    Sale,
    SalePaymentMethod,
    SaleStatus,
)
from backend.app.services.audit import log_action

logger = logging.getLogger(__name__)

# A payment up to this much above the outstanding balance is accepted and
# clamped down to the balance.
PAYMENT_CLAMP_TOLERANCE = Decimal("0.02")
# A balance at or below this is considered settled.
PAID_TOLERANCE = Decimal("0.05")

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Quantize an amount to cents."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


# ─── Pure derivations ────────────────────────────────────────────────────────


def total_with_interest(sale: Sale) -> Decimal:
    """Sale total plus the flat interest charged on each installment.

    A sale whose interest was waived owes only its total.
    """
    total = Decimal(str(sale.total))
    if sale.interest_waived:
        return total
    interest = Decimal(str(sale.interest_amount or ZERO))
    if interest > ZERO:
        return total + interest * (sale.installment_count or 1)
    return total


def derive_credit_status(
    amount_paid: Decimal,
    down_payment: Decimal,
    total_due: Decimal,
) -> CreditStatus:
    if total_due - amount_paid <= PAID_TOLERANCE:
        return CreditStatus.PAID
    if amount_paid > down_payment:
        return CreditStatus.PARTIAL
    return CreditStatus.PENDING


@dataclass(frozen=True)
class Balance:
    total_due: Decimal
    down_payment: Decimal
    installments_paid: Decimal

    @property
    def amount_paid(self) -> Decimal:
        return self.down_payment + self.installments_paid

    @property
    def outstanding(self) -> Decimal:
        return self.total_due - self.amount_paid

    @property
    def status(self) -> CreditStatus:
        return derive_credit_status(self.amount_paid, self.down_payment, self.total_due)


def _sum_payments(db: Session, sale_id: UUID, exclude_id: UUID | None = None) -> Decimal:
    query = db.query(
        sa_func.coalesce(sa_func.sum(CreditPayment.amount_paid), ZERO)
    ).filter(CreditPayment.sale_id == sale_id)
    if exclude_id is not None:
        query = query.filter(CreditPayment.id != exclude_id)
    return Decimal(str(query.scalar()))


def compute_balance(db: Session, sale: Sale, exclude_payment_id: UUID | None = None) -> Balance:
    """Balance of a credit sale from its canonical fields and full payment history."""
    return Balance(
        total_due=total_with_interest(sale),
        down_payment=Decimal(str(sale.down_payment or ZERO)),
        installments_paid=_sum_payments(db, sale.id, exclude_payment_id),
    )


def refresh_sale_totals(db: Session, sale: Sale) -> Balance:
    """Recompute amount_paid / credit_status from every payment row and store them."""
    db.flush()
    balance = compute_balance(db, sale)
    sale.amount_paid = balance.amount_paid
    sale.credit_status = balance.status
    sale.updated_at = utc_now()
    return balance


def _clamp_to_outstanding(amount: Decimal, outstanding: Decimal) -> Decimal:
    if amount > outstanding + PAYMENT_CLAMP_TOLERANCE:
        raise ExceedsBalanceError(amount, to_money(outstanding))
    if amount > outstanding:
        return to_money(outstanding)
    return amount


def _check_payment_date(payment_date: date, today: date) -> None:
    if payment_date > today:
        raise InvalidInputError(
            f"Payment date {payment_date.isoformat()} cannot be in the future"
        )


def _parse_method(value: str) -> InstallmentPaymentMethod:
    try:
        return InstallmentPaymentMethod(value)
    except ValueError:
        raise InvalidInputError(f"Invalid payment method: {value}")


def _payment_to_dict(payment: CreditPayment) -> dict[str, Any]:
    return {
        "id": str(payment.id),
        "sale_id": str(payment.sale_id),
        "installment_number": payment.installment_number,
        "amount_paid": str(payment.amount_paid),
        "payment_date": payment.payment_date.isoformat(),
        "payment_method": payment.payment_method.value,
        "note": payment.note,
        "operator_id": str(payment.operator_id) if payment.operator_id else None,
    }


def _get_credit_sale(db: Session, sale_id: UUID) -> Sale:
    sale = db.query(Sale).filter(Sale.id == sale_id).first()
    if not sale:
        raise NotFoundError("Sale not found")
    if sale.payment_method != SalePaymentMethod.CREDIT:
        raise InvalidStateError("This sale is not a credit sale")
    return sale


# ─── Installment payments ────────────────────────────────────────────────────


@translate_store_errors
def record_installment_payment(
    db: Session,
    sale_id: UUID,
    installment_number: int | None,
    amount: Decimal,
    payment_date: date,
    payment_method: str,
    operator_id: UUID | None = None,
    note: str | None = None,
    today: date | None = None,
) -> dict:
    """Validate and record the payment of one installment of a credit sale.

    The outstanding balance is computed from the sale's canonical fields and
    the full payment history, never from the stored ``amount_paid``. After the
    insert the sale's ``amount_paid`` and ``credit_status`` are recomputed the
    same way.
    """
    today = today or local_today()

    sale = _get_credit_sale(db, sale_id)
    if sale.status == SaleStatus.VOIDED:
        raise InvalidStateError("Cannot record a payment for a voided sale")

    balance = compute_balance(db, sale)
    if balance.status == CreditStatus.PAID:
        raise InvalidStateError("This credit sale is already fully paid")

    installment_count = sale.installment_count or 1
    if not installment_number or installment_number < 1:
        raise InvalidInputError("An installment number (1 or greater) is required")
    if installment_number > installment_count:
        raise InvalidInputError(
            f"Installment {installment_number} exceeds the number of installments "
            f"({installment_count})"
        )

    existing = (
        db.query(CreditPayment.id)
        .filter(
            CreditPayment.sale_id == sale_id,
            CreditPayment.installment_number == installment_number,
        )
        .first()
    )
    if existing:
        raise ConflictError(f"Installment {installment_number} is already paid")

    amount = _clamp_to_outstanding(to_money(amount), balance.outstanding)
    if amount <= ZERO:
        raise InvalidInputError("Payment amount must be greater than zero")
    _check_payment_date(payment_date, today)

    payment = CreditPayment(
        sale_id=sale.id,
        installment_number=installment_number,
        amount_paid=amount,
        payment_date=payment_date,
        payment_method=_parse_method(payment_method),
        note=note or None,
        operator_id=operator_id,
    )
    db.add(payment)

    updated = refresh_sale_totals(db, sale)

    log_action(
        db,
        user_id=operator_id,
        action="CREDIT_PAYMENT_RECORDED",
        resource_type="credit_payments",
        resource_id=str(payment.id),
        changes={
            "sale_id": str(sale.id),
            "installment_number": installment_number,
            "amount_paid": str(amount),
            "payment_method": payment.payment_method.value,
            "new_total_paid": str(updated.amount_paid),
            "credit_status": updated.status.value,
        },
    )

    db.commit()
    db.refresh(payment)

    logger.info(
        "Recorded installment %s of sale %s: %s (status %s)",
        installment_number, sale.id, amount, updated.status.value,
    )

    result = _payment_to_dict(payment)
    result.update(
        {
            "new_total_paid": str(updated.amount_paid),
            "remaining": str(updated.outstanding),
            "credit_status": updated.status.value,
        }
    )
    return result


@translate_store_errors
def update_installment_payment(
    db: Session,
    payment_id: UUID,
    amount: Decimal | None = None,
    payment_date: date | None = None,
    payment_method: str | None = None,
    note: str | None = None,
    operator_id: UUID | None = None,
    today: date | None = None,
) -> dict:
    """Correct the amount, date, method or note of a recorded payment.

    The installment number and the sale cannot be changed. A new amount is
    validated against the balance left by the *other* payments of the sale.
    """
    today = today or local_today()

    payment = db.query(CreditPayment).filter(CreditPayment.id == payment_id).first()
    if not payment:
        raise NotFoundError("Payment not found")

    sale = payment.sale
    if sale.status == SaleStatus.VOIDED:
        raise InvalidStateError("Cannot edit a payment of a voided sale")

    previous = _payment_to_dict(payment)

    # Validate the whole patch before touching the row
    if amount is not None:
        amount = to_money(amount)
        if amount <= ZERO:
            raise InvalidInputError("Payment amount must be greater than zero")
        others = compute_balance(db, sale, exclude_payment_id=payment.id)
        amount = _clamp_to_outstanding(amount, others.outstanding)
        if amount <= ZERO:
            raise InvalidInputError("Payment amount must be greater than zero")
    if payment_date is not None:
        _check_payment_date(payment_date, today)
    method = _parse_method(payment_method) if payment_method is not None else None

    if amount is not None:
        payment.amount_paid = amount
    if payment_date is not None:
        payment.payment_date = payment_date
    if method is not None:
        payment.payment_method = method
    if note is not None:
        payment.note = note or None

    payment.updated_at = utc_now()
    updated = refresh_sale_totals(db, sale)

    log_action(
        db,
        user_id=operator_id,
        action="CREDIT_PAYMENT_UPDATED",
        resource_type="credit_payments",
        resource_id=str(payment.id),
        previous=previous,
        changes={
            **_payment_to_dict(payment),
            "new_total_paid": str(updated.amount_paid),
            "credit_status": updated.status.value,
        },
    )

    db.commit()
    db.refresh(payment)

    result = _payment_to_dict(payment)
    result.update(
        {
            "new_total_paid": str(updated.amount_paid),
            "remaining": str(updated.outstanding),
            "credit_status": updated.status.value,
        }
    )
    return result


@translate_store_errors
def delete_installment_payment(
    db: Session,
    payment_id: UUID,
    operator_id: UUID | None = None,
) -> dict:
    """Delete a payment and recompute the sale from the remaining payments."""
    payment = db.query(CreditPayment).filter(CreditPayment.id == payment_id).first()
    if not payment:
        raise NotFoundError("Payment not found")

    sale = payment.sale
    previous = _payment_to_dict(payment)

    db.delete(payment)
    updated = refresh_sale_totals(db, sale)

    log_action(
        db,
        user_id=operator_id,
        action="CREDIT_PAYMENT_DELETED",
        resource_type="credit_payments",
        resource_id=previous["id"],
        previous=previous,
        changes={
            "new_total_paid": str(updated.amount_paid),
            "credit_status": updated.status.value,
        },
    )

    db.commit()

    logger.info(
        "Deleted installment %s of sale %s; amount paid now %s",
        previous["installment_number"], sale.id, updated.amount_paid,
    )

    return {
        "sale_id": str(sale.id),
        "new_total_paid": str(updated.amount_paid),
        "remaining": str(updated.outstanding),
        "credit_status": updated.status.value,
    }


# ─── Read models ─────────────────────────────────────────────────────────────


@translate_store_errors
def list_payments(db: Session, sale_id: UUID | None = None) -> list[dict]:
    """Payments newest first; for a single sale, in installment order."""
    query = db.query(CreditPayment)
    if sale_id:
        query = query.filter(CreditPayment.sale_id == sale_id).order_by(
            CreditPayment.installment_number.asc(),
            CreditPayment.payment_date.desc(),
        )
    else:
        query = query.order_by(CreditPayment.payment_date.desc())
    return [_payment_to_dict(p) for p in query.all()]


def _credit_sale_to_dict(db: Session, sale: Sale, today: date) -> dict:
    balance = compute_balance(db, sale)
    status = balance.status
    # Overdue is a view over the due date, never stored
    if status != CreditStatus.PAID and sale.due_date and sale.due_date < today:
        status = CreditStatus.OVERDUE
    return {
        "id": str(sale.id),
        "sale_date": sale.sale_date.isoformat(),
        "customer_name": sale.customer_name,
        "total": str(sale.total),
        "installment_count": sale.installment_count,
        "down_payment": str(sale.down_payment),
        "interest_rate": str(sale.interest_rate),
        "interest_amount": str(sale.interest_amount),
        "interest_waived": bool(sale.interest_waived),
        "total_with_interest": str(balance.total_due),
        "amount_paid": str(balance.amount_paid),
        "balance": str(balance.outstanding),
        "credit_status": status.value,
        "due_date": sale.due_date.isoformat() if sale.due_date else None,
        "installments_paid": sorted(p.installment_number for p in sale.credit_payments),
    }


@translate_store_errors
def get_credit_sale(db: Session, sale_id: UUID, today: date | None = None) -> dict:
    sale = _get_credit_sale(db, sale_id)
    return _credit_sale_to_dict(db, sale, today or local_today())


@translate_store_errors
def list_credit_sales(
    db: Session,
    status: str | None = None,
    today: date | None = None,
) -> list[dict]:
    """Completed credit sales with balances recomputed from their payments.

    The status filter applies to the recomputed status (OVERDUE included), not
    to the stored column.
    """
    today = today or local_today()
    wanted: CreditStatus | None = None
    if status:
        try:
            wanted = CreditStatus(status)
        except ValueError:
            raise InvalidInputError(f"Invalid credit status: {status}")

    sales = (
        db.query(Sale)
        .filter(
            Sale.payment_method == SalePaymentMethod.CREDIT,
            Sale.status == SaleStatus.COMPLETED,
        )
        .order_by(Sale.sale_date.desc(), Sale.created_at.desc())
        .all()
    )
    rows = [_credit_sale_to_dict(db, s, today) for s in sales]
    if wanted:
        rows = [r for r in rows if r["credit_status"] == wanted.value]
    return rows
