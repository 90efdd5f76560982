from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from backend.app.core.clock import local_today, utc_now
from backend.app.core.exceptions import (
    ConflictError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    translate_store_errors,
)
from backend.app.models.cash_register import CashRegister, RegisterStatus
from backend.app.schemas.cash_register import CashRegisterOut, CashRegisterUpdate
from backend.app.services.audit import log_action
from backend.app.services.credit_ledger import to_money
from backend.app.services.income import total_income

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def compute_variance(
    counted_cash: Decimal, opening_float: Decimal, expected_total: Decimal
) -> Decimal:
    """Counted cash minus what should be in the drawer."""
    return counted_cash - (opening_float + expected_total)


def _register_to_out(register: CashRegister, expected_total: Decimal | None = None) -> CashRegisterOut:
    expected = expected_total if expected_total is not None else Decimal(str(register.expected_total))
    opening = Decimal(str(register.opening_float))
    return CashRegisterOut(
        id=register.id,
        register_date=register.register_date.isoformat(),
        status=register.status.value,
        opened_at=register.opened_at.isoformat(),
        closed_at=register.closed_at.isoformat() if register.closed_at else None,
        opening_float=str(register.opening_float),
        expected_total=str(expected),
        expected_in_drawer=str(opening + expected),
        counted_cash=str(register.counted_cash) if register.counted_cash is not None else None,
        variance=str(register.variance),
        operator_id=register.operator_id,
        note=register.note,
    )


def _get_register(db: Session, register_id: UUID) -> CashRegister:
    register = db.query(CashRegister).filter(CashRegister.id == register_id).first()
    if not register:
        raise NotFoundError("Cash register not found")
    return register


@translate_store_errors
def get_current_register(db: Session, today: date | None = None) -> CashRegisterOut | None:
    """Today's open register, with the expected total computed live."""
    today = today or local_today()
    register = (
        db.query(CashRegister)
        .filter(
            CashRegister.register_date == today,
            CashRegister.status == RegisterStatus.OPEN,
        )
        .first()
    )
    if not register:
        return None
    return _register_to_out(register, expected_total=total_income(db, today))


@translate_store_errors
def get_register(db: Session, register_id: UUID) -> CashRegisterOut:
    return _register_to_out(_get_register(db, register_id))


@translate_store_errors
def list_registers(db: Session, limit: int = 100) -> list[CashRegisterOut]:
    """Registers, most recent day first."""
    registers = (
        db.query(CashRegister)
        .order_by(CashRegister.register_date.desc(), CashRegister.opened_at.desc())
        .limit(limit)
        .all()
    )
    return [_register_to_out(r) for r in registers]


@translate_store_errors
def open_register(
    db: Session,
    opening_float: Decimal,
    operator_id: UUID,
    today: date | None = None,
    opened_at: datetime | None = None,
) -> CashRegisterOut:
    """Open today's register session.

    Only one register may be open at a time; a register left open on an
    earlier day must be closed first.
    """
    today = today or local_today()

    existing = (
        db.query(CashRegister)
        .filter(CashRegister.status == RegisterStatus.OPEN)
        .first()
    )
    if existing:
        if existing.register_date == today:
            raise ConflictError("A cash register is already open for today")
        raise ConflictError(
            f"The cash register of {existing.register_date.isoformat()} is still open. "
            "Close it before opening a new one."
        )

    opening_float = to_money(opening_float)
    expected = total_income(db, today)

    register = CashRegister(
        register_date=today,
        opened_at=opened_at or utc_now(),
        opening_float=opening_float,
        expected_total=expected,
        counted_cash=None,
        variance=ZERO,
        operator_id=operator_id,
        status=RegisterStatus.OPEN,
        updated_at=utc_now(),
    )
    db.add(register)
    db.flush()

    log_action(
        db,
        user_id=operator_id,
        action="CASH_REGISTER_OPENED",
        resource_type="cash_registers",
        resource_id=str(register.id),
        changes={
            "register_date": today.isoformat(),
            "opening_float": str(opening_float),
            "expected_total": str(expected),
        },
    )

    db.commit()
    db.refresh(register)

    logger.info("Opened cash register %s for %s with float %s", register.id, today, opening_float)
    return _register_to_out(register)


@translate_store_errors
def close_register(
    db: Session,
    register_id: UUID,
    counted_cash: Decimal,
    note: str | None = None,
    operator_id: UUID | None = None,
) -> CashRegisterOut:
    """Close an open register: final income figure, variance, frozen snapshot."""
    register = _get_register(db, register_id)
    if register.status != RegisterStatus.OPEN:
        raise InvalidStateError("Cash register is already closed")

    counted_cash = to_money(counted_cash)
    expected = total_income(db, register.register_date)
    opening = Decimal(str(register.opening_float))
    variance = compute_variance(counted_cash, opening, expected)

    now = utc_now()
    register.expected_total = expected
    register.counted_cash = counted_cash
    register.variance = variance
    register.note = note or None
    register.status = RegisterStatus.CLOSED
    register.closed_at = now
    register.updated_at = now

    log_action(
        db,
        user_id=operator_id,
        action="CASH_REGISTER_CLOSED",
        resource_type="cash_registers",
        resource_id=str(register.id),
        changes={
            "counted_cash": str(counted_cash),
            "expected_total": str(expected),
            "opening_float": str(opening),
            "variance": str(variance),
        },
    )

    db.commit()
    db.refresh(register)

    if variance != ZERO:
        logger.warning(
            "Cash register %s closed with variance %s (counted %s, expected %s)",
            register.id, variance, counted_cash, opening + expected,
        )
    else:
        logger.info("Cash register %s closed balanced", register.id)
    return _register_to_out(register)


@translate_store_errors
def edit_register(
    db: Session,
    register_id: UUID,
    patch: CashRegisterUpdate,
    operator_id: UUID | None = None,
    today: date | None = None,
) -> CashRegisterOut:
    """Correct a register, open or closed, current or historical.

    Only a register that is open *and* dated today gets its income figure
    recomputed; any other register keeps the stored ``expected_total``.
    """
    today = today or local_today()
    register = _get_register(db, register_id)
    fields = patch.model_dump(exclude_unset=True)

    # closed_at must agree with status
    if "closed_at" in fields:
        if register.status == RegisterStatus.OPEN and fields["closed_at"] is not None:
            raise InvalidInputError("An open register cannot have a closing time")
        if register.status == RegisterStatus.CLOSED and fields["closed_at"] is None:
            raise InvalidInputError("A closed register must keep its closing time")

    previous = {
        "opening_float": str(register.opening_float),
        "counted_cash": str(register.counted_cash) if register.counted_cash is not None else None,
        "expected_total": str(register.expected_total),
        "variance": str(register.variance),
    }

    if register.status == RegisterStatus.OPEN and register.register_date == today:
        register.expected_total = total_income(db, today)
    expected = Decimal(str(register.expected_total))

    if "opening_float" in fields and fields["opening_float"] is not None:
        register.opening_float = to_money(fields["opening_float"])
    if "counted_cash" in fields:
        counted = fields["counted_cash"]
        register.counted_cash = to_money(counted) if counted is not None else None
    if "opened_at" in fields and fields["opened_at"] is not None:
        register.opened_at = fields["opened_at"]
    if "closed_at" in fields:
        register.closed_at = fields["closed_at"]
    if "note" in fields:
        register.note = fields["note"] or None

    if {"opening_float", "counted_cash"} & fields.keys():
        if register.counted_cash is not None:
            register.variance = compute_variance(
                Decimal(str(register.counted_cash)),
                Decimal(str(register.opening_float)),
                expected,
            )
        else:
            register.variance = ZERO

    register.updated_at = utc_now()

    log_action(
        db,
        user_id=operator_id,
        action="CASH_REGISTER_EDITED",
        resource_type="cash_registers",
        resource_id=str(register.id),
        previous=previous,
        changes={
            "fields": sorted(fields.keys()),
            "opening_float": str(register.opening_float),
            "counted_cash": str(register.counted_cash) if register.counted_cash is not None else None,
            "expected_total": str(expected),
            "variance": str(register.variance),
        },
    )

    db.commit()
    db.refresh(register)
    return _register_to_out(register)
