from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, field_validator


class CashRegisterOpenRequest(BaseModel):
    opening_float: Decimal
    operator_id: UUID

    @field_validator("opening_float")
    @classmethod
    def float_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Opening float must be non-negative")
        return v


class CashRegisterCloseRequest(BaseModel):
    counted_cash: Decimal
    note: str | None = None
    operator_id: UUID | None = None

    @field_validator("counted_cash")
    @classmethod
    def cash_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Counted cash must be non-negative")
        return v


class CashRegisterUpdate(BaseModel):
    """Partial correction of a register. Only the fields sent are applied."""

    opening_float: Decimal | None = None
    counted_cash: Decimal | None = None
    opened_at: datetime | None = None
    closed_at: datetime | None = None
    note: str | None = None
    operator_id: UUID | None = None

    @field_validator("opening_float", "counted_cash")
    @classmethod
    def amount_non_negative(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and v < 0:
            raise ValueError("Amounts must be non-negative")
        return v


class CashRegisterOut(BaseModel):
    id: UUID
    register_date: str
    status: str
    opened_at: str
    closed_at: str | None
    opening_float: str
    expected_total: str
    expected_in_drawer: str
    counted_cash: str | None
    variance: str
    operator_id: UUID
    note: str | None
