from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, field_validator


class InstallmentMethodEnum(str, Enum):
    CASH = "CASH"
    QR = "QR"
    TRANSFER = "TRANSFER"


class CreditPaymentCreate(BaseModel):
    sale_id: UUID
    installment_number: int | None = None
    amount: Decimal
    payment_date: date
    payment_method: InstallmentMethodEnum
    note: str | None = None
    operator_id: UUID | None = None


class CreditPaymentUpdate(BaseModel):
    amount: Decimal | None = None
    payment_date: date | None = None
    payment_method: InstallmentMethodEnum | None = None
    note: str | None = None
    operator_id: UUID | None = None

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and v <= 0:
            raise ValueError("Payment amount must be greater than zero")
        return v


class CreditPaymentOut(BaseModel):
    id: str
    sale_id: str
    installment_number: int
    amount_paid: str
    payment_date: str
    payment_method: str
    note: str | None = None
    operator_id: str | None = None


class CreditPaymentResult(CreditPaymentOut):
    new_total_paid: str
    remaining: str
    credit_status: str


class CreditPaymentDeleted(BaseModel):
    sale_id: str
    new_total_paid: str
    remaining: str
    credit_status: str


class CreditSaleOut(BaseModel):
    id: str
    sale_date: str
    customer_name: str | None
    total: str
    installment_count: int | None
    down_payment: str
    interest_rate: str
    interest_amount: str
    interest_waived: bool = False
    total_with_interest: str
    amount_paid: str
    balance: str
    credit_status: str
    due_date: str | None
    installments_paid: list[int] = []
