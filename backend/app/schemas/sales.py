from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, field_validator, model_validator


class SalePaymentMethodEnum(str, Enum):
    CASH = "CASH"
    QR = "QR"
    TRANSFER = "TRANSFER"
    CREDIT = "CREDIT"


class SaleCreate(BaseModel):
    total: Decimal
    payment_method: SalePaymentMethodEnum
    sale_date: date | None = None
    seller_id: UUID | None = None
    customer_name: str | None = None
    installment_count: int | None = None
    down_payment: Decimal | None = None
    interest_rate: Decimal | None = None

    @field_validator("total")
    @classmethod
    def total_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Sale total must be greater than zero")
        return v

    @model_validator(mode="after")
    def credit_fields(self) -> "SaleCreate":
        if self.payment_method == SalePaymentMethodEnum.CREDIT:
            if not self.installment_count:
                raise ValueError("installment_count is required for credit sales")
        elif self.installment_count or self.down_payment or self.interest_rate:
            raise ValueError("Installment fields are only allowed on credit sales")
        return self


class SaleVoidRequest(BaseModel):
    operator_id: UUID | None = None


class InterestWaiverRequest(BaseModel):
    waived: bool
    operator_id: UUID | None = None


class SaleOut(BaseModel):
    id: str
    sale_date: str
    total: str
    payment_method: str
    status: str
    customer_name: str | None = None
    installment_count: int | None = None
    down_payment: str | None = None
    interest_rate: str | None = None
    interest_amount: str | None = None
    interest_waived: bool | None = None
    total_with_interest: str | None = None
    amount_paid: str | None = None
    credit_status: str | None = None
    due_date: str | None = None
