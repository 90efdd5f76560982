from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.core.database import Base


class SalePaymentMethod(str, enum.Enum):
    CASH = "CASH"
    QR = "QR"
    TRANSFER = "TRANSFER"
    CREDIT = "CREDIT"


class InstallmentPaymentMethod(str, enum.Enum):
    CASH = "CASH"
    QR = "QR"
    TRANSFER = "TRANSFER"


class SaleStatus(str, enum.Enum):
    COMPLETED = "COMPLETED"
    VOIDED = "VOIDED"


class CreditStatus(str, enum.Enum):
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class Sale(Base):
    """A completed or voided sale. Credit sales carry the installment fields."""

    __tablename__ = "sales"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    sale_date: Mapped[date] = mapped_column(Date, nullable=False)
    total: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False
    )
    payment_method: Mapped[SalePaymentMethod] = mapped_column(
        Enum(SalePaymentMethod), nullable=False
    )
    status: Mapped[SaleStatus] = mapped_column(
        Enum(SaleStatus), nullable=False, default=SaleStatus.COMPLETED
    )
    seller_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # ── Credit-only fields ──────────────────────────────────────────────────
    installment_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    down_payment: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    interest_rate: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=4), nullable=False, default=Decimal("0")
    )
    interest_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    interest_waived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    amount_paid: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=20, scale=4), nullable=True
    )
    credit_status: Mapped[CreditStatus | None] = mapped_column(
        Enum(CreditStatus), nullable=True
    )
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    credit_payments: Mapped[list[CreditPayment]] = relationship(
        back_populates="sale", order_by="CreditPayment.installment_number"
    )

    __table_args__ = (
        CheckConstraint("total > 0", name="ck_sale_total_positive"),
        CheckConstraint("down_payment >= 0", name="ck_sale_down_payment_non_negative"),
        Index("ix_sales_date_status", "sale_date", "status"),
        Index("ix_sales_payment_method", "payment_method"),
        Index("ix_sales_credit_status", "credit_status"),
    )


class CreditPayment(Base):
    """One settled installment of a credit sale."""

    __tablename__ = "credit_payments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    sale_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("sales.id"), nullable=False
    )
    installment_number: Mapped[int] = mapped_column(Integer, nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False
    )
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_method: Mapped[InstallmentPaymentMethod] = mapped_column(
        Enum(InstallmentPaymentMethod), nullable=False
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    operator_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    sale: Mapped[Sale] = relationship(back_populates="credit_payments")

    __table_args__ = (
        UniqueConstraint(
            "sale_id", "installment_number", name="uq_credit_payment_installment"
        ),
        CheckConstraint("amount_paid > 0", name="ck_credit_payment_amount_positive"),
        CheckConstraint(
            "installment_number >= 1", name="ck_credit_payment_installment_min"
        ),
        Index("ix_credit_payments_sale", "sale_id"),
        Index("ix_credit_payments_date", "payment_date"),
    )
