"""Shared test fixtures.

Tests run against an in-memory SQLite database. Every test gets freshly
created tables which are dropped afterwards, so tests never see each other's
rows.
"""

from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date, timedelta  # noqa: E402
from decimal import Decimal  # noqa: E402
from typing import Generator  # noqa: E402
from uuid import UUID, uuid4  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

import backend.app.models  # noqa: E402,F401
from backend.app.core.database import Base, SessionLocal, engine, get_db  # noqa: E402
from backend.app.main import app  # noqa: E402
from backend.app.models.sales import (  # noqa: E402
    CreditStatus,
    Sale,
    SalePaymentMethod,
    SaleStatus,
)
from backend.app.models.services import ServiceTransaction  # noqa: E402

TODAY = date(2026, 3, 14)
YESTERDAY = TODAY - timedelta(days=1)


# ─── DB session on a fresh schema ────────────────────────────────────────────


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db: Session) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the test session."""

    def _override_get_db() -> Generator[Session, None, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def operator_id() -> UUID:
    return uuid4()


# ─── Row builders ────────────────────────────────────────────────────────────


def make_sale(
    db: Session,
    total: str,
    method: SalePaymentMethod = SalePaymentMethod.CASH,
    sale_date: date = TODAY,
    status: SaleStatus = SaleStatus.COMPLETED,
) -> Sale:
    sale = Sale(
        sale_date=sale_date,
        total=Decimal(total),
        payment_method=method,
        status=status,
    )
    db.add(sale)
    db.commit()
    return sale


def make_credit_sale(
    db: Session,
    total: str = "100",
    installment_count: int = 2,
    interest_amount: str = "5",
    down_payment: str = "20",
    sale_date: date = TODAY,
    due_date: date | None = None,
) -> Sale:
    """Credit sale with canonical fields set directly, bypassing create_sale."""
    sale = Sale(
        sale_date=sale_date,
        total=Decimal(total),
        payment_method=SalePaymentMethod.CREDIT,
        status=SaleStatus.COMPLETED,
        customer_name="Test Customer",
        installment_count=installment_count,
        down_payment=Decimal(down_payment),
        interest_amount=Decimal(interest_amount),
        amount_paid=Decimal(down_payment),
        credit_status=CreditStatus.PENDING,
        due_date=due_date,
    )
    db.add(sale)
    db.commit()
    return sale


def make_service_transaction(db: Session, amount: str, day: date = TODAY) -> ServiceTransaction:
    tx = ServiceTransaction(transaction_date=day, amount=Decimal(amount))
    db.add(tx)
    db.commit()
    return tx


# ─── Scenario fixtures ───────────────────────────────────────────────────────


@pytest.fixture()
def credit_sale(db: Session) -> Sale:
    """total 100, 2 installments, 5 interest per installment, 20 down ⇒ 110 due."""
    return make_credit_sale(db)
