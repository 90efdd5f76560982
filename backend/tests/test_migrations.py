"""Tests for the schema built by the alembic migration."""
from __future__ import annotations

import importlib.util
from decimal import Decimal
from pathlib import Path
from types import ModuleType
from typing import Generator
from uuid import uuid4

import pytest
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import Engine, create_engine, inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from backend.app.core.clock import utc_now
from backend.app.models.cash_register import CashRegister, RegisterStatus
from backend.app.models.sales import Sale, SalePaymentMethod
from backend.tests.conftest import TODAY

VERSIONS = Path(__file__).resolve().parents[1] / "migrations" / "versions"


def _load_revision() -> ModuleType:
    path = next(VERSIONS.glob("a7c1e2f3d4b5_*.py"))
    spec = importlib.util.spec_from_file_location("ledger_initial_revision", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture()
def migrated_engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    revision = _load_revision()
    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            revision.upgrade()
    yield engine
    engine.dispose()


def _register(status: RegisterStatus, operator_id) -> CashRegister:
    return CashRegister(
        register_date=TODAY,
        opened_at=utc_now(),
        closed_at=utc_now() if status == RegisterStatus.CLOSED else None,
        opening_float=Decimal("0"),
        expected_total=Decimal("0"),
        counted_cash=Decimal("0") if status == RegisterStatus.CLOSED else None,
        variance=Decimal("0"),
        operator_id=operator_id,
        status=status,
    )


class TestInitialMigration:
    def test_creates_every_table(self, migrated_engine: Engine) -> None:
        tables = set(inspect(migrated_engine).get_table_names())
        assert {
            "sales",
            "credit_payments",
            "cash_registers",
            "service_transactions",
            "audit_logs",
        } <= tables

    def test_closed_registers_may_share_a_date(self, migrated_engine: Engine) -> None:
        operator_id = uuid4()
        with Session(migrated_engine) as session:
            session.add(_register(RegisterStatus.CLOSED, operator_id))
            session.add(_register(RegisterStatus.CLOSED, operator_id))
            session.add(_register(RegisterStatus.OPEN, operator_id))
            session.commit()
            assert session.query(CashRegister).count() == 3

    def test_second_open_register_rejected(self, migrated_engine: Engine) -> None:
        operator_id = uuid4()
        with Session(migrated_engine) as session:
            session.add(_register(RegisterStatus.OPEN, operator_id))
            session.commit()
            session.add(_register(RegisterStatus.OPEN, operator_id))
            with pytest.raises(IntegrityError):
                session.commit()
            session.rollback()

    def test_sale_defaults(self, migrated_engine: Engine) -> None:
        with Session(migrated_engine) as session:
            sale = Sale(
                sale_date=TODAY,
                total=Decimal("10"),
                payment_method=SalePaymentMethod.CASH,
            )
            session.add(sale)
            session.commit()
            session.refresh(sale)
            assert sale.interest_waived is False
            assert sale.created_at is not None
