"""Tests for sale recording, voiding and interest waivers."""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from backend.app.core.exceptions import InvalidInputError, InvalidStateError, NotFoundError
from backend.app.models.audit import AuditLog
from backend.app.models.sales import CreditStatus, SalePaymentMethod, SaleStatus
from backend.app.services.credit_ledger import get_credit_sale, record_installment_payment
from backend.app.services.income import total_income
from backend.app.services.sales import (
    MAX_INSTALLMENTS,
    add_months,
    create_sale,
    get_sale,
    void_sale,
    waive_interest,
)
from backend.tests.conftest import TODAY, make_credit_sale, make_sale


class TestAddMonths:
    def test_plain(self) -> None:
        assert add_months(date(2026, 3, 14), 2) == date(2026, 5, 14)

    def test_year_rollover(self) -> None:
        assert add_months(date(2026, 11, 30), 3) == date(2027, 2, 28)

    def test_clamps_to_month_end(self) -> None:
        assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)
        assert add_months(date(2028, 1, 31), 1) == date(2028, 2, 29)


class TestCreateSale:
    def test_cash_sale(self, db: Session) -> None:
        sale = create_sale(db, total=Decimal("49.999"), payment_method="CASH", sale_date=TODAY)
        assert sale["payment_method"] == "CASH"
        assert sale["status"] == "COMPLETED"
        assert Decimal(sale["total"]) == Decimal("50.00")
        assert "credit_status" not in sale

    def test_credit_sale_interest_and_due_date(self, db: Session) -> None:
        sale = create_sale(
            db,
            total=Decimal("1000"),
            payment_method="CREDIT",
            sale_date=date(2026, 1, 31),
            customer_name="Ana",
            installment_count=12,
            down_payment=Decimal("200"),
            interest_rate=Decimal("2"),
        )
        # (1000 - 200) * 2% = 16 per installment
        assert Decimal(sale["interest_amount"]) == Decimal("16")
        assert Decimal(sale["total_with_interest"]) == Decimal("1192")
        assert Decimal(sale["amount_paid"]) == Decimal("200")
        assert sale["credit_status"] == "PENDING"
        assert sale["due_date"] == "2027-01-31"

    def test_credit_sale_without_interest(self, db: Session) -> None:
        sale = create_sale(
            db,
            total=Decimal("300"),
            payment_method="CREDIT",
            sale_date=TODAY,
            customer_name="Luis",
            installment_count=3,
        )
        assert Decimal(sale["total_with_interest"]) == Decimal("300")
        assert Decimal(sale["down_payment"]) == Decimal("0")

    def test_credit_needs_customer(self, db: Session) -> None:
        with pytest.raises(InvalidInputError, match="customer"):
            create_sale(db, total=Decimal("100"), payment_method="CREDIT", installment_count=2)

    @pytest.mark.parametrize("count", [None, 0, MAX_INSTALLMENTS + 1])
    def test_credit_installment_bounds(self, db: Session, count: int | None) -> None:
        with pytest.raises(InvalidInputError):
            create_sale(
                db,
                total=Decimal("100"),
                payment_method="CREDIT",
                customer_name="Ana",
                installment_count=count,
            )

    def test_down_payment_above_total(self, db: Session) -> None:
        with pytest.raises(InvalidInputError, match="Down payment"):
            create_sale(
                db,
                total=Decimal("100"),
                payment_method="CREDIT",
                customer_name="Ana",
                installment_count=2,
                down_payment=Decimal("150"),
            )

    def test_non_positive_total(self, db: Session) -> None:
        with pytest.raises(InvalidInputError):
            create_sale(db, total=Decimal("0"), payment_method="CASH")

    def test_unknown_method(self, db: Session) -> None:
        with pytest.raises(InvalidInputError, match="Invalid payment method"):
            create_sale(db, total=Decimal("10"), payment_method="CHEQUE")

    def test_audited(self, db: Session) -> None:
        seller = uuid4()
        sale = create_sale(db, total=Decimal("10"), payment_method="QR", seller_id=seller)
        log = db.query(AuditLog).filter(AuditLog.record_id == sale["id"]).one()
        assert log.action == "SALE_COMPLETED"
        assert log.changed_by == seller


class TestVoidSale:
    def test_void_removes_income(self, db: Session) -> None:
        sale = create_sale(db, total=Decimal("80"), payment_method="CASH", sale_date=TODAY)
        assert total_income(db, TODAY) == Decimal("80")
        voided = void_sale(db, UUID(sale["id"]))
        assert voided["status"] == "VOIDED"
        assert total_income(db, TODAY) == Decimal("0")

    def test_void_twice_rejected(self, db: Session) -> None:
        sale = create_sale(db, total=Decimal("80"), payment_method="CASH")
        void_sale(db, UUID(sale["id"]))
        with pytest.raises(InvalidStateError):
            void_sale(db, UUID(sale["id"]))

    def test_void_unknown(self, db: Session) -> None:
        with pytest.raises(NotFoundError):
            void_sale(db, uuid4())

    def test_get_unknown(self, db: Session) -> None:
        with pytest.raises(NotFoundError):
            get_sale(db, uuid4())


def _pay(db: Session, sale_id: UUID, installment: int, amount: str) -> dict:
    return record_installment_payment(
        db,
        sale_id=sale_id,
        installment_number=installment,
        amount=Decimal(amount),
        payment_date=TODAY,
        payment_method="CASH",
        today=TODAY,
    )


class TestWaiveInterest:
    def test_waiver_lowers_balance(self, db: Session) -> None:
        # 100 + 5 * 2 = 110 due, 20 down
        sale = make_credit_sale(db)
        _pay(db, sale.id, 1, "45")

        result = waive_interest(db, sale.id, waived=True)
        assert result["interest_waived"] is True
        assert Decimal(result["total_with_interest"]) == Decimal("100")
        assert result["credit_status"] == "PARTIAL"

        detail = get_credit_sale(db, sale.id, today=TODAY)
        assert Decimal(detail["balance"]) == Decimal("35")

        second = _pay(db, sale.id, 2, "35")
        assert second["credit_status"] == "PAID"

    def test_waiver_can_settle_and_reinstating_reopens(self, db: Session) -> None:
        sale = make_credit_sale(db)
        _pay(db, sale.id, 1, "45")
        _pay(db, sale.id, 2, "40")
        db.refresh(sale)
        assert sale.credit_status == CreditStatus.PARTIAL

        waived = waive_interest(db, sale.id, waived=True)
        assert waived["credit_status"] == "PAID"
        assert Decimal(waived["amount_paid"]) == Decimal("105")

        reinstated = waive_interest(db, sale.id, waived=False)
        assert reinstated["interest_waived"] is False
        assert Decimal(reinstated["total_with_interest"]) == Decimal("110")
        assert reinstated["credit_status"] == "PARTIAL"

        db.refresh(sale)
        assert sale.credit_status == CreditStatus.PARTIAL
        assert Decimal(str(sale.amount_paid)) == Decimal("105")

    def test_interest_figures_kept(self, db: Session) -> None:
        sale = make_credit_sale(db)
        result = waive_interest(db, sale.id, waived=True)
        assert Decimal(result["interest_amount"]) == Decimal("5")

    def test_audited(self, db: Session) -> None:
        sale = make_credit_sale(db)
        operator = uuid4()
        waive_interest(db, sale.id, waived=True, operator_id=operator)
        log = (
            db.query(AuditLog)
            .filter(AuditLog.record_id == str(sale.id), AuditLog.action == "SALE_INTEREST_WAIVED")
            .one()
        )
        assert log.changed_by == operator
        assert log.old_values["interest_waived"] is False

    def test_non_credit_sale_rejected(self, db: Session) -> None:
        sale = make_sale(db, "50", SalePaymentMethod.CASH)
        with pytest.raises(InvalidStateError, match="not a credit sale"):
            waive_interest(db, sale.id, waived=True)

    def test_voided_sale_rejected(self, db: Session) -> None:
        sale = make_credit_sale(db)
        sale.status = SaleStatus.VOIDED
        db.commit()
        with pytest.raises(InvalidStateError, match="voided"):
            waive_interest(db, sale.id, waived=True)

    def test_unknown_sale(self, db: Session) -> None:
        with pytest.raises(NotFoundError):
            waive_interest(db, uuid4(), waived=True)


class TestSaleEndpoints:
    def test_credit_sale_then_payment(self, client: TestClient) -> None:
        resp = client.post(
            "/api/v1/sales",
            json={
                "total": "100",
                "payment_method": "CREDIT",
                "sale_date": "2026-01-10",
                "customer_name": "Ana",
                "installment_count": 2,
                "down_payment": "20",
            },
        )
        assert resp.status_code == 201
        sale_id = resp.json()["id"]

        resp = client.post(
            "/api/v1/credit-payments",
            json={
                "sale_id": sale_id,
                "installment_number": 1,
                "amount": "40",
                "payment_date": "2026-02-10",
                "payment_method": "QR",
            },
        )
        assert resp.status_code == 201

        resp = client.get(f"/api/v1/sales/credit/{sale_id}")
        assert resp.status_code == 200
        data = resp.json()
        assert Decimal(data["amount_paid"]) == Decimal("60")
        assert data["installments_paid"] == [1]

    def test_credit_listing_filter(self, client: TestClient) -> None:
        client.post(
            "/api/v1/sales",
            json={
                "total": "100",
                "payment_method": "CREDIT",
                "customer_name": "Ana",
                "installment_count": 2,
            },
        )
        resp = client.get("/api/v1/sales/credit", params={"credit_status": "PENDING"})
        assert resp.status_code == 200
        assert len(resp.json()) == 1

        resp = client.get("/api/v1/sales/credit", params={"credit_status": "NOPE"})
        assert resp.status_code == 422

    def test_installment_fields_on_cash_sale_rejected(self, client: TestClient) -> None:
        resp = client.post(
            "/api/v1/sales",
            json={"total": "10", "payment_method": "CASH", "installment_count": 3},
        )
        assert resp.status_code == 422

    def test_credit_without_customer_is_422(self, client: TestClient) -> None:
        resp = client.post(
            "/api/v1/sales",
            json={"total": "10", "payment_method": "CREDIT", "installment_count": 3},
        )
        assert resp.status_code == 422

    def test_void_and_get(self, client: TestClient) -> None:
        sale_id = client.post(
            "/api/v1/sales", json={"total": "10", "payment_method": "CASH"}
        ).json()["id"]
        resp = client.post(f"/api/v1/sales/{sale_id}/void", json={})
        assert resp.status_code == 200
        assert client.get(f"/api/v1/sales/{sale_id}").json()["status"] == "VOIDED"

        resp = client.post(f"/api/v1/sales/{sale_id}/void", json={})
        assert resp.status_code == 409

    def test_credit_view_of_cash_sale_is_409(self, client: TestClient) -> None:
        sale_id = client.post(
            "/api/v1/sales", json={"total": "10", "payment_method": "CASH"}
        ).json()["id"]
        assert client.get(f"/api/v1/sales/credit/{sale_id}").status_code == 409

    def test_interest_waiver_route(self, client: TestClient, db: Session) -> None:
        sale = make_credit_sale(db)
        resp = client.patch(
            f"/api/v1/sales/{sale.id}/interest-waiver", json={"waived": True}
        )
        assert resp.status_code == 200
        assert resp.json()["interest_waived"] is True
        assert Decimal(resp.json()["total_with_interest"]) == Decimal("100")

        resp = client.patch(
            f"/api/v1/sales/{sale.id}/interest-waiver", json={"waived": False}
        )
        assert Decimal(resp.json()["total_with_interest"]) == Decimal("110")

        assert client.patch(
            f"/api/v1/sales/{uuid4()}/interest-waiver", json={"waived": True}
        ).status_code == 404
