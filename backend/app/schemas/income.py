from __future__ import annotations

from pydantic import BaseModel


class SalesByMethodOut(BaseModel):
    date: str
    CASH: str
    QR: str
    TRANSFER: str
    CREDIT: str


class AmountOut(BaseModel):
    date: str
    amount: str


class DailyIncomeOut(BaseModel):
    date: str
    cash: str
    qr: str
    transfer: str
    credit: str
    credit_receipts: str
    services_net: str
    total: str
