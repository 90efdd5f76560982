# Importing every model module registers its tables on Base.metadata.

from backend.app.models.audit import AuditLog
from backend.app.models.cash_register import CashRegister, RegisterStatus
from backend.app.models.sales import (
    CreditPayment,
    CreditStatus,
    InstallmentPaymentMethod,
    Sale,
    SalePaymentMethod,
    SaleStatus,
)
from backend.app.models.services import ServiceTransaction

__all__ = [
    "AuditLog",
    "CashRegister",
    "RegisterStatus",
    "CreditPayment",
    "CreditStatus",
    "InstallmentPaymentMethod",
    "Sale",
    "SalePaymentMethod",
    "SaleStatus",
    "ServiceTransaction",
]
