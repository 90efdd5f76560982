from fastapi import APIRouter

from backend.app.api.v1.endpoints import (
    cash_registers,
    credit_payments,
    income,
    sales,
)

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(sales.router, prefix="/sales", tags=["sales"])
api_router.include_router(credit_payments.router, prefix="/credit-payments", tags=["credit-payments"])
api_router.include_router(cash_registers.router, prefix="/cash-registers", tags=["cash-registers"])
api_router.include_router(income.router, prefix="/income", tags=["income"])
