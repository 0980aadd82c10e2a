from fastapi import APIRouter

from vacation_ledger.api.accruals import accruals_router
from vacation_ledger.api.adjustments import adjustment_router
from vacation_ledger.api.balances import balances_router, consumption_router, employee_balance_router
from vacation_ledger.api.employees import employees_router
from vacation_ledger.api.reports import reports_router

api_router = APIRouter()
api_router.include_router(employees_router)
api_router.include_router(employee_balance_router)
api_router.include_router(consumption_router)
api_router.include_router(balances_router)
api_router.include_router(adjustment_router)
api_router.include_router(accruals_router)
api_router.include_router(reports_router)
