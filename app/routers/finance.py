"""
Finance router - transactions, invoices, budgets and derived views.

All endpoints require an authenticated operator.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.deps import get_current_user, get_finance_service
from app.schemas.finance import (
    Budget,
    BudgetCreate,
    BudgetStatus,
    BudgetUpdate,
    CashFlowPoint,
    FinancialMetrics,
    FinancialReport,
    Invoice,
    InvoiceCreate,
    InvoiceStatus,
    InvoiceUpdate,
    PaymentAlert,
    ReportRequest,
    Transaction,
    TransactionCreate,
    TransactionStatus,
    TransactionType,
    TransactionUpdate,
)
from app.schemas.user import User
from app.services.finance_service import FinanceService


# ---------------------------------------------------------------------------
# ROUTER SETUP
# ---------------------------------------------------------------------------
router = APIRouter(prefix="/finance", tags=["finance"])


def _check_range(start: date, end: date) -> None:
    if start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start must not be after end",
        )


# ---------------------------------------------------------------------------
# TRANSACTIONS
# ---------------------------------------------------------------------------

@router.get("/transactions", response_model=List[Transaction])
def list_transactions(
    type: Optional[TransactionType] = Query(None),
    status_filter: Optional[TransactionStatus] = Query(None, alias="status"),
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    return finance.get_transactions(type=type, status=status_filter)


@router.post("/transactions", response_model=Transaction, status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: TransactionCreate,
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    return finance.create_transaction(payload)


@router.get("/transactions/{transaction_id}", response_model=Transaction)
def get_transaction(
    transaction_id: str,
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    return finance.get_transaction(transaction_id)


@router.patch("/transactions/{transaction_id}", response_model=Transaction)
def update_transaction(
    transaction_id: str,
    payload: TransactionUpdate,
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    return finance.update_transaction(transaction_id, payload)


@router.delete("/transactions/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    transaction_id: str,
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    finance.delete_transaction(transaction_id)
    return None


# ---------------------------------------------------------------------------
# INVOICES
# ---------------------------------------------------------------------------

@router.get("/invoices", response_model=List[Invoice])
def list_invoices(
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status"),
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    return finance.get_invoices(status=status_filter)


@router.post("/invoices", response_model=Invoice, status_code=status.HTTP_201_CREATED)
def create_invoice(
    payload: InvoiceCreate,
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    """Create an invoice; item totals and total = amount + tax are computed."""
    return finance.create_invoice(payload)


@router.get("/invoices/{invoice_id}", response_model=Invoice)
def get_invoice(
    invoice_id: str,
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    return finance.get_invoice(invoice_id)


@router.patch("/invoices/{invoice_id}", response_model=Invoice)
def update_invoice(
    invoice_id: str,
    payload: InvoiceUpdate,
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    return finance.update_invoice(invoice_id, payload)


@router.delete("/invoices/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(
    invoice_id: str,
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    finance.delete_invoice(invoice_id)
    return None


# ---------------------------------------------------------------------------
# BUDGETS
# ---------------------------------------------------------------------------

@router.get("/budgets", response_model=List[Budget])
def list_budgets(
    status_filter: Optional[BudgetStatus] = Query(None, alias="status"),
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    return finance.get_budgets(status=status_filter)


@router.post("/budgets", response_model=Budget, status_code=status.HTTP_201_CREATED)
def create_budget(
    payload: BudgetCreate,
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    return finance.create_budget(payload)


@router.get("/budgets/{budget_id}", response_model=Budget)
def get_budget(
    budget_id: str,
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    return finance.get_budget(budget_id)


@router.patch("/budgets/{budget_id}", response_model=Budget)
def update_budget(
    budget_id: str,
    payload: BudgetUpdate,
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    return finance.update_budget(budget_id, payload)


@router.delete("/budgets/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_budget(
    budget_id: str,
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    finance.delete_budget(budget_id)
    return None


# ---------------------------------------------------------------------------
# DERIVED VIEWS
# ---------------------------------------------------------------------------

@router.get("/metrics", response_model=FinancialMetrics)
def metrics(
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    return finance.get_metrics()


@router.get("/cashflow", response_model=List[CashFlowPoint])
def cash_flow(
    start: date = Query(...),
    end: date = Query(...),
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    _check_range(start, end)
    return finance.get_cash_flow(start, end)


@router.post("/reports", response_model=FinancialReport)
def generate_report(
    payload: ReportRequest,
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    _check_range(payload.start, payload.end)
    return finance.generate_report(payload.type, payload.start, payload.end)


@router.get("/alerts", response_model=List[PaymentAlert])
def payment_alerts(
    finance: FinanceService = Depends(get_finance_service),
    current_user: User = Depends(get_current_user),
):
    return finance.get_payment_alerts()
