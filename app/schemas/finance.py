"""
Finance schemas - transactions, invoices, budgets and derived reports.

Dates without a time component (transaction date, due/issue dates, budget
periods) are plain `date` values; audit timestamps are aware datetimes.
"""

from datetime import date as Date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


TransactionType = Literal["income", "expense", "payment"]
TransactionStatus = Literal["pending", "completed", "cancelled"]
InvoiceStatus = Literal["draft", "sent", "paid", "overdue", "cancelled"]
BudgetPeriod = Literal["monthly", "quarterly", "yearly"]
BudgetStatus = Literal["active", "completed", "exceeded"]
ReportType = Literal["income", "expense", "balance", "cashflow"]


# ---------------------------------------------------------------------------
# TRANSACTIONS
# ---------------------------------------------------------------------------

class Transaction(BaseModel):
    id: str
    type: TransactionType
    category: str
    amount: float
    description: str = ""
    date: Date
    client_id: Optional[str] = Field(None, alias="clientId")
    project_id: Optional[str] = Field(None, alias="projectId")
    invoice_id: Optional[str] = Field(None, alias="invoiceId")
    status: TransactionStatus = "pending"
    payment_method: Optional[str] = Field(None, alias="paymentMethod")
    reference: Optional[str] = None
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    class Config:
        populate_by_name = True


class TransactionCreate(BaseModel):
    type: TransactionType
    category: str
    amount: float = Field(..., ge=0)
    description: str = ""
    date: Date
    client_id: Optional[str] = Field(None, alias="clientId")
    project_id: Optional[str] = Field(None, alias="projectId")
    invoice_id: Optional[str] = Field(None, alias="invoiceId")
    status: TransactionStatus = "pending"
    payment_method: Optional[str] = Field(None, alias="paymentMethod")
    reference: Optional[str] = None

    class Config:
        populate_by_name = True


class TransactionUpdate(BaseModel):
    type: Optional[TransactionType] = None
    category: Optional[str] = None
    amount: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    date: Optional[Date] = None
    client_id: Optional[str] = Field(None, alias="clientId")
    project_id: Optional[str] = Field(None, alias="projectId")
    invoice_id: Optional[str] = Field(None, alias="invoiceId")
    status: Optional[TransactionStatus] = None
    payment_method: Optional[str] = Field(None, alias="paymentMethod")
    reference: Optional[str] = None

    class Config:
        populate_by_name = True


# ---------------------------------------------------------------------------
# INVOICES
# ---------------------------------------------------------------------------

class InvoiceItem(BaseModel):
    """Line item; total is always quantity * unitPrice."""
    id: Optional[str] = None
    description: str
    quantity: float = Field(1, ge=0)
    unit_price: float = Field(..., alias="unitPrice", ge=0)
    total: float = 0

    class Config:
        populate_by_name = True


class Invoice(BaseModel):
    id: str
    number: str
    client_id: str = Field(..., alias="clientId")
    project_id: Optional[str] = Field(None, alias="projectId")
    amount: float
    tax: float = 0
    total: float
    status: InvoiceStatus = "draft"
    due_date: Date = Field(..., alias="dueDate")
    issue_date: Date = Field(..., alias="issueDate")
    items: List[InvoiceItem] = Field(default_factory=list)
    notes: Optional[str] = None
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    class Config:
        populate_by_name = True


class InvoiceCreate(BaseModel):
    """
    Request body for POST /finance/invoices.

    `total` is never accepted from the client; it is amount + tax.
    `number` is generated as INV-YYYYMMDD-xxxx when omitted.
    """
    number: Optional[str] = None
    client_id: str = Field(..., alias="clientId")
    project_id: Optional[str] = Field(None, alias="projectId")
    amount: float = Field(..., ge=0)
    tax: float = Field(0, ge=0)
    status: InvoiceStatus = "draft"
    due_date: Date = Field(..., alias="dueDate")
    issue_date: Optional[Date] = Field(None, alias="issueDate")
    items: List[InvoiceItem] = Field(default_factory=list)
    notes: Optional[str] = None

    class Config:
        populate_by_name = True


class InvoiceUpdate(BaseModel):
    number: Optional[str] = None
    client_id: Optional[str] = Field(None, alias="clientId")
    project_id: Optional[str] = Field(None, alias="projectId")
    amount: Optional[float] = Field(None, ge=0)
    tax: Optional[float] = Field(None, ge=0)
    status: Optional[InvoiceStatus] = None
    due_date: Optional[Date] = Field(None, alias="dueDate")
    issue_date: Optional[Date] = Field(None, alias="issueDate")
    items: Optional[List[InvoiceItem]] = None
    notes: Optional[str] = None

    class Config:
        populate_by_name = True


# ---------------------------------------------------------------------------
# BUDGETS
# ---------------------------------------------------------------------------

class BudgetCategory(BaseModel):
    id: Optional[str] = None
    name: str
    allocated: float = Field(..., ge=0)
    spent: float = Field(0, ge=0)
    remaining: float = 0


class Budget(BaseModel):
    id: str
    name: str
    project_id: Optional[str] = Field(None, alias="projectId")
    total_budget: float = Field(..., alias="totalBudget")
    spent: float = 0
    remaining: float
    categories: List[BudgetCategory] = Field(default_factory=list)
    period: BudgetPeriod = "monthly"
    start_date: Date = Field(..., alias="startDate")
    end_date: Date = Field(..., alias="endDate")
    status: BudgetStatus = "active"
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    class Config:
        populate_by_name = True


class BudgetCreate(BaseModel):
    name: str
    project_id: Optional[str] = Field(None, alias="projectId")
    total_budget: float = Field(..., alias="totalBudget", ge=0)
    spent: float = Field(0, ge=0)
    categories: List[BudgetCategory] = Field(default_factory=list)
    period: BudgetPeriod = "monthly"
    start_date: Date = Field(..., alias="startDate")
    end_date: Date = Field(..., alias="endDate")
    status: BudgetStatus = "active"

    class Config:
        populate_by_name = True


class BudgetUpdate(BaseModel):
    name: Optional[str] = None
    project_id: Optional[str] = Field(None, alias="projectId")
    total_budget: Optional[float] = Field(None, alias="totalBudget", ge=0)
    spent: Optional[float] = Field(None, ge=0)
    categories: Optional[List[BudgetCategory]] = None
    period: Optional[BudgetPeriod] = None
    start_date: Optional[Date] = Field(None, alias="startDate")
    end_date: Optional[Date] = Field(None, alias="endDate")
    status: Optional[BudgetStatus] = None

    class Config:
        populate_by_name = True


# ---------------------------------------------------------------------------
# DERIVED VIEWS
# ---------------------------------------------------------------------------

class FinancialMetrics(BaseModel):
    total_revenue: float = Field(0, alias="totalRevenue")
    total_expenses: float = Field(0, alias="totalExpenses")
    net_profit: float = Field(0, alias="netProfit")
    pending_payments: float = Field(0, alias="pendingPayments")
    overdue_invoices: int = Field(0, alias="overdueInvoices")
    monthly_growth: float = Field(0, alias="monthlyGrowth")
    cash_flow_trend: Literal["positive", "negative", "stable"] = Field("stable", alias="cashFlowTrend")

    class Config:
        populate_by_name = True


class CashFlowPoint(BaseModel):
    date: Date
    income: float = 0
    expense: float = 0
    balance: float = 0
    cumulative_balance: float = Field(0, alias="cumulativeBalance")

    class Config:
        populate_by_name = True


class ReportPeriod(BaseModel):
    start: Date
    end: Date


class FinancialReport(BaseModel):
    id: str
    name: str
    type: ReportType
    period: ReportPeriod
    data: Dict[str, Any]
    generated_at: datetime = Field(..., alias="generatedAt")

    class Config:
        populate_by_name = True


class ReportRequest(BaseModel):
    type: ReportType
    start: Date
    end: Date


class PaymentAlert(BaseModel):
    id: str
    type: Literal["overdue", "upcoming", "budget_exceeded"]
    title: str
    message: str
    priority: Literal["low", "medium", "high"]
    related_id: str = Field(..., alias="relatedId")
    related_type: Literal["invoice", "payment", "budget"] = Field(..., alias="relatedType")
    created_at: datetime = Field(..., alias="createdAt")
    read: bool = False

    class Config:
        populate_by_name = True
