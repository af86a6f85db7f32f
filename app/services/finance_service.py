"""
Finance Service - transactions, invoices, budgets and derived reports.

Derived amounts are owned by this service and recomputed on every write:
- invoice item total = quantity * unitPrice
- invoice total = amount + tax
- budget remaining = totalBudget - spent (per category: allocated - spent)
- budget status becomes "exceeded" when spent > totalBudget

Clients can send any of those fields; they are overwritten.
"""

import logging
import uuid
from collections import OrderedDict
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional

from app.repositories.document_store import DocumentStore
from app.schemas.finance import (
    Budget,
    BudgetCreate,
    BudgetUpdate,
    CashFlowPoint,
    FinancialMetrics,
    FinancialReport,
    Invoice,
    InvoiceCreate,
    InvoiceUpdate,
    PaymentAlert,
    ReportPeriod,
    Transaction,
    TransactionCreate,
    TransactionUpdate,
)
from app.services.calendar_sync_service import add_months
from app.services.errors import NotFoundError


logger = logging.getLogger("innomind.services.finance")


UPCOMING_DUE_DAYS = 7

REPORT_NAMES = {
    "income": "Reporte de Ingresos",
    "expense": "Reporte de Gastos",
    "balance": "Balance General",
    "cashflow": "Flujo de Efectivo",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True, exclude={"id"})


# Inputs of the derived amounts; an explicit null leaves the stored value alone
INVOICE_TOTAL_INPUTS = ("amount", "tax", "items")
BUDGET_BALANCE_INPUTS = ("totalBudget", "spent", "categories")


def _changes(update, derived_inputs) -> dict:
    """Wire-format partial update without nulls for derived-amount inputs."""
    changes = update.model_dump(mode="json", by_alias=True, exclude_unset=True)
    for key in derived_inputs:
        if key in changes and changes[key] is None:
            del changes[key]
    return changes


def generate_invoice_number(issued: date, prefix: str = "INV") -> str:
    """INV-YYYYMMDD-xxxx, the suffix taken from a random id."""
    return f"{prefix}-{issued.strftime('%Y%m%d')}-{uuid.uuid4().hex[:4].upper()}"


def compute_invoice_totals(data: dict) -> dict:
    """Recompute item totals and the invoice total on a wire-format dict."""
    items = []
    for item in data.get("items") or []:
        items.append({
            **item,
            "id": item.get("id") or uuid.uuid4().hex,
            "total": item["quantity"] * item["unitPrice"],
        })
    data["items"] = items
    data["total"] = data["amount"] + data.get("tax", 0)
    return data


def compute_budget_balance(data: dict) -> dict:
    """Recompute remaining amounts and the exceeded status on a wire-format dict."""
    categories = []
    for category in data.get("categories") or []:
        categories.append({
            **category,
            "id": category.get("id") or uuid.uuid4().hex,
            "remaining": category["allocated"] - category.get("spent", 0),
        })
    data["categories"] = categories
    data["remaining"] = data["totalBudget"] - data.get("spent", 0)

    if data.get("spent", 0) > data["totalBudget"]:
        data["status"] = "exceeded"
    elif data.get("status") == "exceeded":
        data["status"] = "active"
    return data


class FinanceService:
    """Finance persistence and derived views over three collections."""

    TRANSACTIONS = "transactions"
    INVOICES = "invoices"
    BUDGETS = "budgets"

    def __init__(self, store: DocumentStore):
        self._store = store

    def _require(self, collection: str, doc_id: str, message: str) -> dict:
        data = self._store.get(collection, doc_id)
        if data is None:
            raise NotFoundError(message, collection, doc_id)
        return data

    # -------------------------------------------------------------------------
    # TRANSACTIONS
    # -------------------------------------------------------------------------

    def create_transaction(self, payload: TransactionCreate) -> Transaction:
        now = _now()
        transaction = Transaction(
            id=uuid.uuid4().hex,
            created_at=now,
            updated_at=now,
            **payload.model_dump(),
        )
        self._store.set(self.TRANSACTIONS, transaction.id, _dump(transaction))
        logger.info(
            f"Created {transaction.type} transaction {transaction.id}",
            extra={"transaction_id": transaction.id, "amount": transaction.amount},
        )
        return transaction

    def get_transactions(
        self,
        type: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Transaction]:
        transactions = [
            Transaction.model_validate({**doc.data, "id": doc.id})
            for doc in self._store.list(self.TRANSACTIONS)
        ]
        if type:
            transactions = [t for t in transactions if t.type == type]
        if status:
            transactions = [t for t in transactions if t.status == status]
        return sorted(transactions, key=lambda t: t.date, reverse=True)

    def get_transaction(self, transaction_id: str) -> Transaction:
        data = self._require(self.TRANSACTIONS, transaction_id, "Transacción no encontrada")
        return Transaction.model_validate({**data, "id": transaction_id})

    def update_transaction(self, transaction_id: str, changes: TransactionUpdate) -> Transaction:
        data = self._require(self.TRANSACTIONS, transaction_id, "Transacción no encontrada")
        merged = {
            **data,
            **changes.model_dump(mode="json", by_alias=True, exclude_unset=True),
            "updatedAt": _now().isoformat(),
        }
        transaction = Transaction.model_validate({**merged, "id": transaction_id})
        self._store.set(self.TRANSACTIONS, transaction_id, _dump(transaction))
        return transaction

    def delete_transaction(self, transaction_id: str) -> None:
        self._require(self.TRANSACTIONS, transaction_id, "Transacción no encontrada")
        self._store.delete(self.TRANSACTIONS, transaction_id)

    # -------------------------------------------------------------------------
    # INVOICES
    # -------------------------------------------------------------------------

    def create_invoice(self, payload: InvoiceCreate) -> Invoice:
        now = _now()
        issued = payload.issue_date or now.date()
        data = payload.model_dump(mode="json", by_alias=True)
        data.update({
            "number": payload.number or generate_invoice_number(issued),
            "issueDate": issued.isoformat(),
            "createdAt": now.isoformat(),
            "updatedAt": now.isoformat(),
        })

        invoice = Invoice.model_validate({**compute_invoice_totals(data), "id": uuid.uuid4().hex})
        self._store.set(self.INVOICES, invoice.id, _dump(invoice))
        logger.info(
            f"Created invoice {invoice.number}",
            extra={"invoice_id": invoice.id, "total": invoice.total},
        )
        return invoice

    def get_invoices(self, status: Optional[str] = None) -> List[Invoice]:
        invoices = [
            Invoice.model_validate({**doc.data, "id": doc.id})
            for doc in self._store.list(self.INVOICES)
        ]
        if status:
            invoices = [i for i in invoices if i.status == status]
        return invoices

    def get_invoice(self, invoice_id: str) -> Invoice:
        data = self._require(self.INVOICES, invoice_id, "Factura no encontrada")
        return Invoice.model_validate({**data, "id": invoice_id})

    def update_invoice(self, invoice_id: str, changes: InvoiceUpdate) -> Invoice:
        """Merge changes and recompute totals."""
        data = self._require(self.INVOICES, invoice_id, "Factura no encontrada")
        merged = {
            **data,
            **_changes(changes, INVOICE_TOTAL_INPUTS),
            "updatedAt": _now().isoformat(),
        }
        invoice = Invoice.model_validate({**compute_invoice_totals(merged), "id": invoice_id})
        self._store.set(self.INVOICES, invoice_id, _dump(invoice))
        return invoice

    def delete_invoice(self, invoice_id: str) -> None:
        self._require(self.INVOICES, invoice_id, "Factura no encontrada")
        self._store.delete(self.INVOICES, invoice_id)

    # -------------------------------------------------------------------------
    # BUDGETS
    # -------------------------------------------------------------------------

    def create_budget(self, payload: BudgetCreate) -> Budget:
        now = _now()
        data = payload.model_dump(mode="json", by_alias=True)
        data.update({"createdAt": now.isoformat(), "updatedAt": now.isoformat()})

        budget = Budget.model_validate({**compute_budget_balance(data), "id": uuid.uuid4().hex})
        self._store.set(self.BUDGETS, budget.id, _dump(budget))
        logger.info(f"Created budget {budget.id}", extra={"budget_id": budget.id})
        return budget

    def get_budgets(self, status: Optional[str] = None) -> List[Budget]:
        budgets = [
            Budget.model_validate({**doc.data, "id": doc.id})
            for doc in self._store.list(self.BUDGETS)
        ]
        if status:
            budgets = [b for b in budgets if b.status == status]
        return budgets

    def get_budget(self, budget_id: str) -> Budget:
        data = self._require(self.BUDGETS, budget_id, "Presupuesto no encontrado")
        return Budget.model_validate({**data, "id": budget_id})

    def update_budget(self, budget_id: str, changes: BudgetUpdate) -> Budget:
        """Merge changes and recompute remaining amounts and status."""
        data = self._require(self.BUDGETS, budget_id, "Presupuesto no encontrado")
        merged = {
            **data,
            **_changes(changes, BUDGET_BALANCE_INPUTS),
            "updatedAt": _now().isoformat(),
        }
        budget = Budget.model_validate({**compute_budget_balance(merged), "id": budget_id})
        self._store.set(self.BUDGETS, budget_id, _dump(budget))

        if budget.status == "exceeded":
            logger.warning(f"Budget {budget_id} exceeded", extra={"remaining": budget.remaining})
        return budget

    def delete_budget(self, budget_id: str) -> None:
        self._require(self.BUDGETS, budget_id, "Presupuesto no encontrado")
        self._store.delete(self.BUDGETS, budget_id)

    # -------------------------------------------------------------------------
    # DERIVED VIEWS
    # -------------------------------------------------------------------------

    def get_metrics(self, now: Optional[datetime] = None) -> FinancialMetrics:
        """
        Dashboard totals.

        monthlyGrowth compares completed income of the current calendar month
        with the previous one; 0 when the previous month had none.
        """
        today = (now or _now()).date()
        transactions = self.get_transactions()
        completed = [t for t in transactions if t.status == "completed"]

        total_revenue = sum(t.amount for t in completed if t.type == "income")
        total_expenses = sum(t.amount for t in completed if t.type == "expense")
        net_profit = total_revenue - total_expenses

        this_month = today.replace(day=1)
        last_month = add_months(datetime(today.year, today.month, 1), -1).date()

        def income_in(month_start: date) -> float:
            return sum(
                t.amount for t in completed
                if t.type == "income"
                and (t.date.year, t.date.month) == (month_start.year, month_start.month)
            )

        previous = income_in(last_month)
        current = income_in(this_month)
        growth = ((current - previous) / previous) * 100 if previous > 0 else 0

        if net_profit > 0:
            trend = "positive"
        elif net_profit < 0:
            trend = "negative"
        else:
            trend = "stable"

        return FinancialMetrics(
            total_revenue=total_revenue,
            total_expenses=total_expenses,
            net_profit=net_profit,
            pending_payments=sum(t.amount for t in transactions if t.status == "pending"),
            overdue_invoices=len([i for i in self.get_invoices() if i.status == "overdue"]),
            monthly_growth=growth,
            cash_flow_trend=trend,
        )

    def get_cash_flow(self, start: date, end: date) -> List[CashFlowPoint]:
        """Per-day income/expense over [start, end] with a running balance."""
        days: Dict[date, CashFlowPoint] = OrderedDict()
        in_range = sorted(
            (t for t in self.get_transactions() if start <= t.date <= end and t.status != "cancelled"),
            key=lambda t: t.date,
        )

        for transaction in in_range:
            point = days.setdefault(transaction.date, CashFlowPoint(date=transaction.date))
            if transaction.type == "income":
                point.income += transaction.amount
            else:
                point.expense += transaction.amount
            point.balance = point.income - point.expense

        running = 0.0
        for point in days.values():
            running += point.balance
            point.cumulative_balance = running
        return list(days.values())

    def generate_report(self, type: str, start: date, end: date) -> FinancialReport:
        transactions = [t for t in self.get_transactions() if start <= t.date <= end]
        income = [t for t in transactions if t.type == "income"]
        expenses = [t for t in transactions if t.type == "expense"]

        if type == "income":
            data = {
                "transactions": [t.model_dump(mode="json", by_alias=True) for t in income],
                "total": sum(t.amount for t in income),
                "count": len(income),
            }
        elif type == "expense":
            data = {
                "transactions": [t.model_dump(mode="json", by_alias=True) for t in expenses],
                "total": sum(t.amount for t in expenses),
                "count": len(expenses),
            }
        elif type == "balance":
            total_income = sum(t.amount for t in income)
            total_expense = sum(t.amount for t in expenses)
            data = {
                "income": total_income,
                "expense": total_expense,
                "balance": total_income - total_expense,
            }
        elif type == "cashflow":
            data = {
                "points": [
                    p.model_dump(mode="json", by_alias=True)
                    for p in self.get_cash_flow(start, end)
                ],
            }
        else:
            raise ValueError(f"Unknown report type: {type}")

        logger.info(f"Generated {type} report", extra={"start": str(start), "end": str(end)})
        return FinancialReport(
            id=uuid.uuid4().hex,
            name=REPORT_NAMES[type],
            type=type,
            period=ReportPeriod(start=start, end=end),
            data=data,
            generated_at=_now(),
        )

    def get_payment_alerts(self, now: Optional[datetime] = None) -> List[PaymentAlert]:
        moment = now or _now()
        today = moment.date()
        horizon = today + timedelta(days=UPCOMING_DUE_DAYS)
        alerts: List[PaymentAlert] = []

        for invoice in self.get_invoices():
            if invoice.status in ("paid", "cancelled"):
                continue
            if invoice.status == "overdue" or invoice.due_date < today:
                alerts.append(PaymentAlert(
                    id=f"overdue-{invoice.id}",
                    type="overdue",
                    title="Factura vencida",
                    message=f"La factura {invoice.number} venció el {invoice.due_date.isoformat()}",
                    priority="high",
                    related_id=invoice.id,
                    related_type="invoice",
                    created_at=moment,
                ))
            elif invoice.due_date <= horizon:
                alerts.append(PaymentAlert(
                    id=f"upcoming-{invoice.id}",
                    type="upcoming",
                    title="Pago próximo",
                    message=f"La factura {invoice.number} vence el {invoice.due_date.isoformat()}",
                    priority="medium",
                    related_id=invoice.id,
                    related_type="invoice",
                    created_at=moment,
                ))

        for budget in self.get_budgets(status="exceeded"):
            alerts.append(PaymentAlert(
                id=f"budget-{budget.id}",
                type="budget_exceeded",
                title="Presupuesto excedido",
                message=f"El presupuesto {budget.name} superó su límite por {-budget.remaining:.2f}",
                priority="high",
                related_id=budget.id,
                related_type="budget",
                created_at=moment,
            ))

        return alerts
