"""
Tests for the Finance Service.
"""

import re
from datetime import date, datetime, timezone

import pytest

from app.schemas.finance import (
    BudgetCategory,
    BudgetCreate,
    BudgetUpdate,
    InvoiceCreate,
    InvoiceItem,
    InvoiceUpdate,
    TransactionCreate,
    TransactionUpdate,
)
from app.services.errors import NotFoundError
from app.services.finance_service import FinanceService


NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def finance(store):
    return FinanceService(store)


def transaction(finance, type, amount, on, status="completed", category="Ventas"):
    return finance.create_transaction(TransactionCreate(
        type=type,
        category=category,
        amount=amount,
        date=on,
        status=status,
    ))


def invoice(finance, due, status="sent", amount=1000, tax=100):
    return finance.create_invoice(InvoiceCreate(
        client_id="client-1",
        amount=amount,
        tax=tax,
        status=status,
        due_date=due,
    ))


# ---------------------------------------------------------------------------
# TRANSACTIONS
# ---------------------------------------------------------------------------

class TestTransactions:
    """Tests for transaction CRUD."""

    def test_newest_first_with_filters(self, finance):
        """Should sort by date descending and filter by type and status."""
        old = transaction(finance, "income", 100, date(2025, 1, 1))
        new = transaction(finance, "income", 200, date(2025, 2, 1))
        expense = transaction(finance, "expense", 50, date(2025, 1, 15), status="pending")

        assert [t.id for t in finance.get_transactions()] == [new.id, expense.id, old.id]
        assert [t.id for t in finance.get_transactions(type="expense")] == [expense.id]
        assert [t.id for t in finance.get_transactions(status="pending")] == [expense.id]

    def test_update(self, finance):
        """Should apply a partial update."""
        created = transaction(finance, "income", 100, date(2025, 1, 1), status="pending")

        updated = finance.update_transaction(created.id, TransactionUpdate(status="completed"))

        assert updated.status == "completed"
        assert updated.amount == 100

    def test_not_found(self, finance):
        """Should raise NotFoundError with the Spanish message."""
        with pytest.raises(NotFoundError) as exc_info:
            finance.get_transaction("missing")

        assert str(exc_info.value) == "Transacción no encontrada"

    def test_delete(self, finance):
        """Should delete the transaction."""
        created = transaction(finance, "income", 100, date(2025, 1, 1))

        finance.delete_transaction(created.id)

        assert finance.get_transactions() == []


# ---------------------------------------------------------------------------
# INVOICES
# ---------------------------------------------------------------------------

class TestInvoices:
    """Tests for invoice totals and numbering."""

    def test_total_is_amount_plus_tax(self, finance):
        """Should compute total = amount + tax on create and update."""
        created = invoice(finance, date(2025, 4, 1), amount=1000, tax=100)
        assert created.total == 1100

        updated = finance.update_invoice(created.id, InvoiceUpdate(tax=160))
        assert updated.total == 1160
        assert finance.get_invoice(created.id).total == 1160

    def test_generated_number(self, finance):
        """Should number invoices INV-YYYYMMDD-XXXX from the issue date."""
        created = finance.create_invoice(InvoiceCreate(
            client_id="client-1",
            amount=10,
            due_date=date(2025, 4, 1),
            issue_date=date(2025, 3, 2),
        ))

        assert re.fullmatch(r"INV-20250302-[0-9A-F]{4}", created.number)

    def test_item_totals(self, finance):
        """Should compute each item total as quantity * unitPrice."""
        created = finance.create_invoice(InvoiceCreate(
            client_id="client-1",
            amount=250,
            due_date=date(2025, 4, 1),
            items=[InvoiceItem(description="Hora de consultoría", quantity=2.5, unit_price=100, total=1)],
        ))

        assert created.items[0].total == 250
        assert created.items[0].id

    def test_status_filter(self, finance):
        """Should filter invoices by status."""
        paid = invoice(finance, date(2025, 4, 1), status="paid")
        invoice(finance, date(2025, 4, 1), status="draft")

        assert [i.id for i in finance.get_invoices(status="paid")] == [paid.id]

    def test_null_amounts_keep_stored_values(self, finance):
        """Should keep amount and tax when an update sends them as null."""
        created = invoice(finance, date(2025, 4, 1), amount=1000, tax=100)

        updated = finance.update_invoice(created.id, InvoiceUpdate(tax=None, amount=None, notes="Pagar en efectivo"))

        assert updated.amount == 1000
        assert updated.tax == 100
        assert updated.total == 1100
        assert updated.notes == "Pagar en efectivo"


# ---------------------------------------------------------------------------
# BUDGETS
# ---------------------------------------------------------------------------

class TestBudgets:
    """Tests for budget balances and the exceeded status."""

    def make_budget(self, finance, spent=0):
        return finance.create_budget(BudgetCreate(
            name="Marketing Q1",
            total_budget=1000,
            spent=spent,
            categories=[BudgetCategory(name="Ads", allocated=600, spent=200)],
            start_date=date(2025, 1, 1),
            end_date=date(2025, 3, 31),
        ))

    def test_remaining(self, finance):
        """Should compute remaining for the budget and each category."""
        budget = self.make_budget(finance, spent=300)

        assert budget.remaining == 700
        assert budget.categories[0].remaining == 400
        assert budget.status == "active"

    def test_exceeded_and_back(self, finance):
        """Should flip to exceeded when spent passes the total and back when it drops."""
        budget = self.make_budget(finance)

        exceeded = finance.update_budget(budget.id, BudgetUpdate(spent=1200))
        assert exceeded.status == "exceeded"
        assert exceeded.remaining == -200

        recovered = finance.update_budget(budget.id, BudgetUpdate(spent=900))
        assert recovered.status == "active"

    def test_spending_exactly_the_total_is_not_exceeded(self, finance):
        """Should not mark a fully spent budget as exceeded."""
        budget = self.make_budget(finance, spent=1000)

        assert budget.status == "active"
        assert budget.remaining == 0

    def test_null_amounts_keep_stored_values(self, finance):
        """Should keep spent and totalBudget when an update sends them as null."""
        budget = self.make_budget(finance, spent=300)

        updated = finance.update_budget(budget.id, BudgetUpdate(spent=None, total_budget=None, categories=None))

        assert updated.spent == 300
        assert updated.total_budget == 1000
        assert updated.remaining == 700
        assert updated.categories[0].remaining == 400


# ---------------------------------------------------------------------------
# DERIVED VIEWS
# ---------------------------------------------------------------------------

class TestMetrics:
    """Tests for get_metrics."""

    def test_empty(self, finance):
        """Should report zeros and a stable trend."""
        metrics = finance.get_metrics(now=NOW)

        assert metrics.total_revenue == 0
        assert metrics.monthly_growth == 0
        assert metrics.cash_flow_trend == "stable"

    def test_totals_and_growth(self, finance):
        """Should sum completed amounts and compare this month's income with last month's."""
        transaction(finance, "income", 1000, date(2025, 2, 10))
        transaction(finance, "income", 1500, date(2025, 3, 5))
        transaction(finance, "expense", 400, date(2025, 3, 6))
        transaction(finance, "income", 999, date(2025, 3, 7), status="pending")
        invoice(finance, date(2025, 3, 1), status="overdue")

        metrics = finance.get_metrics(now=NOW)

        assert metrics.total_revenue == 2500
        assert metrics.total_expenses == 400
        assert metrics.net_profit == 2100
        assert metrics.pending_payments == 999
        assert metrics.overdue_invoices == 1
        assert metrics.monthly_growth == pytest.approx(50.0)
        assert metrics.cash_flow_trend == "positive"

    def test_negative_trend(self, finance):
        """Should report a negative trend when expenses exceed revenue."""
        transaction(finance, "expense", 100, date(2025, 3, 1))

        assert finance.get_metrics(now=NOW).cash_flow_trend == "negative"


class TestCashFlow:
    """Tests for get_cash_flow."""

    def test_running_balance_per_day(self, finance):
        """Should group by day, skip cancelled and accumulate the balance."""
        transaction(finance, "income", 500, date(2025, 3, 1))
        transaction(finance, "expense", 200, date(2025, 3, 1))
        transaction(finance, "expense", 100, date(2025, 3, 3))
        transaction(finance, "income", 10000, date(2025, 3, 2), status="cancelled")
        transaction(finance, "income", 50, date(2025, 4, 1))

        points = finance.get_cash_flow(date(2025, 3, 1), date(2025, 3, 31))

        assert [p.date for p in points] == [date(2025, 3, 1), date(2025, 3, 3)]
        assert (points[0].income, points[0].expense, points[0].balance) == (500, 200, 300)
        assert points[0].cumulative_balance == 300
        assert points[1].cumulative_balance == 200


class TestReports:
    """Tests for generate_report."""

    def test_balance_report(self, finance):
        """Should total income and expense inside the period."""
        transaction(finance, "income", 800, date(2025, 3, 1))
        transaction(finance, "expense", 300, date(2025, 3, 2))
        transaction(finance, "income", 999, date(2025, 5, 1))

        report = finance.generate_report("balance", date(2025, 3, 1), date(2025, 3, 31))

        assert report.name == "Balance General"
        assert report.data == {"income": 800, "expense": 300, "balance": 500}

    def test_income_report(self, finance):
        """Should list income transactions with total and count."""
        transaction(finance, "income", 800, date(2025, 3, 1))
        transaction(finance, "expense", 300, date(2025, 3, 2))

        report = finance.generate_report("income", date(2025, 3, 1), date(2025, 3, 31))

        assert report.data["total"] == 800
        assert report.data["count"] == 1

    def test_unknown_type(self, finance):
        """Should raise ValueError for an unknown report type."""
        with pytest.raises(ValueError):
            finance.generate_report("forecast", date(2025, 3, 1), date(2025, 3, 31))


class TestPaymentAlerts:
    """Tests for get_payment_alerts."""

    def test_alert_kinds(self, finance):
        """Should flag overdue, upcoming and exceeded items and skip settled ones."""
        overdue = invoice(finance, date(2025, 3, 10))
        upcoming = invoice(finance, date(2025, 3, 20))
        invoice(finance, date(2025, 3, 1), status="paid")
        invoice(finance, date(2025, 5, 1))
        budget = finance.create_budget(BudgetCreate(
            name="Ops",
            total_budget=100,
            spent=150,
            start_date=date(2025, 3, 1),
            end_date=date(2025, 3, 31),
        ))

        alerts = {a.id: a for a in finance.get_payment_alerts(now=NOW)}

        assert set(alerts) == {
            f"overdue-{overdue.id}",
            f"upcoming-{upcoming.id}",
            f"budget-{budget.id}",
        }
        assert alerts[f"overdue-{overdue.id}"].priority == "high"
        assert alerts[f"upcoming-{upcoming.id}"].priority == "medium"
        assert alerts[f"budget-{budget.id}"].type == "budget_exceeded"
