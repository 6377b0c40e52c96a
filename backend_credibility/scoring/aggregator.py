"""
Financial aggregator: document corpus -> FinancialMetrics.

Reduces contributing documents into revenue/expense totals, VAT collected,
per-month income/expenses and ranked categories. Branches on the decoded
variant, so extracted_data.type overrides document_type. Balance
sheets only add a display category; they never move revenue or expenses.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from backend_credibility.core.numeric import bounded_score, finite, safe_ratio
from backend_credibility.credibility_logging import get_logger
from backend_credibility.documents.decoder import month_key
from backend_credibility.documents.models import (
    BalanceSheetData,
    BankStatementData,
    BankTransaction,
    Document,
    DocumentStatus,
    InvoiceData,
    ProfitLossData,
    ReceiptData,
)

logger = get_logger(__name__)

MAX_MONTHS = 8
MAX_CATEGORIES = 6
RECENT_TRANSACTIONS = 10
HEALTH_MARGIN_WEIGHT = 0.6
HEALTH_COVERAGE_WEIGHT = 0.4

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

CATEGORY_INVOICES = "Invoices"
CATEGORY_PURCHASES = "Purchases"
CATEGORY_OTHER_INCOME = "Other Income"
CATEGORY_OTHER_EXPENSES = "Other Expenses"
CATEGORY_ASSETS = "Assets (Balance Sheet)"

# (keywords, category); first match wins, else the fallback
REVENUE_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("sale", "payment received"), "Sales"),
    (("service",), "Services"),
)
REVENUE_FALLBACK = CATEGORY_OTHER_INCOME
EXPENSE_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("rent", "lease"), "Rent"),
    (("salary", "wage"), "Salaries"),
    (("utility", "electric", "water"), "Utilities"),
    (("supply", "material"), "Supplies"),
)
EXPENSE_FALLBACK = "Other"


@dataclass(frozen=True)
class MonthlyPoint:
    key: str
    """Calendar month, YYYY-MM."""
    label: str
    income: float = 0.0
    expenses: float = 0.0

    @property
    def profit(self) -> float:
        return self.income - self.expenses

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": self.label,
            "monthKey": self.key,
            "income": self.income,
            "expenses": self.expenses,
            "profit": self.profit,
        }


@dataclass(frozen=True)
class CategoryAmount:
    name: str
    amount: float

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "amount": self.amount}


@dataclass(frozen=True)
class FinancialMetrics:
    """
    Derived financial view of a document set.

    Recomputed on every call; monthly_data is chronological and holds at
    most the latest 8 months, categories are ranked by amount (top 6).
    """

    total_revenue: float = 0.0
    total_expenses: float = 0.0
    vat_collected: float = 0.0
    monthly_data: tuple[MonthlyPoint, ...] = ()
    expense_categories: tuple[CategoryAmount, ...] = ()
    revenue_categories: tuple[CategoryAmount, ...] = ()
    recent_transactions: tuple[BankTransaction, ...] = ()
    financial_health_score: int = 0
    document_count: int = 0
    total_documents: int = 0
    pending_documents: int = 0
    average_transaction_value: float = 0.0
    processed_documents: int = 0

    @property
    def net_profit(self) -> float:
        return self.total_revenue - self.total_expenses

    @property
    def profit_margin(self) -> float:
        """Net profit as a percentage of revenue; 0 when there is no revenue."""
        return safe_ratio(self.net_profit, self.total_revenue) * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalRevenue": self.total_revenue,
            "totalExpenses": self.total_expenses,
            "vatCollected": self.vat_collected,
            "monthlyData": [m.to_dict() for m in self.monthly_data],
            "expenseCategories": [c.to_dict() for c in self.expense_categories],
            "revenueCategories": [c.to_dict() for c in self.revenue_categories],
            "recentTransactions": [t.to_dict() for t in self.recent_transactions],
            "financialHealthScore": self.financial_health_score,
            "documentCount": self.document_count,
            "totalDocuments": self.total_documents,
            "pendingDocuments": self.pending_documents,
            "averageTransactionValue": self.average_transaction_value,
        }


def classify_transaction(description: str, keywords: Sequence[tuple[tuple[str, ...], str]], fallback: str) -> str:
    """Case-insensitive keyword match of a bank line description to a category."""
    desc = (description or "").lower()
    for words, category in keywords:
        if any(w in desc for w in words):
            return category
    return fallback


class _Accumulator:
    """Mutable running totals for one aggregation pass."""

    def __init__(self) -> None:
        self.revenue = 0.0
        self.expenses = 0.0
        self.vat = 0.0
        self.transactions: list[BankTransaction] = []
        self.revenue_by_source: dict[str, float] = {}
        self.expense_by_category: dict[str, float] = {}
        self.months: dict[str, list[float]] = {}

    def add_revenue_category(self, name: str, amount: float) -> None:
        self.revenue_by_source[name] = self.revenue_by_source.get(name, 0.0) + amount

    def add_expense_category(self, name: str, amount: float) -> None:
        self.expense_by_category[name] = self.expense_by_category.get(name, 0.0) + amount

    def add_month(self, key: str | None, income: float = 0.0, expenses: float = 0.0) -> None:
        if not key:
            return
        bucket = self.months.setdefault(key, [0.0, 0.0])
        bucket[0] += income
        bucket[1] += expenses


def _add_bank_statement(acc: _Accumulator, data: BankStatementData) -> None:
    for tx in data.transactions:
        acc.transactions.append(tx)
        if tx.credit and tx.credit > 0:
            acc.revenue += tx.credit
            acc.add_revenue_category(classify_transaction(tx.description, REVENUE_KEYWORDS, REVENUE_FALLBACK), tx.credit)
        if tx.debit and tx.debit > 0:
            acc.expenses += tx.debit
            acc.add_expense_category(classify_transaction(tx.description, EXPENSE_KEYWORDS, EXPENSE_FALLBACK), tx.debit)
        acc.add_month(month_key(tx.date), income=tx.credit or 0.0, expenses=tx.debit or 0.0)


def _add_invoice(acc: _Accumulator, doc: Document, data: InvoiceData) -> None:
    amount = data.total_amount
    acc.revenue += amount
    acc.add_revenue_category(data.category or CATEGORY_INVOICES, amount)
    acc.vat += data.vat_amount
    acc.add_month(month_key(data.invoice_date) or doc.created_month, income=amount)


def _add_receipt(acc: _Accumulator, doc: Document, data: ReceiptData) -> None:
    amount = data.total_amount
    acc.expenses += amount
    acc.add_expense_category(data.category or data.merchant_name or CATEGORY_PURCHASES, amount)
    acc.vat += data.vat_amount
    acc.add_month(month_key(data.date) or doc.created_month, expenses=amount)


def _add_profit_loss(acc: _Accumulator, doc: Document, data: ProfitLossData) -> None:
    acc.revenue += data.total_revenue
    acc.expenses += data.total_expenses
    for item in data.revenue_items:
        acc.add_revenue_category(item.description or CATEGORY_OTHER_INCOME, item.amount)
    for item in data.expense_items:
        acc.add_expense_category(item.description or CATEGORY_OTHER_EXPENSES, item.amount)
    acc.add_month(
        month_key(data.date) or doc.created_month,
        income=data.total_revenue,
        expenses=data.total_expenses,
    )


def _add_balance_sheet(acc: _Accumulator, data: BalanceSheetData) -> None:
    if data.total_assets > 0:
        acc.add_revenue_category(CATEGORY_ASSETS, data.total_assets)


def _ranked(categories: dict[str, float]) -> tuple[CategoryAmount, ...]:
    ordered = sorted(categories.items(), key=lambda kv: kv[1], reverse=True)
    return tuple(CategoryAmount(name, finite(amount)) for name, amount in ordered[:MAX_CATEGORIES])


def _monthly(months: dict[str, list[float]]) -> tuple[MonthlyPoint, ...]:
    points = []
    for key in sorted(months)[-MAX_MONTHS:]:
        income, expenses = months[key]
        month_index = int(key[5:7]) - 1
        label = MONTH_LABELS[month_index] if 0 <= month_index < 12 else key
        points.append(MonthlyPoint(key=key, label=label, income=finite(income), expenses=finite(expenses)))
    return tuple(points)


def aggregate_financials(documents: Sequence[Document]) -> FinancialMetrics:
    """
    Reduce a document list into FinancialMetrics.

    Never raises on malformed extracted data: decoding already coerced
    every field. Returns all-zero metrics for an empty list.
    """
    if not documents:
        return FinancialMetrics()

    acc = _Accumulator()
    contributing = [d for d in documents if d.contributes]
    pending = sum(1 for d in documents if d.status in (DocumentStatus.PENDING, DocumentStatus.PROCESSING))

    for doc in contributing:
        data = doc.extracted
        if isinstance(data, BankStatementData):
            _add_bank_statement(acc, data)
        elif isinstance(data, InvoiceData):
            _add_invoice(acc, doc, data)
        elif isinstance(data, ReceiptData):
            _add_receipt(acc, doc, data)
        elif isinstance(data, ProfitLossData):
            _add_profit_loss(acc, doc, data)
        elif isinstance(data, BalanceSheetData):
            _add_balance_sheet(acc, data)

    # Sums of extreme amounts can overflow to inf
    revenue, expenses, vat = finite(acc.revenue), finite(acc.expenses), finite(acc.vat)
    profit_margin = safe_ratio(revenue - expenses, revenue) * 100
    coverage = safe_ratio(len(contributing), len(documents)) * 100
    health = bounded_score(profit_margin * HEALTH_MARGIN_WEIGHT + coverage * HEALTH_COVERAGE_WEIGHT)

    tx_values = [tx.credit or tx.debit or 0.0 for tx in acc.transactions]
    average_tx = safe_ratio(sum(tx_values), len(tx_values))

    monthly = _monthly(acc.months)
    metrics = FinancialMetrics(
        total_revenue=revenue,
        total_expenses=expenses,
        vat_collected=vat,
        monthly_data=monthly,
        expense_categories=_ranked(acc.expense_by_category),
        revenue_categories=_ranked(acc.revenue_by_source),
        recent_transactions=tuple(acc.transactions[:RECENT_TRANSACTIONS]),
        financial_health_score=health,
        document_count=len(documents),
        total_documents=len(documents),
        pending_documents=pending,
        average_transaction_value=average_tx,
        processed_documents=len(contributing),
    )
    logger.debug(
        "financials_aggregated",
        total_revenue=metrics.total_revenue,
        total_expenses=metrics.total_expenses,
        months=len(monthly),
        contributing_documents=len(contributing),
        health_score=health,
    )
    return metrics
