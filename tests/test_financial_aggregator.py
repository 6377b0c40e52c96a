"""
Tests for the financial aggregator (documents -> FinancialMetrics).
"""

from __future__ import annotations


def test_empty_corpus_is_all_zero():
    from backend_credibility.scoring import aggregate_financials

    metrics = aggregate_financials([])
    assert metrics.total_revenue == 0
    assert metrics.total_expenses == 0
    assert metrics.monthly_data == ()
    assert metrics.financial_health_score == 0
    assert metrics.profit_margin == 0


def test_invoices_and_receipts(invoice, receipt):
    """Invoices add revenue and VAT; receipts add expenses and VAT."""
    from backend_credibility.scoring import aggregate_financials

    docs = [
        invoice(10000, "2024-04-10", vat=1300),
        invoice(20000, "2024-05-10", vat=2600),
        receipt(6000, "2024-05-12"),
    ]
    metrics = aggregate_financials(docs)
    assert metrics.total_revenue == 30000
    assert metrics.total_expenses == 6000
    assert metrics.vat_collected == 3900
    assert metrics.net_profit == 24000
    assert metrics.profit_margin == 80
    assert [m.key for m in metrics.monthly_data] == ["2024-04", "2024-05"]
    assert metrics.monthly_data[1].income == 20000
    assert metrics.monthly_data[1].expenses == 6000
    assert metrics.monthly_data[1].label == "May"
    # 80 * 0.6 + 100 * 0.4
    assert metrics.financial_health_score == 88


def test_bank_statement_lines_are_classified(bank_statement):
    from backend_credibility.scoring import aggregate_financials

    doc = bank_statement(
        [
            ("2024-05-01", "Sale to Himal Traders", 50000, 0),
            ("2024-05-02", "Service fee income", 10000, 0),
            ("2024-05-03", "Office rent May", 0, 15000),
            ("2024-05-04", "Staff salary", 0, 20000),
            ("2024-05-05", "Misc transfer", 0, 1000),
        ]
    )
    metrics = aggregate_financials([doc])
    assert metrics.total_revenue == 60000
    assert metrics.total_expenses == 36000
    revenue = {c.name: c.amount for c in metrics.revenue_categories}
    expenses = {c.name: c.amount for c in metrics.expense_categories}
    assert revenue == {"Sales": 50000, "Services": 10000}
    assert expenses == {"Salaries": 20000, "Rent": 15000, "Other": 1000}
    assert metrics.expense_categories[0].name == "Salaries"
    assert len(metrics.recent_transactions) == 5
    # (50000 + 10000 + 15000 + 20000 + 1000) / 5
    assert metrics.average_transaction_value == 19200


def test_non_contributing_documents_only_count(make_doc, invoice):
    """Pending and empty documents lower coverage but add no money."""
    from backend_credibility.scoring import aggregate_financials

    docs = [
        invoice(10000, "2024-05-01"),
        make_doc("invoice", {"total_amount": 999}, status="pending"),
        make_doc("receipt", None),
    ]
    metrics = aggregate_financials(docs)
    assert metrics.total_revenue == 10000
    assert metrics.document_count == 3
    assert metrics.pending_documents == 1
    assert metrics.processed_documents == 1


def test_balance_sheet_is_display_only(make_doc):
    from backend_credibility.scoring import aggregate_financials

    metrics = aggregate_financials([make_doc("balance_sheet", {"total_assets": 750000})])
    assert metrics.total_revenue == 0
    assert metrics.revenue_categories[0].name == "Assets (Balance Sheet)"
    assert metrics.revenue_categories[0].amount == 750000


def test_profit_loss_items(make_doc):
    from backend_credibility.scoring import aggregate_financials

    doc = make_doc(
        "profit_loss",
        {
            "date": "2024-03-31",
            "total_revenue": 90000,
            "total_expenses": 30000,
            "revenue_items": [{"description": "Retail", "amount": 90000}],
            "expense_items": [{"description": "", "amount": 30000}],
        },
    )
    metrics = aggregate_financials([doc])
    assert metrics.total_revenue == 90000
    assert metrics.total_expenses == 30000
    assert metrics.revenue_categories[0].name == "Retail"
    assert metrics.expense_categories[0].name == "Other Expenses"
    assert metrics.monthly_data[0].key == "2024-03"


def test_monthly_data_keeps_latest_eight(invoice):
    from backend_credibility.scoring import aggregate_financials

    docs = [invoice(1000, f"2023-{m:02d}-15") for m in range(1, 13)]
    metrics = aggregate_financials(docs)
    assert len(metrics.monthly_data) == 8
    assert metrics.monthly_data[0].key == "2023-05"
    assert metrics.monthly_data[-1].key == "2023-12"


def test_invoice_without_date_uses_upload_month(invoice):
    from backend_credibility.scoring import aggregate_financials

    # NOW is 2024-06-15; 10 days earlier is still June
    metrics = aggregate_financials([invoice(5000)])
    assert metrics.monthly_data[0].key == "2024-06"


def test_loss_clamps_health_to_zero(invoice, receipt):
    from backend_credibility.scoring import aggregate_financials

    metrics = aggregate_financials([invoice(1000, "2024-05-01"), receipt(10000, "2024-05-02")])
    assert metrics.profit_margin == -900
    assert metrics.financial_health_score == 0


def test_to_dict_is_camel_case(invoice):
    from backend_credibility.scoring import aggregate_financials

    payload = aggregate_financials([invoice(1000, "2024-05-01")]).to_dict()
    assert payload["totalRevenue"] == 1000
    assert payload["monthlyData"][0] == {
        "month": "May",
        "monthKey": "2024-05",
        "income": 1000,
        "expenses": 0,
        "profit": 1000,
    }


def test_overflowing_sums_collapse_to_zero(invoice):
    """Amounts that sum past the float range never leak inf into the metrics."""
    import math

    from backend_credibility.scoring import aggregate_financials

    docs = [invoice(1.7e308, "2024-05-10", vat=1.7e308), invoice(1.7e308, "2024-05-20", vat=1.7e308)]
    metrics = aggregate_financials(docs)
    assert metrics.total_revenue == 0
    assert metrics.vat_collected == 0
    assert [(m.key, m.income) for m in metrics.monthly_data] == [("2024-05", 0)]
    assert all(math.isfinite(c.amount) for c in metrics.revenue_categories)
    assert 0 <= metrics.financial_health_score <= 100


def test_out_of_range_transaction_dates(bank_statement):
    """An offset pushing a date past year 9999 falls back to the literal month."""
    from backend_credibility.scoring import aggregate_financials

    doc = bank_statement(
        [
            ("9999-12-31T23:59:59-01:00", "Sale", 5000, None),
            ("0001-01-01T00:00:00+05:45", "Rent", None, 2000),
        ]
    )
    metrics = aggregate_financials([doc])
    assert metrics.total_revenue == 5000
    assert metrics.total_expenses == 2000
    assert [m.key for m in metrics.monthly_data] == ["0001-01", "9999-12"]
    assert [m.label for m in metrics.monthly_data] == ["Jan", "Dec"]
