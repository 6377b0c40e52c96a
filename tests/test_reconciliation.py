"""
Tests for cross-source reconciliation.
"""

from __future__ import annotations


def test_no_bank_statement_passes(invoice, receipt):
    """Comparisons need both sides positive."""
    from backend_credibility.scoring import reconcile_sources

    result = reconcile_sources([invoice(100_000), receipt(50_000)])
    assert result.passed
    assert result.reconciliation_score == 100
    assert result.mismatches == ()


def test_invoice_vs_bank_credits(invoice, bank_statement):
    from backend_credibility.scoring import reconcile_sources

    result = reconcile_sources([invoice(100_000), bank_statement(total_credits=60_000)])
    assert not result.passed
    assert result.reconciliation_score == 75
    assert result.mismatches == (
        "Invoice total (NPR 100,000) differs significantly from bank deposits (NPR 60,000)",
    )


def test_both_pairs_mismatch(invoice, receipt, bank_statement):
    from backend_credibility.scoring import reconcile_sources

    docs = [invoice(100_000), receipt(10_000), bank_statement(total_credits=20_000, total_debits=50_000)]
    result = reconcile_sources(docs)
    assert result.reconciliation_score == 50
    assert len(result.mismatches) == 2
    assert result.mismatches[1].startswith("Receipt total (NPR 10,000)")
    assert result.mismatches[1].endswith("bank payments (NPR 50,000)")


def test_thirty_percent_is_tolerated(invoice, bank_statement):
    from backend_credibility.scoring import reconcile_sources

    result = reconcile_sources([invoice(100_000), bank_statement(total_credits=70_000)])
    assert result.passed


def test_unprocessed_documents_are_ignored(make_doc, bank_statement):
    from backend_credibility.scoring import reconcile_sources

    docs = [make_doc("invoice", {"total_amount": 500_000}, status="processing"), bank_statement(total_credits=1_000)]
    assert reconcile_sources(docs).passed


def test_relative_discrepancy():
    from backend_credibility.scoring.reconciliation import relative_discrepancy

    assert relative_discrepancy(0, 100) == 0
    assert relative_discrepancy(100, -5) == 0
    assert relative_discrepancy(50, 100) == 0.5
    assert relative_discrepancy(100, 50) == 0.5


def test_to_dict(invoice):
    from backend_credibility.scoring import reconcile_sources

    assert reconcile_sources([invoice(1)]).to_dict() == {
        "passed": True,
        "mismatches": [],
        "reconciliationScore": 100,
    }
