"""
Pytest fixtures for credibility engine tests.

A fixed ``now`` keeps every time-dependent check deterministic; builders
produce raw document/proof rows in the document-store shape and decode
them through the real decoder.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def iso(moment: datetime) -> str:
    return moment.isoformat()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_row():
    """Build a raw document row; created_at defaults to ``days_ago`` before NOW."""
    counter = {"n": 0}

    def _make(
        document_type: str = "invoice",
        extracted_data: Any = None,
        status: str = "processed",
        days_ago: float = 10,
        file_name: str | None = None,
        file_size: float | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        counter["n"] += 1
        row = {
            "id": f"doc-{counter['n']}",
            "document_type": document_type,
            "status": status,
            "extracted_data": extracted_data,
            "file_name": file_name or f"{document_type}-{counter['n']}.pdf",
            "file_size": file_size,
            "created_at": iso(NOW - timedelta(days=days_ago)),
        }
        row.update(extra)
        return row

    return _make


@pytest.fixture
def make_doc(make_row):
    """Build a decoded Document (same arguments as make_row)."""
    from backend_credibility.documents import decode_document

    def _make(*args: Any, **kwargs: Any):
        return decode_document(make_row(*args, **kwargs))

    return _make


@pytest.fixture
def invoice(make_doc):
    """Processed invoice with a total and optional invoice_date."""

    def _make(total: float, invoice_date: str | None = None, vat: float = 0, **kwargs: Any):
        data: dict[str, Any] = {"type": "invoice", "total_amount": total, "vat_amount": vat}
        if invoice_date:
            data["invoice_date"] = invoice_date
        return make_doc("invoice", data, **kwargs)

    return _make


@pytest.fixture
def receipt(make_doc):
    def _make(total: float, date: str | None = None, **kwargs: Any):
        data: dict[str, Any] = {"type": "receipt", "total_amount": total}
        if date:
            data["date"] = date
        return make_doc("receipt", data, **kwargs)

    return _make


@pytest.fixture
def bank_statement(make_doc):
    """Processed bank statement; transactions are (date, description, credit, debit) tuples."""

    def _make(transactions=(), total_credits: float = 0, total_debits: float = 0, **kwargs: Any):
        data = {
            "type": "bank_statement",
            "bank_name": "Nabil Bank",
            "transactions": [
                {"date": d, "description": desc, "credit": cr, "debit": dr, "balance": 0}
                for d, desc, cr, dr in transactions
            ],
            "total_credits": total_credits,
            "total_debits": total_debits,
        }
        return make_doc("bank_statement", data, **kwargs)

    return _make


@pytest.fixture
def make_proof():
    from backend_credibility.documents import decode_proof

    def _make(status: str = "active", tx_hash: str | None = "0xabc", expires_in_days: float | None = 30):
        row: dict[str, Any] = {
            "id": "proof-1",
            "proof_hash": "hash-1",
            "tx_hash": tx_hash,
            "status": status,
            "included_data": ["totalScore"],
        }
        if expires_in_days is not None:
            row["expires_at"] = iso(NOW + timedelta(days=expires_in_days))
        return decode_proof(row)

    return _make


@pytest.fixture
def client():
    """FastAPI TestClient over the stateless scoring app."""
    from fastapi.testclient import TestClient

    from backend_credibility.api_server.server import app

    return TestClient(app)
