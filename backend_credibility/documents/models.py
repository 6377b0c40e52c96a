"""
Data models for the document corpus consumed by the scoring engine.

Documents arrive from the document store with an untyped extracted_data
blob produced by the extraction service. The blob is decoded into one of
the frozen variants below (a tagged union on ``kind``); anything that is
not a mapping decodes to EmptyData, which contributes nothing.

Verification proofs are read-only references; only their status, expiry
and tx_hash matter to the engine.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class DocumentType(str, Enum):
    INVOICE = "invoice"
    RECEIPT = "receipt"
    BANK_STATEMENT = "bank_statement"
    PROFIT_LOSS = "profit_loss"
    BALANCE_SHEET = "balance_sheet"
    TAX_DOCUMENT = "tax_document"
    MANUAL_ENTRY = "manual_entry"
    OTHER = "other"


class DocumentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PROCESSED = "processed"
    ERROR = "error"


class ProofStatus(str, Enum):
    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"


# Upload flow marks manual entries through file_type / file_path rather than document_type
MANUAL_FILE_TYPE = "manual_entry"
MANUAL_PATH_PREFIXES = ("manual/", "manual://")


@dataclass(frozen=True)
class LineItem:
    description: str = ""
    quantity: float = 0.0
    amount: float = 0.0


@dataclass(frozen=True)
class BankTransaction:
    """One bank statement line. debit/credit are None when absent or zero."""

    date: str = ""
    description: str = ""
    debit: float | None = None
    credit: float | None = None
    balance: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "description": self.description,
            "debit": self.debit,
            "credit": self.credit,
            "balance": self.balance,
        }


@dataclass(frozen=True)
class ExtractedData:
    """
    Fields every extracted-data variant can carry.

    Date fields are kept as the raw strings the extraction service
    returned; parsing happens where a date is actually compared.
    """

    kind: str = "empty"
    date: str | None = None
    invoice_date: str | None = None
    transaction_date: str | None = None
    total_amount: float = 0.0
    category: str | None = None

    @property
    def document_date(self) -> str | None:
        """First present of date, invoice_date, transaction_date."""
        return self.date or self.invoice_date or self.transaction_date

    @property
    def primary_amount(self) -> float:
        return self.total_amount

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class EmptyData(ExtractedData):
    """Zero variant: missing or malformed extracted_data."""

    kind: str = "empty"


@dataclass(frozen=True)
class InvoiceData(ExtractedData):
    kind: str = "invoice"
    invoice_number: str | None = None
    vendor_name: str | None = None
    items: tuple[LineItem, ...] = ()
    subtotal: float = 0.0
    vat_amount: float = 0.0


@dataclass(frozen=True)
class ReceiptData(ExtractedData):
    kind: str = "receipt"
    receipt_number: str | None = None
    merchant_name: str | None = None
    items: tuple[LineItem, ...] = ()
    subtotal: float = 0.0
    vat_amount: float = 0.0


@dataclass(frozen=True)
class BankStatementData(ExtractedData):
    kind: str = "bank_statement"
    bank_name: str | None = None
    opening_balance: float = 0.0
    closing_balance: float = 0.0
    transactions: tuple[BankTransaction, ...] = ()
    total_credits: float = 0.0
    total_debits: float = 0.0


@dataclass(frozen=True)
class ProfitLossData(ExtractedData):
    kind: str = "profit_loss"
    total_revenue: float = 0.0
    total_expenses: float = 0.0
    revenue_items: tuple[LineItem, ...] = ()
    expense_items: tuple[LineItem, ...] = ()

    @property
    def primary_amount(self) -> float:
        return self.total_amount or self.total_revenue


@dataclass(frozen=True)
class BalanceSheetData(ExtractedData):
    kind: str = "balance_sheet"
    total_assets: float = 0.0
    total_liabilities: float = 0.0
    total_equity: float = 0.0


@dataclass(frozen=True)
class GenericData(ExtractedData):
    """tax_document, manual_entry and other: only the shared fields are read."""

    kind: str = "other"
    total_revenue: float = 0.0

    @property
    def primary_amount(self) -> float:
        return self.total_amount or self.total_revenue


@dataclass(frozen=True)
class Document:
    """
    One uploaded financial document.

    Only processed documents with decodable extracted data contribute
    to financial metrics; the rest still count towards coverage ratios.
    """

    id: str
    document_type: DocumentType
    status: DocumentStatus
    extracted: ExtractedData = field(default_factory=EmptyData)
    file_name: str = ""
    file_size: float | None = None
    file_type: str | None = None
    file_path: str | None = None
    created_at: datetime | None = None

    @property
    def contributes(self) -> bool:
        return self.status is DocumentStatus.PROCESSED and not isinstance(self.extracted, EmptyData)

    @property
    def is_processed(self) -> bool:
        return self.status is DocumentStatus.PROCESSED

    @property
    def is_manual(self) -> bool:
        if self.document_type is DocumentType.MANUAL_ENTRY:
            return True
        if (self.file_type or "").lower() == MANUAL_FILE_TYPE:
            return True
        return (self.file_path or "").startswith(MANUAL_PATH_PREFIXES)

    @property
    def created_month(self) -> str | None:
        """YYYY-MM of the upload timestamp; None if unknown."""
        if self.created_at is None:
            return None
        return f"{self.created_at.year:04d}-{self.created_at.month:02d}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "document_type": self.document_type.value,
            "status": self.status.value,
            "extracted_data": None if isinstance(self.extracted, EmptyData) else self.extracted.to_dict(),
            "file_name": self.file_name,
            "file_size": self.file_size,
            "file_type": self.file_type,
            "file_path": self.file_path,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class VerificationProof:
    """
    Blockchain-anchored verification proof (read-only reference).

    status is the stored value; effective_status() derives expiry from
    expires_at the same way the proof service reports it.
    """

    id: str
    proof_hash: str = ""
    tx_hash: str | None = None
    status: ProofStatus = ProofStatus.ACTIVE
    included_data: tuple[str, ...] = ()
    expires_at: datetime | None = None

    def effective_status(self, now: datetime) -> ProofStatus:
        if self.status is ProofStatus.ACTIVE and self.expires_at is not None and self.expires_at < now:
            return ProofStatus.EXPIRED
        return self.status

    def is_active(self, now: datetime) -> bool:
        return self.effective_status(now) is ProofStatus.ACTIVE

    def is_anchored(self, now: datetime) -> bool:
        """Active and carrying an on-chain transaction hash."""
        return self.is_active(now) and bool(self.tx_hash)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "proof_hash": self.proof_hash,
            "tx_hash": self.tx_hash,
            "status": self.status.value,
            "included_data": list(self.included_data),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }
