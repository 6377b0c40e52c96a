"""Document corpus models and the total extracted-data decoder."""

from backend_credibility.documents.decoder import (
    decode_document,
    decode_extracted_data,
    decode_proof,
    decode_snapshot,
    month_key,
    parse_timestamp,
)
from backend_credibility.documents.models import (
    BalanceSheetData,
    BankStatementData,
    BankTransaction,
    Document,
    DocumentStatus,
    DocumentType,
    EmptyData,
    ExtractedData,
    GenericData,
    InvoiceData,
    LineItem,
    ProfitLossData,
    ProofStatus,
    ReceiptData,
    VerificationProof,
)

__all__ = [
    "BalanceSheetData",
    "BankStatementData",
    "BankTransaction",
    "Document",
    "DocumentStatus",
    "DocumentType",
    "EmptyData",
    "ExtractedData",
    "GenericData",
    "InvoiceData",
    "LineItem",
    "ProfitLossData",
    "ProofStatus",
    "ReceiptData",
    "VerificationProof",
    "decode_document",
    "decode_extracted_data",
    "decode_proof",
    "decode_snapshot",
    "month_key",
    "parse_timestamp",
]
