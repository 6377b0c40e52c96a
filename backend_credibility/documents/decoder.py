"""
Document snapshot decoder: raw store rows to typed Document / VerificationProof.

Decoding of extracted_data is total: every input maps to exactly one
variant. Malformed fields coerce to zero / None rather than raising, so
the scoring path never sees a partial parse. Only the snapshot envelope
(not a list, rows not mappings) is a caller error.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any, Callable

from backend_credibility.core.exceptions import InvalidSnapshotError
from backend_credibility.core.numeric import to_number, to_optional_number
from backend_credibility.credibility_logging import get_logger
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

logger = get_logger(__name__)

_DOCUMENT_TYPES = {t.value for t in DocumentType}
_MONTH_PREFIX = re.compile(r"^(\d{4})-(\d{2})")
_ISO_PARTS = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}(?:[T ]\d{2}:\d{2}(?::\d{2})?)?)"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<offset>[+-]\d{2}(?::?\d{2})?)?$"
)


def _normalize_iso(text: str) -> str:
    """Pad/truncate fractions to microseconds and spell offsets as +HH:MM."""
    match = _ISO_PARTS.match(text)
    if match is None:
        return text
    out = match.group("base")
    fraction = match.group("fraction")
    if fraction:
        out += "." + fraction[:6].ljust(6, "0")
    offset = match.group("offset")
    if offset:
        digits = offset[1:].replace(":", "")
        out += f"{offset[0]}{digits[:2]}:{digits[2:4] or '00'}"
    return out


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse an ISO-8601 timestamp or date into an aware UTC datetime.

    Naive values are treated as UTC. Returns None for anything unparseable,
    including offsets that push the instant outside the representable range.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(_normalize_iso(text))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        return None


def month_key(value: Any) -> str | None:
    """YYYY-MM for a date-like value; falls back to a literal YYYY-MM prefix."""
    parsed = parse_timestamp(value)
    if parsed is not None:
        return f"{parsed.year:04d}-{parsed.month:02d}"
    if isinstance(value, str):
        match = _MONTH_PREFIX.match(value.strip())
        if match and 1 <= int(match.group(2)) <= 12:
            return f"{match.group(1)}-{match.group(2)}"
    return None


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _rows(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [row for row in value if isinstance(row, Mapping)]


def _line_items(value: Any) -> tuple[LineItem, ...]:
    return tuple(
        LineItem(
            description=_text(row.get("description")) or "",
            quantity=to_number(row.get("quantity")),
            amount=to_number(row.get("amount")),
        )
        for row in _rows(value)
    )


def _transactions(value: Any) -> tuple[BankTransaction, ...]:
    out = []
    for row in _rows(value):
        debit = to_optional_number(row.get("debit"))
        credit = to_optional_number(row.get("credit"))
        out.append(
            BankTransaction(
                date=_text(row.get("date")) or "",
                description=_text(row.get("description")) or "",
                debit=debit or None,
                credit=credit or None,
                balance=to_number(row.get("balance")),
            )
        )
    return tuple(out)


def _common(raw: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "date": _text(raw.get("date")),
        "invoice_date": _text(raw.get("invoice_date")),
        "transaction_date": _text(raw.get("transaction_date")),
        "total_amount": to_number(raw.get("total_amount")),
        "category": _text(raw.get("category")),
    }


def _decode_invoice(raw: Mapping[str, Any]) -> ExtractedData:
    return InvoiceData(
        **_common(raw),
        invoice_number=_text(raw.get("invoice_number")),
        vendor_name=_text(raw.get("vendor_name")),
        items=_line_items(raw.get("items")),
        subtotal=to_number(raw.get("subtotal")),
        vat_amount=to_number(raw.get("vat_amount")),
    )


def _decode_receipt(raw: Mapping[str, Any]) -> ExtractedData:
    return ReceiptData(
        **_common(raw),
        receipt_number=_text(raw.get("receipt_number")),
        merchant_name=_text(raw.get("merchant_name")),
        items=_line_items(raw.get("items")),
        subtotal=to_number(raw.get("subtotal")),
        vat_amount=to_number(raw.get("vat_amount")),
    )


def _decode_bank_statement(raw: Mapping[str, Any]) -> ExtractedData:
    return BankStatementData(
        **_common(raw),
        bank_name=_text(raw.get("bank_name")),
        opening_balance=to_number(raw.get("opening_balance")),
        closing_balance=to_number(raw.get("closing_balance")),
        transactions=_transactions(raw.get("transactions")),
        total_credits=to_number(raw.get("total_credits")),
        total_debits=to_number(raw.get("total_debits")),
    )


def _decode_profit_loss(raw: Mapping[str, Any]) -> ExtractedData:
    return ProfitLossData(
        **_common(raw),
        total_revenue=to_number(raw.get("total_revenue")),
        total_expenses=to_number(raw.get("total_expenses")),
        revenue_items=_line_items(raw.get("revenue_items")),
        expense_items=_line_items(raw.get("expense_items")),
    )


def _decode_balance_sheet(raw: Mapping[str, Any]) -> ExtractedData:
    return BalanceSheetData(
        **_common(raw),
        total_assets=to_number(raw.get("total_assets")),
        total_liabilities=to_number(raw.get("total_liabilities")),
        total_equity=to_number(raw.get("total_equity")),
    )


def _decode_generic(raw: Mapping[str, Any], kind: str) -> ExtractedData:
    return GenericData(**_common(raw), kind=kind, total_revenue=to_number(raw.get("total_revenue")))


_DECODERS: dict[str, Callable[[Mapping[str, Any]], ExtractedData]] = {
    DocumentType.INVOICE.value: _decode_invoice,
    DocumentType.RECEIPT.value: _decode_receipt,
    DocumentType.BANK_STATEMENT.value: _decode_bank_statement,
    DocumentType.PROFIT_LOSS.value: _decode_profit_loss,
    DocumentType.BALANCE_SHEET.value: _decode_balance_sheet,
}


def decode_extracted_data(raw: Any, document_type: DocumentType | str) -> ExtractedData:
    """
    Decode an extracted_data blob into its variant.

    The blob's own ``type`` tag wins over the document's stored type when
    it names a known document type. Non-mapping input yields EmptyData.
    """
    if not isinstance(raw, Mapping):
        return EmptyData()
    fallback = document_type.value if isinstance(document_type, DocumentType) else str(document_type)
    tag = raw.get("type")
    kind = tag if isinstance(tag, str) and tag in _DOCUMENT_TYPES else fallback
    if kind not in _DOCUMENT_TYPES:
        kind = DocumentType.OTHER.value
    decoder = _DECODERS.get(kind)
    if decoder is None:
        return _decode_generic(raw, kind)
    return decoder(raw)


def _enum_value(enum_cls: Any, value: Any, default: Any) -> Any:
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return default
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        return default


def decode_document(raw: Mapping[str, Any]) -> Document:
    """Decode one document row. Unknown type -> other; unknown status -> pending."""
    document_type = _enum_value(DocumentType, raw.get("document_type"), DocumentType.OTHER)
    status = _enum_value(DocumentStatus, raw.get("status"), DocumentStatus.PENDING)
    return Document(
        id=_text(raw.get("id")) or "",
        document_type=document_type,
        status=status,
        extracted=decode_extracted_data(raw.get("extracted_data"), document_type),
        file_name=_text(raw.get("file_name")) or "",
        file_size=to_optional_number(raw.get("file_size")),
        file_type=_text(raw.get("file_type")),
        file_path=_text(raw.get("file_path")),
        created_at=parse_timestamp(raw.get("created_at")),
    )


def decode_proof(raw: Mapping[str, Any]) -> VerificationProof:
    """Decode one verification proof row. Unknown status -> revoked (never counts)."""
    included = raw.get("included_data")
    return VerificationProof(
        id=_text(raw.get("id")) or "",
        proof_hash=_text(raw.get("proof_hash")) or "",
        tx_hash=_text(raw.get("tx_hash")),
        status=_enum_value(ProofStatus, raw.get("status"), ProofStatus.REVOKED),
        included_data=tuple(str(x) for x in included) if isinstance(included, list) else (),
        expires_at=parse_timestamp(raw.get("expires_at")),
    )


def _decode_rows(field: str, rows: Any, decode: Callable[[Mapping[str, Any]], Any]) -> list[Any]:
    if rows is None:
        return []
    if not isinstance(rows, (list, tuple)):
        raise InvalidSnapshotError(field, f"expected a list, got {type(rows).__name__}")
    out = []
    for i, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise InvalidSnapshotError(f"{field}[{i}]", f"expected an object, got {type(row).__name__}")
        out.append(decode(row))
    return out


def decode_snapshot(
    documents: Any,
    proofs: Any = None,
) -> tuple[list[Document], list[VerificationProof]]:
    """
    Decode a full business snapshot.

    Raises InvalidSnapshotError when the envelope is malformed. Field-level
    problems inside a row never raise.
    """
    docs = _decode_rows("documents", documents, decode_document)
    decoded_proofs = _decode_rows("proofs", proofs, decode_proof)
    logger.debug(
        "snapshot_decoded",
        document_count=len(docs),
        proof_count=len(decoded_proofs),
        empty_extracted=sum(1 for d in docs if isinstance(d.extracted, EmptyData)),
    )
    return docs, decoded_proofs
