"""Chat-advisor context built from a credibility score."""

from backend_credibility.advisory.context import build_advisory_context, has_vat_documents

__all__ = ["build_advisory_context", "has_vat_documents"]
