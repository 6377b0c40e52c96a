"""
Application-level exceptions.

The scoring engine itself never raises for data quality problems; these
cover caller errors at the outer edges (malformed snapshot payloads).
"""

from __future__ import annotations


class CredibilityError(Exception):
    """Base class for Backend Credibility errors."""


class InvalidSnapshotError(CredibilityError):
    """Raised when a document/proof snapshot is not a list of mappings."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")
