"""
Backend Credibility: SME credibility scoring engine.

Derives a multi-layer trust score for small and medium businesses from
their extracted financial documents and verification proofs: evidence
quality, stability and growth, compliance readiness, anomaly detection,
cross-source reconciliation and trust tier progression.
"""

__version__ = "0.1.0"
