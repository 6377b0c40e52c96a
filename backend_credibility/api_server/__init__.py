"""
API server package: HTTP interface to the scoring engine.

Accepts document/proof snapshots, returns credibility scores and
marketplace eligibility. Delegates all computation to the scoring layer.
"""
