"""
Tests for the evidence quality layer.
"""

from __future__ import annotations


def _codes(score):
    return {f.code for f in score.flags}


def test_no_documents_is_critical():
    """Empty corpus: score 0 and exactly one critical NO_DOCUMENTS flag."""
    from backend_credibility.scoring import FlagType, score_evidence_quality

    result = score_evidence_quality([])
    assert result.score == 0
    assert len(result.flags) == 1
    assert result.flags[0].code == "NO_DOCUMENTS"
    assert result.flags[0].type is FlagType.CRITICAL
    assert result.flags[0].impact == 100


def test_bank_statements_are_fully_backed(bank_statement):
    from backend_credibility.scoring import score_evidence_quality

    docs = [bank_statement(days_ago=10), bank_statement(days_ago=40)]
    result = score_evidence_quality(docs)
    assert result.document_backed_ratio == 100
    assert result.consistency_score == 80
    assert round(result.continuity_score, 2) == 33.33
    assert result.metadata_score == 100
    # 100*0.6 + 80*0.2 + 33.3*0.15 + 100*0.05
    assert result.score == 86
    assert "LIMITED_HISTORY" in _codes(result)


def test_high_manual_ratio(make_doc, invoice):
    """Manual entries weigh 0.5 and trigger a warning above half the corpus."""
    from backend_credibility.scoring import score_evidence_quality

    docs = [invoice(1000)] + [make_doc("manual_entry", {"total_amount": 100}) for _ in range(3)]
    result = score_evidence_quality(docs)
    # (2 + 3*0.5) / (4*3) * 100
    assert round(result.document_backed_ratio, 2) == 29.17
    assert "HIGH_MANUAL_RATIO" in _codes(result)
    assert result.issue_count == 1


def test_manual_marker_in_file_path_counts(invoice):
    from backend_credibility.scoring import score_evidence_quality

    docs = [invoice(1000, file_path="manual/1.json"), invoice(1000, file_path="manual/2.json")]
    assert "HIGH_MANUAL_RATIO" in _codes(score_evidence_quality(docs))


def test_duplicate_file_names(invoice):
    from backend_credibility.scoring import score_evidence_quality

    docs = [invoice(1000, file_name="INV-1.pdf"), invoice(1000, file_name="inv-1.pdf")]
    result = score_evidence_quality(docs)
    assert result.consistency_score == 60
    assert "DUPLICATE_FILES" in _codes(result)


def test_one_duplicate_in_ten_is_tolerated(invoice):
    """9 unique names out of 10 is not below the 90% threshold."""
    from backend_credibility.scoring import score_evidence_quality

    names = [f"inv-{i}.pdf" for i in range(9)] + ["inv-0.pdf"]
    result = score_evidence_quality([invoice(1000, file_name=n) for n in names])
    assert "DUPLICATE_FILES" not in _codes(result)


def test_continuity_caps_at_six_months(invoice):
    from backend_credibility.scoring import score_evidence_quality

    docs = [invoice(1000, days_ago=5 + 30 * i) for i in range(8)]
    result = score_evidence_quality(docs)
    assert result.continuity_score == 100
    assert "LIMITED_HISTORY" not in _codes(result)


def test_processing_coverage(make_doc, invoice):
    from backend_credibility.scoring import score_evidence_quality

    docs = [invoice(1000), make_doc("invoice", {"total_amount": 1}, status="pending")]
    assert score_evidence_quality(docs).metadata_score == 50


def test_to_dict_keys(invoice):
    from backend_credibility.scoring import score_evidence_quality

    payload = score_evidence_quality([invoice(1000)]).to_dict()
    assert set(payload) == {
        "score",
        "documentBackedRatio",
        "consistencyScore",
        "continuityScore",
        "metadataScore",
        "flags",
    }
