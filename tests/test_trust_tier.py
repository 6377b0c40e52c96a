"""
Tests for the trust tier engine: cascade selection, checklists, progress
and verification strength.
"""

from __future__ import annotations

import pytest


def _signals(**overrides):
    from backend_credibility.scoring.trust_tier import TierSignals

    values = {
        "processed_bank_statements": 0,
        "processed_invoices": 0,
        "processed_backed_documents": 0,
        "months_with_data": 0,
        "active_proofs": 0,
        "anchored_proofs": 0,
        "critical_anomalies": 0,
        "high_anomalies": 0,
        "evidence_score": 0,
        "reconciliation_score": 100,
        "antifraud_score": 100,
    }
    values.update(overrides)
    return TierSignals(**values)


def _alert(severity):
    from backend_credibility.scoring import AnomalyAlert, AnomalyCategory, AnomalySeverity, AnomalyType

    return AnomalyAlert(
        severity=AnomalySeverity(severity),
        type=AnomalyType.PATTERN_ANOMALY,
        category=AnomalyCategory.BEHAVIORAL,
        description="",
        data_points=(),
        confidence_reduction=0,
        recommendation="",
        detection_method="",
    )


# --- Cascade ---


def test_self_declared_by_default():
    from backend_credibility.scoring.trust_tier import TrustTier, resolve_tier

    assert resolve_tier(_signals()) is TrustTier.SELF_DECLARED


def test_document_backed_needs_evidence_40():
    from backend_credibility.scoring.trust_tier import TrustTier, resolve_tier

    assert resolve_tier(_signals(processed_backed_documents=3, evidence_score=40)) is TrustTier.DOCUMENT_BACKED
    assert resolve_tier(_signals(processed_backed_documents=3, evidence_score=39)) is TrustTier.SELF_DECLARED


def test_bank_supported_gates():
    from backend_credibility.scoring.trust_tier import TrustTier, resolve_tier

    base = {"processed_bank_statements": 1, "processed_backed_documents": 1}
    assert resolve_tier(_signals(**base, evidence_score=60, reconciliation_score=70)) is TrustTier.BANK_SUPPORTED
    # reconciliation below 70 falls through to Document-Backed
    assert resolve_tier(_signals(**base, evidence_score=60, reconciliation_score=50)) is TrustTier.DOCUMENT_BACKED
    assert resolve_tier(_signals(**base, evidence_score=59, reconciliation_score=100)) is TrustTier.DOCUMENT_BACKED


def test_anchored_proof_wins():
    """An anchored proof selects Verified regardless of other signals."""
    from backend_credibility.scoring.trust_tier import TrustTier, resolve_tier

    assert resolve_tier(_signals(anchored_proofs=1, active_proofs=1)) is TrustTier.VERIFIED


def test_proof_without_tx_hash_is_not_verified(bank_statement, make_proof, now):
    from backend_credibility.scoring import TrustTier, evaluate_trust_tier

    docs = [bank_statement()]
    info = evaluate_trust_tier(docs, [make_proof(tx_hash=None)], 65, [], 100, now)
    assert info.tier is TrustTier.BANK_SUPPORTED
    info = evaluate_trust_tier(docs, [make_proof(expires_in_days=-1)], 65, [], 100, now)
    assert info.tier is TrustTier.BANK_SUPPORTED


# --- Checklists and progress ---


def test_self_declared_progress():
    from backend_credibility.scoring.trust_tier import TrustTier, build_requirements, tier_progress

    reqs = build_requirements(TrustTier.SELF_DECLARED, _signals(months_with_data=1, evidence_score=20))
    assert [r.id for r in reqs] == ["account_created", "first_document", "three_months_data", "evidence_score_40"]
    # 10 + 0 + 30/3 + 30*0.5
    assert tier_progress(reqs) == 35


def test_document_backed_progress():
    from backend_credibility.scoring.trust_tier import TrustTier, build_requirements, tier_progress

    signals = _signals(processed_invoices=2, processed_backed_documents=2, evidence_score=45)
    reqs = build_requirements(TrustTier.DOCUMENT_BACKED, signals)
    assert [r.id for r in reqs] == ["invoices_uploaded", "bank_statement", "reconciliation_pass", "evidence_score_60"]
    # 25*0.4 + 0 + 25 + 15*0.75
    assert tier_progress(reqs) == 46


def test_bank_supported_progress():
    from backend_credibility.scoring.trust_tier import TrustTier, build_requirements, tier_progress

    reqs = build_requirements(TrustTier.BANK_SUPPORTED, _signals())
    assert reqs[0].id == "clean_antifraud"
    assert reqs[0].completed
    assert tier_progress(reqs) == 30


def test_verified_checklist_is_complete():
    from backend_credibility.scoring.trust_tier import TrustTier, build_requirements

    reqs = build_requirements(TrustTier.VERIFIED, _signals(anchored_proofs=1))
    assert all(r.completed for r in reqs)


def test_requirement_to_dict_omits_missing_progress():
    from backend_credibility.scoring.trust_tier import TrustTier, build_requirements

    account, first_doc = build_requirements(TrustTier.SELF_DECLARED, _signals())[:2]
    assert "progress" not in account.to_dict()
    assert first_doc.to_dict()["progress"] == 0


# --- Anti-fraud and strength ---


def test_antifraud_score():
    from backend_credibility.scoring.trust_tier import antifraud_score

    assert antifraud_score([]) == 100
    assert antifraud_score([_alert("critical"), _alert("high"), _alert("medium"), _alert("low")]) == 50
    assert antifraud_score([_alert("critical")] * 4) == 0


@pytest.mark.parametrize(
    "tier, antifraud, expected",
    [
        (3, 0, "verified"),
        (2, 80, "strong"),
        (2, 79, "moderate"),
        (1, 60, "moderate"),
        (1, 59, "weak"),
        (0, 100, "weak"),
    ],
)
def test_verification_strength(tier, antifraud, expected):
    from backend_credibility.scoring.trust_tier import TrustTier, verification_strength

    assert verification_strength(TrustTier(tier), antifraud).value == expected


# --- Full evaluation ---


def test_evaluate_bank_supported(bank_statement, now):
    from backend_credibility.scoring import TrustTier, evaluate_trust_tier
    from backend_credibility.scoring.trust_tier import NEXT_TIER_STEPS

    info = evaluate_trust_tier([bank_statement()], [], 65, [], 100, now)
    assert info.tier is TrustTier.BANK_SUPPORTED
    assert info.label == "Bank-Supported"
    assert info.verification_strength.value == "strong"
    assert info.next_tier_requirements == NEXT_TIER_STEPS[TrustTier.BANK_SUPPORTED]
    payload = info.to_dict()
    assert payload["tier"] == 2
    assert payload["tierProgress"] == 30


def test_evaluate_verified(invoice, make_proof, now):
    from backend_credibility.scoring import TrustTier, evaluate_trust_tier

    info = evaluate_trust_tier([invoice(1000)], [make_proof()], 10, [], 100, now)
    assert info.tier is TrustTier.VERIFIED
    assert info.tier_progress == 100
    assert info.next_tier_requirements is None
    assert "nextTierRequirements" not in info.to_dict()


def test_manual_entries_stay_self_declared(make_doc, now):
    from backend_credibility.scoring import TrustTier, evaluate_trust_tier

    docs = [make_doc("manual_entry", {"total_amount": 100}) for _ in range(3)]
    info = evaluate_trust_tier(docs, [], 90, [], 100, now)
    assert info.tier is TrustTier.SELF_DECLARED
