"""
Test that credibility_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from credibility_logging and use the logger."""
    from backend_credibility.credibility_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")


def test_business_context_scopes_business_id():
    """business_id is bound for the duration of the block only."""
    import structlog

    from backend_credibility.credibility_logging import business_context, get_logger

    with business_context("Pokhara Traders"):
        assert structlog.contextvars.get_contextvars()["business_id"] == "Pokhara Traders"
        get_logger("test").info("eligibility_checked", criteria_count=1)
    assert "business_id" not in structlog.contextvars.get_contextvars()


def test_event_type_processor():
    from backend_credibility.credibility_logging.logger import _event_type

    event = _event_type(None, "info", {"event": "credibility_scored", "total_score": 72})
    assert event == {"event_type": "credibility_scored", "message": "credibility_scored", "total_score": 72}
