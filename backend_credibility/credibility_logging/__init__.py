"""
Structured logging for Backend Credibility.

JSON logs with timestamp, business_id, event_type and score fields.
Use get_logger() in all modules for aggregation-friendly output.
"""

from backend_credibility.credibility_logging.logger import business_context, get_logger

__all__ = ["business_context", "get_logger"]
