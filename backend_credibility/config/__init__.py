"""
Configuration for Backend Credibility: .env loading and typed accessors.
"""

from backend_credibility.config.env import (
    DEFAULT_CURRENCY,
    get_api_host,
    get_api_port,
    get_currency_label,
    load_credibility_env,
)

__all__ = [
    "DEFAULT_CURRENCY",
    "get_api_host",
    "get_api_port",
    "get_currency_label",
    "load_credibility_env",
]
