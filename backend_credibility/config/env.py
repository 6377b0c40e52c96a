"""
Environment variable loading for Backend Credibility.

- API_HOST: bind address for the scoring API (default: 0.0.0.0)
- API_PORT: port for the scoring API (default: 8000)
- CREDIBILITY_CURRENCY: currency label used in human-readable data points (default: NPR)
- Loads .env from project root when available.

Scoring thresholds are product policy and live in the scoring modules,
not in the environment.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is backend_credibility/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_API_HOST = "0.0.0.0"
DEFAULT_API_PORT = 8000
DEFAULT_CURRENCY = "NPR"


def load_credibility_env() -> None:
    """Load .env from project root. Safe to call multiple times; existing env wins."""
    load_dotenv(_ENV_PATH, override=False)


def get_api_host() -> str:
    """Return API_HOST from env, or 0.0.0.0."""
    load_credibility_env()
    return (os.getenv("API_HOST") or "").strip() or DEFAULT_API_HOST


def get_api_port() -> int:
    """Return API_PORT from env as int; falls back to 8000 on missing or invalid value."""
    load_credibility_env()
    raw = (os.getenv("API_PORT") or "").strip()
    if not raw:
        return DEFAULT_API_PORT
    try:
        return int(raw)
    except ValueError:
        return DEFAULT_API_PORT


def get_currency_label() -> str:
    """Return CREDIBILITY_CURRENCY from env, or NPR."""
    load_credibility_env()
    return (os.getenv("CREDIBILITY_CURRENCY") or "").strip() or DEFAULT_CURRENCY
