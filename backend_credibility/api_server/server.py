"""
FastAPI server: stateless scoring API.

Exposes GET /health and the scoring routes. Owns no state and performs no
I/O beyond the HTTP exchange; every request is scored from its own body.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from backend_credibility import __version__
from backend_credibility.api_server.scoring_routes import router as scoring_router
from backend_credibility.core.exceptions import InvalidSnapshotError
from backend_credibility.credibility_logging import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title="Backend Credibility API",
    description="Credibility scoring for SME financial document snapshots.",
    version=__version__,
)

app.include_router(scoring_router)


@app.get("/health")
def health() -> dict[str, str]:
    """Liveness check: API is up."""
    return {"status": "ok", "version": __version__}


@app.exception_handler(InvalidSnapshotError)
def invalid_snapshot_handler(request: Any, exc: InvalidSnapshotError) -> JSONResponse:
    """Malformed snapshot envelope is a caller error."""
    logger.warning("invalid_snapshot", field=exc.field, error=str(exc))
    return JSONResponse(status_code=422, content={"detail": str(exc), "field": exc.field})


@app.exception_handler(HTTPException)
def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
    """Consistent JSON error response for HTTPException."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )
