"""
Health endpoints for EcoTrack.

Liveness has no dependencies; readiness checks the document store behind the session.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ecotrack.features.session.orchestrator import SessionOrchestrator, get_session

logger = logging.getLogger("ecotrack")

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}


@router.get("/readyz")
def readyz(session: SessionOrchestrator = Depends(get_session)):
    """Readiness check: document store reachable."""
    store_kind = type(session.store.documents).__name__
    if not session.store.is_healthy():
        logger.warning(f"[readyz] document store unavailable ({store_kind})")
        return JSONResponse(status_code=503, content={"status": "error", "detail": "document store unreachable"})
    return {"status": "ok", "store": store_kind}
