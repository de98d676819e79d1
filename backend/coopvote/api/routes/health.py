"""Health Probes — liveness and readiness for the orchestrator.

Invariants:
    - GET /health/ answers 200 whenever the process serves requests; no DB access
    - GET /health/ready answers 503 until the database round-trips
    - Neither probe requires caller identity

Design Decisions:
    - database.db_manager looked up per call: the lifespan (or a test) sets it
      after this module is imported
"""

import time

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from coopvote import __version__
from coopvote.infrastructure import database

SERVICE_NAME = "coopvote-api"

router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def liveness():
    return {"status": "healthy", "service": SERVICE_NAME, "version": __version__}


@router.get("/ready")
async def readiness():
    manager = database.db_manager
    started = time.perf_counter()
    db_ok = manager is not None and await manager.health_check()
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy"},
        "database_ms": round((time.perf_counter() - started) * 1000, 1),
    }
