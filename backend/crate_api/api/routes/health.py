"""Health Routes — liveness and readiness for the process running the Crate API.

Invariants:
    - GET /api/v1/health/ answers 200 whenever the process can serve requests
    - GET /api/v1/health/ready answers 503 until the database answers a query
    - Neither check needs a session

Design Decisions:
    - database.db_manager looked up per call: the lifespan creates it after
      this module has been imported
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from crate_api.config import get_settings
from crate_api.infrastructure import database

router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/")
async def liveness(request: Request):
    return {
        "status": "healthy",
        "service": "crate-api",
        "version": request.app.version,
    }


@router.get("/ready")
async def readiness():
    manager = database.db_manager
    if manager is None or not await manager.health_check():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy"},
        "crateSync": get_settings().crate_sync_enabled,
    }
