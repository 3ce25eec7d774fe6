import asyncio

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from tablegate.core.health import liveness_check, readiness_check

router = APIRouter(prefix="/health", tags=["utils"])


@router.get("/liveness/", response_model=None)
async def liveness() -> bool | JSONResponse:
    """
    Liveness probe: is the process alive and responsive?

    Lightweight: no DB I/O.  If this fails the container should be
    restarted by the orchestrator.
    """
    ok, failures = liveness_check()
    if not ok:
        return JSONResponse(
            status_code=503,
            content={"success": False, "message": "Process unhealthy", "data": failures},
        )
    return True


@router.get("/readiness/", response_model=None)
async def readiness(request: Request) -> bool | JSONResponse:
    """
    Readiness probe: can the service handle traffic?

    Checks Postgres through the gateway pool.
    Returns 200 with true if it answers; 503 otherwise.
    """
    ok, failures = await asyncio.to_thread(readiness_check, request.app.state.gateway)
    if not ok:
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "message": "Service Unavailable",
                "data": failures,
            },
        )
    return True
