import sqlite3
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.infra.db import ping

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request) -> JSONResponse:
    checks: dict[str, dict[str, str]] = {}
    healthy = True

    try:
        ping(request.app.state.db)
        checks["database"] = {"status": "healthy"}
    except sqlite3.Error as e:
        healthy = False
        checks["database"] = {"status": "unhealthy", "error": str(e)}

    if request.app.state.ipfs.is_up():
        checks["ipfs"] = {"status": "healthy"}
    else:
        healthy = False
        checks["ipfs"] = {"status": "unhealthy", "error": "IPFS API is not accessible"}

    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "checks": checks,
            "timestamp": int(time.time()),
        },
    )
