from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from justadrop.utils import now
from justadrop.web.deps import AppDep

router = APIRouter(tags=["health"])


@router.get("/health", operation_id="health")
async def health() -> dict[str, str]:
    return {"status": "healthy", "timestamp": now().isoformat()}


@router.get("/health/liveness", operation_id="liveness")
async def liveness() -> dict[str, str]:
    return {"status": "alive", "timestamp": now().isoformat()}


@router.get("/health/readiness", operation_id="readiness", responses={503: {"description": "Database unreachable"}})
async def readiness(app: AppDep) -> JSONResponse:
    report: dict[str, Any] = await app.get_readiness()
    return JSONResponse(status_code=200 if report["status"] == "ready" else 503, content=report)
