"""Operations endpoints providing health checks and metrics."""

from __future__ import annotations

from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from strike_engine.obs import health

router = APIRouter(prefix="", tags=["ops"])


@router.get("/health")
async def health_live() -> dict[str, str]:
	return await health.liveness()


@router.get("/health/ready")
async def health_ready() -> Response:
	status_code, payload = await health.readiness()
	return JSONResponse(content=payload, status_code=status_code)


@router.get("/metrics")
async def metrics_endpoint() -> Response:
	return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
