"""Health check helpers for liveness and readiness probes."""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Dict, Tuple

from strike_engine.infra import postgres
from strike_engine.infra.redis import redis_client
from strike_engine.obs import metrics
from strike_engine.settings import settings

LOGGER = logging.getLogger(__name__)


async def _redis_status(timeout: float = 0.2) -> Dict[str, Any]:
	start = perf_counter()
	try:
		await asyncio.wait_for(redis_client.ping(), timeout=timeout)
	except Exception as exc:  # noqa: BLE001 - report any failure as degraded
		metrics.mark_redis(False)
		LOGGER.warning("Redis readiness check failed", exc_info=True)
		return {"ok": False, "error": str(exc)}
	metrics.mark_redis(True)
	return {"ok": True, "latency_ms": round((perf_counter() - start) * 1000, 2)}


async def _postgres_status(timeout: float = 0.3) -> Dict[str, Any]:
	start = perf_counter()
	try:
		pool = await postgres.get_pool()
		async with pool.acquire() as conn:
			await asyncio.wait_for(conn.execute("SELECT 1"), timeout=timeout)
	except Exception as exc:  # noqa: BLE001 - report any failure as degraded
		metrics.mark_postgres(False)
		LOGGER.warning("Postgres readiness query failed", exc_info=True)
		return {"ok": False, "error": str(exc)}
	metrics.mark_postgres(True)
	return {"ok": True, "latency_ms": round((perf_counter() - start) * 1000, 2)}


async def liveness() -> Dict[str, Any]:
	return {"status": "ok", "service": settings.service_name}


async def readiness() -> Tuple[int, Dict[str, Any]]:
	postgres_state = await _postgres_status()
	checks: Dict[str, Any] = {"postgres": postgres_state}
	ok = bool(postgres_state.get("ok"))
	if settings.strike_lock_backend == "redis":
		redis_state = await _redis_status()
		checks["redis"] = redis_state
		ok = ok and bool(redis_state.get("ok"))
	return (200 if ok else 503), {"status": "ok" if ok else "degraded", "checks": checks}
