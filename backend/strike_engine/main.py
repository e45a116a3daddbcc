"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from strike_engine.api import ops
from strike_engine.api.errors import install_error_handlers
from strike_engine.infra import postgres
from strike_engine.infra.redis import redis_client
from strike_engine.moderation import configure_postgres as configure_moderation
from strike_engine.moderation import router as moderation_router
from strike_engine.obs import init as obs_init
from strike_engine.obs.logging import get_logger
from strike_engine.settings import settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	pool = await postgres.init_pool()
	if pool is not None:
		configure_moderation(pool, redis_client)
		logger.info("moderation stores configured", extra={"lock_backend": settings.strike_lock_backend})
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(title="Strike Engine", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins) if not isinstance(settings.cors_allow_origins, str) else []
if allow_origins:
	app.add_middleware(
		CORSMiddleware,
		allow_origins=allow_origins,
		allow_credentials=True,
		allow_methods=["GET", "POST"],
		allow_headers=["*"],
	)

obs_init(app)
app.include_router(ops.router)
app.include_router(moderation_router)
