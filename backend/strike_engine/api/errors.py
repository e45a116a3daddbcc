"""Global error handlers producing the {success: false, error, code} envelope."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from strike_engine.moderation.domain.errors import PartialFailureError, StrikeEngineError
from strike_engine.obs.logging import current_request_id

logger = logging.getLogger(__name__)

_HTTP_CODES = {
    400: "invalid_input",
    401: "unauthenticated",
    403: "unauthorized",
    404: "not_found",
    405: "method_not_allowed",
    409: "already_processed",
}


def _envelope(status_code: int, error: str, code: str, **extra: object) -> JSONResponse:
    payload = {"success": False, "error": error, "code": code, "request_id": current_request_id()}
    payload.update(extra)
    return JSONResponse(status_code=status_code, content=payload)


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StrikeEngineError)
    async def strike_engine_exc_handler(request: Request, exc: StrikeEngineError):  # type: ignore[override]
        if isinstance(exc, PartialFailureError):
            return _envelope(exc.status_code, exc.message, exc.code, stage=exc.stage, strike_id=exc.strike_id)
        return _envelope(exc.status_code, exc.message, exc.code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        code = _HTTP_CODES.get(exc.status_code, "http_error")
        return _envelope(exc.status_code, str(exc.detail), code)

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid')}" if location else "validation_error"
        return _envelope(400, message, "invalid_input")

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):  # type: ignore[override]
        logger.exception("unhandled error", extra={"path": request.url.path})
        return _envelope(500, "Internal server error", "internal_error")
