"""Bounded store calls: timeouts and driver errors become PersistenceError."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

from strike_engine.moderation.domain.errors import PersistenceError, StrikeEngineError

T = TypeVar("T")

logger = logging.getLogger(__name__)


async def bounded(awaitable: Awaitable[T], *, operation: str, timeout: float | None) -> T:
    try:
        if timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except StrikeEngineError:
        raise
    except asyncio.TimeoutError as exc:
        logger.warning("store call timed out", extra={"operation": operation, "timeout_s": timeout})
        raise PersistenceError(f"{operation}_timeout") from exc
    except Exception as exc:  # noqa: BLE001 - driver errors surface as persistence failures
        logger.warning("store call failed", extra={"operation": operation, "error": repr(exc)})
        raise PersistenceError(f"{operation}_failed") from exc
