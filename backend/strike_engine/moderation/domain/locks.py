"""Per-user serialization for the read-total / append / account-write sequence."""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager, suppress
from time import perf_counter
from typing import AsyncIterator, Dict, Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError, WatchError

from strike_engine.infra.redis import RedisProxy
from strike_engine.moderation.domain.errors import PersistenceError
from strike_engine.obs import metrics

logger = logging.getLogger(__name__)


class UserLocks(Protocol):
    def hold(self, user_id: str):  # -> AsyncContextManager[None]
        ...


class LocalUserLocks(UserLocks):
    """One asyncio.Lock per user; valid for a single process."""

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._holders: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, user_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        self._holders[user_id] = self._holders.get(user_id, 0) + 1
        start = perf_counter()
        try:
            async with lock:
                metrics.observe_lock_wait("local", perf_counter() - start)
                yield
        finally:
            remaining = self._holders[user_id] - 1
            if remaining:
                self._holders[user_id] = remaining
            else:
                self._holders.pop(user_id, None)
                self._locks.pop(user_id, None)

    def active_users(self) -> int:
        return len(self._locks)


class RedisUserLocks(UserLocks):
    """Distributed per-user lock: SET NX PX with an owner token.

    While held, the lease is renewed every third of its length so a slow
    enforcement never outlives it. Renewal and release only touch the key
    while it still carries our token, checked inside a WATCH/MULTI
    transaction.
    """

    def __init__(
        self,
        redis: Redis | RedisProxy,
        *,
        prefix: str = "strike:lock",
        lease_seconds: float = 30.0,
        wait_seconds: float = 10.0,
        retry_delay: float = 0.05,
    ) -> None:
        self._redis = redis
        self._prefix = prefix
        self._lease_ms = max(1, int(lease_seconds * 1000))
        self._wait_seconds = wait_seconds
        self._retry_delay = retry_delay

    def _key(self, user_id: str) -> str:
        return f"{self._prefix}:{user_id}"

    async def _acquire(self, key: str, token: str) -> None:
        start = perf_counter()
        while True:
            try:
                acquired = await self._redis.set(key, token, nx=True, px=self._lease_ms)
            except RedisError as exc:
                raise PersistenceError("strike_lock_unavailable") from exc
            if acquired:
                metrics.observe_lock_wait("redis", perf_counter() - start)
                return
            if perf_counter() - start >= self._wait_seconds:
                logger.warning("strike lock wait exceeded", extra={"lock_key": key, "wait_s": self._wait_seconds})
                raise PersistenceError("strike_lock_timeout")
            await asyncio.sleep(self._retry_delay)

    async def _if_owner(self, key: str, token: str, command: str) -> bool:
        """Run `command` ("pexpire" or "delete") on key only while it holds token."""
        async with self._redis.pipeline(transaction=True) as pipe:
            await pipe.watch(key)
            current = await pipe.get(key)
            if isinstance(current, bytes):
                current = current.decode("utf-8")
            if current != token:
                await pipe.unwatch()
                return False
            pipe.multi()
            if command == "pexpire":
                pipe.pexpire(key, self._lease_ms)
            else:
                pipe.delete(key)
            await pipe.execute()
        return True

    async def _keep_alive(self, key: str, token: str) -> None:
        interval = self._lease_ms / 3000
        while True:
            await asyncio.sleep(interval)
            try:
                renewed = await self._if_owner(key, token, "pexpire")
            except WatchError:
                continue
            except RedisError:
                logger.exception("strike lock renewal failed", extra={"lock_key": key})
                continue
            if not renewed:
                logger.warning("strike lock lost before renewal", extra={"lock_key": key})
                return

    async def _release(self, key: str, token: str) -> None:
        try:
            released = await self._if_owner(key, token, "delete")
        except WatchError:
            logger.warning("strike lock changed during release", extra={"lock_key": key})
            return
        except RedisError:
            logger.exception("strike lock release failed", extra={"lock_key": key})
            return
        if not released:
            logger.warning("strike lock expired before release", extra={"lock_key": key})

    @asynccontextmanager
    async def hold(self, user_id: str) -> AsyncIterator[None]:
        key = self._key(user_id)
        token = str(uuid.uuid4())
        await self._acquire(key, token)
        keeper = asyncio.create_task(self._keep_alive(key, token))
        try:
            yield
        finally:
            keeper.cancel()
            with suppress(asyncio.CancelledError):
                await keeper
            await self._release(key, token)
