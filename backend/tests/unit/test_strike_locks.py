import asyncio

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from strike_engine.moderation.domain.errors import PersistenceError
from strike_engine.moderation.domain.locks import LocalUserLocks, RedisUserLocks


async def _critical_section(locks, user_id: str, trace: list[str], label: str) -> None:
    async with locks.hold(user_id):
        trace.append(f"{label}:enter")
        await asyncio.sleep(0.01)
        trace.append(f"{label}:exit")


def _assert_serialized(trace: list[str]) -> None:
    for idx in range(0, len(trace), 2):
        enter, leave = trace[idx], trace[idx + 1]
        assert enter.endswith(":enter")
        assert leave == enter.replace(":enter", ":exit")


@pytest.mark.asyncio
async def test_local_locks_serialize_same_user() -> None:
    locks = LocalUserLocks()
    trace: list[str] = []
    await asyncio.gather(*(_critical_section(locks, "user-1", trace, str(idx)) for idx in range(5)))
    assert len(trace) == 10
    _assert_serialized(trace)
    assert locks.active_users() == 0


@pytest.mark.asyncio
async def test_local_locks_do_not_block_other_users() -> None:
    locks = LocalUserLocks()
    entered = asyncio.Event()

    async def hold_a() -> None:
        async with locks.hold("a"):
            await asyncio.wait_for(entered.wait(), timeout=1)

    async def hold_b() -> None:
        async with locks.hold("b"):
            entered.set()

    await asyncio.gather(hold_a(), hold_b())


@pytest.mark.asyncio
async def test_local_lock_released_on_error() -> None:
    locks = LocalUserLocks()
    with pytest.raises(RuntimeError):
        async with locks.hold("user-1"):
            raise RuntimeError("boom")
    async with locks.hold("user-1"):
        pass
    assert locks.active_users() == 0


@pytest.mark.asyncio
async def test_redis_locks_serialize_same_user(fake_redis) -> None:
    locks = RedisUserLocks(fake_redis, lease_seconds=5, wait_seconds=2, retry_delay=0.005)
    trace: list[str] = []
    await asyncio.gather(*(_critical_section(locks, "user-1", trace, str(idx)) for idx in range(4)))
    assert len(trace) == 8
    _assert_serialized(trace)
    assert await fake_redis.get("strike:lock:user-1") is None


@pytest.mark.asyncio
async def test_redis_lock_wait_timeout(fake_redis) -> None:
    await fake_redis.set("strike:lock:user-1", "someone-else", px=5000)
    locks = RedisUserLocks(fake_redis, wait_seconds=0.05, retry_delay=0.01)
    with pytest.raises(PersistenceError) as excinfo:
        async with locks.hold("user-1"):
            pass
    assert excinfo.value.message == "strike_lock_timeout"
    assert await fake_redis.get("strike:lock:user-1") == "someone-else"


@pytest.mark.asyncio
async def test_redis_release_keeps_foreign_token(fake_redis) -> None:
    locks = RedisUserLocks(fake_redis)
    async with locks.hold("user-1"):
        # lease expired and another worker took the lock
        await fake_redis.set("strike:lock:user-1", "other-owner")
    assert await fake_redis.get("strike:lock:user-1") == "other-owner"


@pytest.mark.asyncio
async def test_redis_lock_outlives_its_lease_while_held(fake_redis) -> None:
    locks = RedisUserLocks(fake_redis, lease_seconds=0.1, wait_seconds=2, retry_delay=0.01)
    holders = 0
    peak = 0

    async def slow_holder() -> None:
        nonlocal holders, peak
        async with locks.hold("user-1"):
            holders += 1
            peak = max(peak, holders)
            await asyncio.sleep(0.3)
            assert await fake_redis.get("strike:lock:user-1") is not None
            holders -= 1

    await asyncio.gather(slow_holder(), slow_holder())

    assert peak == 1
    assert await fake_redis.get("strike:lock:user-1") is None


class UnavailableRedis:
    async def set(self, *args, **kwargs):
        raise RedisConnectionError("redis down")


@pytest.mark.asyncio
async def test_redis_unavailable_is_persistence_error() -> None:
    locks = RedisUserLocks(UnavailableRedis())  # type: ignore[arg-type]
    with pytest.raises(PersistenceError) as excinfo:
        async with locks.hold("user-1"):
            pass
    assert excinfo.value.message == "strike_lock_unavailable"
