"""PostgreSQL access to the restriction columns of the users table."""

from __future__ import annotations

import asyncpg

from strike_engine.moderation.domain.accounts import AccountRepository
from strike_engine.moderation.domain.errors import NotFoundError
from strike_engine.moderation.domain.models import AccountPatch, AccountState

_COLUMNS = "id, is_admin, is_banned, is_suspended, suspension_until"


def _row_to_state(row: asyncpg.Record) -> AccountState:
    return AccountState(
        user_id=str(row["id"]),
        banned=bool(row["is_banned"]),
        suspended=bool(row["is_suspended"]),
        suspension_expiry=row["suspension_until"],
        is_admin=bool(row["is_admin"]),
    )


class PostgresAccountRepository(AccountRepository):
    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def get_state(self, user_id: str) -> AccountState | None:
        row = await self._pool.fetchrow(f"SELECT {_COLUMNS} FROM users WHERE id = $1", user_id)
        return _row_to_state(row) if row is not None else None

    async def set_state(self, user_id: str, patch: AccountPatch) -> AccountState:
        row = await self._pool.fetchrow(
            f"""
            UPDATE users
            SET is_banned = $2, is_suspended = $3, suspension_until = $4
            WHERE id = $1
            RETURNING {_COLUMNS}
            """,
            user_id,
            patch.banned,
            patch.suspended,
            patch.suspension_expiry,
        )
        if row is None:
            raise NotFoundError("account_not_found")
        return _row_to_state(row)
