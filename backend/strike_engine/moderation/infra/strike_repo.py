"""PostgreSQL persistence for the strike ledger."""

from __future__ import annotations

from typing import Dict, Sequence

import asyncpg

from strike_engine.moderation.domain.ledger import StrikeRepository
from strike_engine.moderation.domain.models import Action, ReportKind, Severity, Strike

_COLUMNS = "id, user_id, report_id, report_type, severity, strike_value, action_taken, admin_id, notes, created_at"


def _row_to_strike(row: asyncpg.Record) -> Strike:
    report_type = row["report_type"]
    return Strike(
        strike_id=str(row["id"]),
        user_id=str(row["user_id"]),
        severity=Severity(str(row["severity"])),
        weight=int(row["strike_value"]),
        action_taken=Action(str(row["action_taken"])),
        created_at=row["created_at"],
        report_id=str(row["report_id"]) if row["report_id"] is not None else None,
        report_kind=ReportKind(str(report_type)) if report_type is not None else None,
        admin_id=str(row["admin_id"]) if row["admin_id"] is not None else None,
        notes=row["notes"],
    )


class PostgresStrikeRepository(StrikeRepository):
    """Stores strikes in user_strikes; rows are never updated or deleted."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def insert(self, strike: Strike) -> Strike:
        try:
            row = await self._pool.fetchrow(
                f"""
                INSERT INTO user_strikes (id, user_id, report_id, report_type, severity, strike_value,
                                          action_taken, admin_id, notes, created_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                RETURNING {_COLUMNS}
                """,
                strike.strike_id,
                strike.user_id,
                strike.report_id,
                strike.report_kind.value if strike.report_kind else None,
                strike.severity.value,
                strike.weight,
                strike.action_taken.value,
                strike.admin_id,
                strike.notes,
                strike.created_at,
            )
        except asyncpg.UniqueViolationError:
            # One strike per report; a concurrent writer got there first.
            if strike.report_id is None or strike.report_kind is None:
                raise
            existing = await self.find_for_report(strike.report_id, strike.report_kind)
            if existing is None:
                raise
            return existing
        if row is None:  # pragma: no cover - asyncpg always returns a row for RETURNING
            raise RuntimeError("Failed to insert strike")
        return _row_to_strike(row)

    async def total_for_user(self, user_id: str) -> int:
        value = await self._pool.fetchval(
            "SELECT COALESCE(SUM(strike_value), 0) FROM user_strikes WHERE user_id = $1",
            user_id,
        )
        return int(value or 0)

    async def list_for_user(self, user_id: str) -> Sequence[Strike]:
        rows = await self._pool.fetch(
            f"SELECT {_COLUMNS} FROM user_strikes WHERE user_id = $1 ORDER BY created_at DESC",
            user_id,
        )
        return [_row_to_strike(row) for row in rows]

    async def find_for_report(self, report_id: str, kind: ReportKind) -> Strike | None:
        row = await self._pool.fetchrow(
            f"SELECT {_COLUMNS} FROM user_strikes WHERE report_id = $1 AND report_type = $2",
            report_id,
            kind.value,
        )
        return _row_to_strike(row) if row is not None else None

    async def totals_for_users(self, user_ids: Sequence[str]) -> Dict[str, int]:
        rows = await self._pool.fetch(
            """
            SELECT user_id, COALESCE(SUM(strike_value), 0) AS total
            FROM user_strikes
            WHERE user_id = ANY($1::text[])
            GROUP BY user_id
            """,
            list(user_ids),
        )
        return {str(row["user_id"]): int(row["total"]) for row in rows}
