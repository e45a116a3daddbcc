"""PostgreSQL admin audit log."""

from __future__ import annotations

import json

import asyncpg

from strike_engine.moderation.domain.audit import AuditLog
from strike_engine.moderation.domain.models import AuditEntry


class PostgresAuditLog(AuditLog):
    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def record(self, entry: AuditEntry) -> None:
        await self._pool.execute(
            """
            INSERT INTO admin_audit_log (admin_id, action, target_id, details, created_at)
            VALUES ($1, $2, $3, $4::jsonb, $5)
            """,
            entry.admin_id,
            entry.action,
            entry.target_id,
            json.dumps(entry.details, default=str),
            entry.created_at,
        )
