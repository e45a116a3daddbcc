"""Notification sink writing rows to the notifications table."""

from __future__ import annotations

import asyncpg

from strike_engine.moderation.domain.models import NotificationType
from strike_engine.moderation.domain.notifications import NotificationSink


class PostgresNotificationSink(NotificationSink):
    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def send(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        body: str,
        related_id: str | None = None,
    ) -> None:
        await self._pool.execute(
            """
            INSERT INTO notifications (user_id, type, title, message, related_id, is_read)
            VALUES ($1, $2, $3, $4, $5, FALSE)
            """,
            user_id,
            type.value,
            title,
            body,
            related_id,
        )
