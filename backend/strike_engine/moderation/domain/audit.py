"""Admin audit trail for enforcement decisions (best effort)."""

from __future__ import annotations

from typing import List, Protocol

from strike_engine.moderation.domain.models import AuditEntry


class AuditLog(Protocol):
    async def record(self, entry: AuditEntry) -> None:
        ...


class InMemoryAuditLog(AuditLog):
    def __init__(self) -> None:
        self.entries: List[AuditEntry] = []

    async def record(self, entry: AuditEntry) -> None:
        self.entries.append(entry)
