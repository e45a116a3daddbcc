"""Append-only strike ledger with derived per-user totals."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import defaultdict
from typing import Dict, Iterable, List, Protocol, Sequence

from strike_engine.moderation.domain.models import Action, ReportKind, Severity, Strike
from strike_engine.moderation.domain.storage import bounded
from strike_engine.obs import metrics

logger = logging.getLogger(__name__)

DEFAULT_MAX_BATCH = 100


class StrikeRepository(Protocol):
    async def insert(self, strike: Strike) -> Strike:
        ...

    async def total_for_user(self, user_id: str) -> int:
        ...

    async def list_for_user(self, user_id: str) -> Sequence[Strike]:
        ...

    async def find_for_report(self, report_id: str, kind: ReportKind) -> Strike | None:
        ...

    async def totals_for_users(self, user_ids: Sequence[str]) -> Dict[str, int]:
        ...


class StrikeLedger:
    """Records strikes and answers total queries.

    Totals are always summed from the stored rows; nothing is cached.
    Callers computing a projected total must read it before appending.
    """

    def __init__(
        self,
        repository: StrikeRepository,
        *,
        timeout_seconds: float | None = None,
        max_batch: int = DEFAULT_MAX_BATCH,
    ) -> None:
        self._repo = repository
        self._timeout = timeout_seconds
        self._max_batch = max_batch

    @property
    def max_batch(self) -> int:
        return self._max_batch

    async def total_strikes(self, user_id: str) -> int:
        total = await bounded(self._repo.total_for_user(user_id), operation="strike_total", timeout=self._timeout)
        return max(0, int(total or 0))

    async def history(self, user_id: str) -> List[Strike]:
        strikes = await bounded(self._repo.list_for_user(user_id), operation="strike_history", timeout=self._timeout)
        return sorted(strikes, key=lambda strike: strike.created_at, reverse=True)

    async def append(
        self,
        user_id: str,
        severity: Severity,
        *,
        action_taken: Action,
        report_id: str | None = None,
        report_kind: ReportKind | None = None,
        admin_id: str | None = None,
        notes: str | None = None,
    ) -> Strike:
        if action_taken is Action.DISMISS:
            raise ValueError("dismissals do not record strikes")
        strike = Strike.build(
            strike_id=str(uuid.uuid4()),
            user_id=user_id,
            severity=severity,
            action_taken=action_taken,
            report_id=report_id,
            report_kind=report_kind,
            admin_id=admin_id,
            notes=notes,
        )
        stored = await bounded(self._repo.insert(strike), operation="strike_append", timeout=self._timeout)
        metrics.strike_appended(stored.severity.value, stored.weight)
        logger.info(
            "strike appended",
            extra={
                "user": user_id,
                "severity": stored.severity.value,
                "weight": stored.weight,
                "report_id": report_id,
                "strike_id": stored.strike_id,
            },
        )
        return stored

    async def find_for_report(self, report_id: str, kind: ReportKind) -> Strike | None:
        return await bounded(
            self._repo.find_for_report(report_id, kind),
            operation="strike_lookup",
            timeout=self._timeout,
        )

    async def totals_for(self, user_ids: Iterable[str]) -> Dict[str, int]:
        """Bulk totals; ids beyond the batch cap are ignored, unknown users map to 0."""
        unique: List[str] = []
        seen: set[str] = set()
        for user_id in user_ids:
            key = str(user_id).strip()
            if not key or key in seen:
                continue
            seen.add(key)
            unique.append(key)
            if len(unique) >= self._max_batch:
                break
        if not unique:
            return {}
        found = await bounded(self._repo.totals_for_users(unique), operation="strike_totals", timeout=self._timeout)
        return {user_id: max(0, int(found.get(user_id, 0) or 0)) for user_id in unique}


class InMemoryStrikeRepository(StrikeRepository):
    """Simple repository implementation for development and tests."""

    def __init__(self) -> None:
        self._by_user: Dict[str, List[Strike]] = defaultdict(list)

    async def insert(self, strike: Strike) -> Strike:
        await asyncio.sleep(0)
        self._by_user[strike.user_id].append(strike)
        return strike

    async def total_for_user(self, user_id: str) -> int:
        await asyncio.sleep(0)
        return sum(strike.weight for strike in self._by_user.get(user_id, ()))

    async def list_for_user(self, user_id: str) -> Sequence[Strike]:
        return list(self._by_user.get(user_id, ()))

    async def find_for_report(self, report_id: str, kind: ReportKind) -> Strike | None:
        for strikes in self._by_user.values():
            for strike in strikes:
                if strike.report_id == report_id and strike.report_kind is kind:
                    return strike
        return None

    async def totals_for_users(self, user_ids: Sequence[str]) -> Dict[str, int]:
        return {
            user_id: sum(strike.weight for strike in self._by_user[user_id])
            for user_id in user_ids
            if user_id in self._by_user
        }

    def all(self) -> List[Strike]:
        return [strike for strikes in self._by_user.values() for strike in strikes]
