"""PostgreSQL persistence for listing/user reports and the listings they target."""

from __future__ import annotations

from typing import List, Sequence

import asyncpg

from strike_engine.moderation.domain.errors import AlreadyProcessedError, NotFoundError
from strike_engine.moderation.domain.models import Listing, Report, ReportKind, ReportStatus, Severity
from strike_engine.moderation.domain.reports import ListingRepository, ReportRepository

# kind -> (table, column holding the reported entity)
_TABLES = {
    ReportKind.LISTING: ("listing_reports", "listing_id"),
    ReportKind.USER: ("user_reports", "reported_user_id"),
}


def _columns(kind: ReportKind) -> str:
    _, target = _TABLES[kind]
    return (
        f"id, {target} AS target_id, reporter_id, reason, description, severity, status, "
        "created_at, reviewed_at, reviewed_by, admin_notes"
    )


def _row_to_report(row: asyncpg.Record, kind: ReportKind) -> Report:
    severity = row["severity"]
    return Report(
        report_id=str(row["id"]),
        kind=kind,
        target_id=str(row["target_id"]),
        reporter_id=str(row["reporter_id"]),
        reason=str(row["reason"] or "other"),
        description=row["description"],
        severity=Severity(str(severity)) if severity else None,
        status=ReportStatus(str(row["status"])),
        created_at=row["created_at"],
        reviewed_at=row["reviewed_at"],
        reviewed_by=str(row["reviewed_by"]) if row["reviewed_by"] is not None else None,
        admin_notes=row["admin_notes"],
    )


class PostgresReportRepository(ReportRepository):
    """Reads and transitions rows in listing_reports and user_reports."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def _fetch(self, report_id: str, kind: ReportKind) -> Report | None:
        table, _ = _TABLES[kind]
        row = await self._pool.fetchrow(f"SELECT {_columns(kind)} FROM {table} WHERE id = $1", report_id)
        return _row_to_report(row, kind) if row is not None else None

    async def get_report(self, report_id: str, kind: ReportKind | None = None) -> Report | None:
        kinds = [kind] if kind is not None else list(ReportKind)
        for candidate in kinds:
            report = await self._fetch(report_id, candidate)
            if report is not None:
                return report
        return None

    async def set_report_status(
        self,
        report_id: str,
        kind: ReportKind,
        status: ReportStatus,
        *,
        reviewed_by: str | None,
        notes: str | None = None,
    ) -> Report:
        table, _ = _TABLES[kind]
        row = await self._pool.fetchrow(
            f"""
            UPDATE {table}
            SET status = $2, reviewed_at = now(), reviewed_by = $3, admin_notes = $4
            WHERE id = $1 AND status = 'pending'
            RETURNING {_columns(kind)}
            """,
            report_id,
            status.value,
            reviewed_by,
            notes,
        )
        if row is not None:
            return _row_to_report(row, kind)
        current = await self._fetch(report_id, kind)
        if current is None:
            raise NotFoundError("report_not_found")
        raise AlreadyProcessedError(f"report_{current.status.value}")

    async def pin_severity(self, report_id: str, kind: ReportKind, severity: Severity) -> Severity:
        table, _ = _TABLES[kind]
        value = await self._pool.fetchval(
            f"UPDATE {table} SET severity = COALESCE(severity, $2) WHERE id = $1 RETURNING severity",
            report_id,
            severity.value,
        )
        if value is None:
            raise NotFoundError("report_not_found")
        return Severity(str(value))

    async def list_pending_for_user(self, user_id: str) -> Sequence[Report]:
        reports: List[Report] = []
        user_rows = await self._pool.fetch(
            f"""
            SELECT {_columns(ReportKind.USER)}
            FROM user_reports
            WHERE reported_user_id = $1 AND status = 'pending'
            ORDER BY created_at
            """,
            user_id,
        )
        reports.extend(_row_to_report(row, ReportKind.USER) for row in user_rows)
        listing_rows = await self._pool.fetch(
            """
            SELECT r.id, r.listing_id AS target_id, r.reporter_id, r.reason, r.description, r.severity,
                   r.status, r.created_at, r.reviewed_at, r.reviewed_by, r.admin_notes
            FROM listing_reports r
            JOIN listings l ON l.id = r.listing_id
            WHERE l.user_id = $1 AND r.status = 'pending'
            ORDER BY r.created_at
            """,
            user_id,
        )
        reports.extend(_row_to_report(row, ReportKind.LISTING) for row in listing_rows)
        return sorted(reports, key=lambda item: item.created_at)


class PostgresListingRepository(ListingRepository):
    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def get_listing(self, listing_id: str) -> Listing | None:
        row = await self._pool.fetchrow(
            "SELECT id, user_id, title, is_removed FROM listings WHERE id = $1",
            listing_id,
        )
        if row is None:
            return None
        return Listing(
            listing_id=str(row["id"]),
            owner_id=str(row["user_id"]),
            title=row["title"],
            removed=bool(row["is_removed"]),
        )

    async def take_down(self, listing_id: str) -> bool:
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                removed = await conn.fetchval(
                    """
                    UPDATE listings SET is_removed = TRUE, removed_at = now()
                    WHERE id = $1 AND NOT is_removed
                    RETURNING id
                    """,
                    listing_id,
                )
                if removed is None:
                    exists = await conn.fetchval("SELECT 1 FROM listings WHERE id = $1", listing_id)
                    if exists is None:
                        raise NotFoundError("listing_not_found")
                    return False
                await conn.execute("DELETE FROM user_favorites WHERE listing_id = $1", listing_id)
        return True
