"""Report and listing collaborator contracts plus in-memory stores."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Dict, List, Protocol, Sequence, Tuple

from strike_engine.moderation.domain.errors import AlreadyProcessedError, NotFoundError
from strike_engine.moderation.domain.models import Listing, Report, ReportKind, ReportStatus, Severity, utc_now


class ReportRepository(Protocol):
    async def get_report(self, report_id: str, kind: ReportKind | None = None) -> Report | None:
        ...

    async def set_report_status(
        self,
        report_id: str,
        kind: ReportKind,
        status: ReportStatus,
        *,
        reviewed_by: str | None,
        notes: str | None = None,
    ) -> Report:
        """Move a pending report to a terminal status.

        Raises NotFoundError for a missing report and AlreadyProcessedError when
        the stored status is no longer pending.
        """
        ...

    async def pin_severity(self, report_id: str, kind: ReportKind, severity: Severity) -> Severity:
        """Store severity if none is recorded yet; return the stored value."""
        ...

    async def list_pending_for_user(self, user_id: str) -> Sequence[Report]:
        ...


class ListingRepository(Protocol):
    async def get_listing(self, listing_id: str) -> Listing | None:
        ...

    async def take_down(self, listing_id: str) -> bool:
        """Soft-remove a listing; returns False when it was already removed."""
        ...


class InMemoryListingRepository(ListingRepository):
    def __init__(self) -> None:
        self.listings: Dict[str, Listing] = {}

    def add(self, listing: Listing) -> Listing:
        self.listings[listing.listing_id] = listing
        return listing

    async def get_listing(self, listing_id: str) -> Listing | None:
        return self.listings.get(listing_id)

    async def take_down(self, listing_id: str) -> bool:
        listing = self.listings.get(listing_id)
        if listing is None:
            raise NotFoundError("listing_not_found")
        if listing.removed:
            return False
        listing.removed = True
        return True


class InMemoryReportRepository(ReportRepository):
    """Simple repository implementation for development and tests."""

    def __init__(self, listings: InMemoryListingRepository | None = None) -> None:
        self._items: Dict[Tuple[ReportKind, str], Report] = {}
        self._listings = listings

    def add(self, report: Report) -> Report:
        self._items[(report.kind, report.report_id)] = report
        return report

    def _find(self, report_id: str, kind: ReportKind | None) -> Report | None:
        if kind is not None:
            return self._items.get((kind, report_id))
        for candidate in ReportKind:
            report = self._items.get((candidate, report_id))
            if report is not None:
                return report
        return None

    async def get_report(self, report_id: str, kind: ReportKind | None = None) -> Report | None:
        await asyncio.sleep(0)
        report = self._find(report_id, kind)
        return replace(report) if report is not None else None

    async def set_report_status(
        self,
        report_id: str,
        kind: ReportKind,
        status: ReportStatus,
        *,
        reviewed_by: str | None,
        notes: str | None = None,
    ) -> Report:
        report = self._find(report_id, kind)
        if report is None:
            raise NotFoundError("report_not_found")
        if not report.is_pending:
            raise AlreadyProcessedError(f"report_{report.status.value}")
        report.status = status
        report.reviewed_at = utc_now()
        report.reviewed_by = reviewed_by
        report.admin_notes = notes
        return replace(report)

    async def pin_severity(self, report_id: str, kind: ReportKind, severity: Severity) -> Severity:
        report = self._find(report_id, kind)
        if report is None:
            raise NotFoundError("report_not_found")
        if report.severity is None:
            report.severity = severity
        return report.severity

    async def list_pending_for_user(self, user_id: str) -> Sequence[Report]:
        matches: List[Report] = []
        for report in self._items.values():
            if not report.is_pending:
                continue
            if report.kind is ReportKind.USER and report.target_id == user_id:
                matches.append(replace(report))
            elif report.kind is ReportKind.LISTING and self._listings is not None:
                listing = self._listings.listings.get(report.target_id)
                if listing is not None and listing.owner_id == user_id:
                    matches.append(replace(report))
        return sorted(matches, key=lambda item: item.created_at)
