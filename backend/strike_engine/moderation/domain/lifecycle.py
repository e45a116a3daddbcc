"""Report lifecycle controller: admin decisions from pending to terminal."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from strike_engine.moderation.domain.accounts import AuthorizationChecker
from strike_engine.moderation.domain.enforcement import EnforcementExecutor
from strike_engine.moderation.domain.errors import (
    AlreadyProcessedError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from strike_engine.moderation.domain.ledger import StrikeLedger
from strike_engine.moderation.domain.models import (
    Action,
    AdminDecision,
    EnforcementResult,
    Listing,
    Report,
    ReportKind,
    Severity,
    Strike,
)
from strike_engine.moderation.domain.notifications import NotificationContext, NotificationDispatcher
from strike_engine.moderation.domain.reports import ListingRepository, ReportRepository
from strike_engine.moderation.domain.resolver import Recommendation, meets_floor, recommend
from strike_engine.moderation.domain.severity import SeverityClassifier, default_classifier
from strike_engine.moderation.domain.storage import bounded

logger = logging.getLogger(__name__)

MAX_NOTES_LENGTH = 2000


@dataclass(slots=True)
class ReportPreview:
    report: Report
    target_user_id: str | None
    recommendation: Recommendation


@dataclass(slots=True)
class StrikeHistory:
    user_id: str
    total: int
    strikes: List[Strike]


def parse_action(value: Action | str) -> Action:
    if isinstance(value, Action):
        return value
    try:
        return Action(str(value).strip().lower())
    except ValueError as exc:
        raise InvalidInputError("invalid_action") from exc


def parse_kind(value: ReportKind | str) -> ReportKind:
    if isinstance(value, ReportKind):
        return value
    try:
        return ReportKind(str(value).strip().lower())
    except ValueError as exc:
        raise InvalidInputError("reportType must be 'listing' or 'user'") from exc


def validate_suspension_days(value: object) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError("suspensionDays must be a positive integer")
    if value <= 0:
        raise InvalidInputError("suspensionDays must be a positive integer")
    return value


class ReportLifecycleController:
    """Authorize, validate, classify, enforce, notify.

    Authorization runs before any other read. Everything up to the executor
    leaves the report pending; the executor and the notifications run
    shielded from caller cancellation.
    """

    def __init__(
        self,
        *,
        reports: ReportRepository,
        listings: ListingRepository,
        ledger: StrikeLedger,
        executor: EnforcementExecutor,
        dispatcher: NotificationDispatcher,
        authorizer: AuthorizationChecker,
        classifier: SeverityClassifier = default_classifier,
        enforce_high_severity_floor: bool = False,
        store_timeout_seconds: float | None = None,
    ) -> None:
        self._reports = reports
        self._listings = listings
        self._ledger = ledger
        self._executor = executor
        self._dispatcher = dispatcher
        self._authorizer = authorizer
        self._classifier = classifier
        self._enforce_floor = enforce_high_severity_floor
        self._timeout = store_timeout_seconds

    async def _authorize(self, admin_id: str | None) -> str:
        admin = (admin_id or "").strip()
        if not admin:
            raise UnauthorizedError("unauthorized")
        allowed = await bounded(self._authorizer.is_admin(admin), operation="admin_check", timeout=self._timeout)
        if not allowed:
            raise UnauthorizedError("unauthorized")
        return admin

    async def _load_report(self, report_id: str, kind: ReportKind) -> Report:
        if not report_id or not str(report_id).strip():
            raise InvalidInputError("reportId is required")
        report = await bounded(self._reports.get_report(report_id, kind), operation="report_load", timeout=self._timeout)
        if report is None:
            raise NotFoundError("report_not_found")
        return report

    async def _load_pending(self, report_id: str, kind: ReportKind) -> Report:
        report = await self._load_report(report_id, kind)
        if not report.is_pending:
            raise AlreadyProcessedError(f"report_{report.status.value}")
        return report

    async def _resolve_target(self, report: Report) -> tuple[str | None, Listing | None]:
        if report.kind is ReportKind.USER:
            return report.target_id, None
        listing = await bounded(self._listings.get_listing(report.target_id), operation="listing_load", timeout=self._timeout)
        if listing is None:
            return None, None
        return listing.owner_id, listing

    def _severity_for(self, report: Report) -> Severity:
        return report.severity or self._classifier.classify(report.reason)

    async def preview(self, admin_id: str | None, report_id: str, kind: ReportKind | str) -> ReportPreview:
        await self._authorize(admin_id)
        report = await self._load_pending(report_id, parse_kind(kind))
        severity = self._severity_for(report)
        target_user_id, _ = await self._resolve_target(report)
        current = await self._ledger.total_strikes(target_user_id) if target_user_id else 0
        return ReportPreview(report=report, target_user_id=target_user_id, recommendation=recommend(current, severity))

    async def submit(self, decision: AdminDecision) -> EnforcementResult:
        admin_id = await self._authorize(decision.admin_id)
        action = parse_action(decision.action)
        kind = parse_kind(decision.kind)
        suspension_days = validate_suspension_days(decision.suspension_days)
        notes = (decision.notes or "").strip() or None
        if notes is not None and len(notes) > MAX_NOTES_LENGTH:
            raise InvalidInputError("notes too long")

        report = await self._load_pending(decision.report_id, kind)
        severity = self._severity_for(report)
        if self._enforce_floor and not meets_floor(action, severity):
            raise InvalidInputError(f"{action.value} is below the minimum action for {severity.value} severity")
        target_user_id, listing = await self._resolve_target(report)
        if action is not Action.DISMISS and target_user_id is None:
            raise NotFoundError("Could not resolve the user to act on")

        return await asyncio.shield(
            self._execute(
                report,
                action,
                severity=severity,
                target_user_id=target_user_id,
                listing=listing,
                admin_id=admin_id,
                suspension_days=suspension_days,
                notes=notes,
            )
        )

    async def _execute(
        self,
        report: Report,
        action: Action,
        *,
        severity: Severity,
        target_user_id: str | None,
        listing: Listing | None,
        admin_id: str,
        suspension_days: int | None,
        notes: str | None,
    ) -> EnforcementResult:
        pinned = await bounded(
            self._reports.pin_severity(report.report_id, report.kind, severity),
            operation="severity_pin",
            timeout=self._timeout,
        )
        result = await self._executor.enforce(
            report,
            action,
            severity=pinned,
            target_user_id=target_user_id,
            admin_id=admin_id,
            suspension_days=suspension_days,
            notes=notes,
        )
        await self._dispatcher.notify(
            action,
            reporter_id=report.reporter_id,
            target_user_id=target_user_id,
            context=NotificationContext(
                report_id=report.report_id,
                listing_title=listing.title if listing else None,
                suspension_expiry=result.suspension_expiry,
            ),
        )
        return result

    async def pending_reports_for_user(self, admin_id: str | None, user_id: str) -> Sequence[Report]:
        await self._authorize(admin_id)
        if not user_id:
            raise InvalidInputError("user_id is required")
        return await bounded(
            self._reports.list_pending_for_user(user_id),
            operation="pending_reports",
            timeout=self._timeout,
        )

    async def strike_totals(self, admin_id: str | None, user_ids: Iterable[str]) -> Dict[str, int]:
        await self._authorize(admin_id)
        return await self._ledger.totals_for(user_ids)

    async def strike_history(self, admin_id: str | None, user_id: str) -> StrikeHistory:
        await self._authorize(admin_id)
        strikes = await self._ledger.history(user_id)
        return StrikeHistory(user_id=user_id, total=sum(strike.weight for strike in strikes), strikes=strikes)
