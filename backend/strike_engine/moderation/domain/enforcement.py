"""Enforcement executor.

Applies an admin decision as an ordered sequence of writes under the target
user's lock:

1. re-read the report (must still be pending) and the target account
2. read the current strike total and append the strike (source of truth)
3. write the account restriction, retried with exponential backoff
4. take down the reported listing
5. transition the report

A failed strike append leaves nothing written. A failure after the append
raises PartialFailureError; re-running the same decision finds the recorded
strike for the report and replays only the remaining steps.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from time import perf_counter
from typing import Any, Callable, Dict

import backoff

from strike_engine.moderation.domain.accounts import AccountRepository
from strike_engine.moderation.domain.audit import AuditLog
from strike_engine.moderation.domain.errors import (
    AlreadyProcessedError,
    InvalidInputError,
    NotFoundError,
    PartialFailureError,
    PersistenceError,
    StrikeEngineError,
)
from strike_engine.moderation.domain.ledger import StrikeLedger
from strike_engine.moderation.domain.locks import LocalUserLocks, UserLocks
from strike_engine.moderation.domain.models import (
    AccountPatch,
    AccountState,
    Action,
    AuditEntry,
    EnforcementResult,
    Report,
    ReportKind,
    ReportStatus,
    Severity,
    Strike,
    utc_now,
)
from strike_engine.moderation.domain.reports import ListingRepository, ReportRepository
from strike_engine.moderation.domain.storage import bounded
from strike_engine.obs import metrics

logger = logging.getLogger(__name__)

DEFAULT_SUSPENSION_DAYS = 7


def _log_account_retry(details: Dict[str, Any]) -> None:
    metrics.account_write_retry()
    logger.warning(
        "Backing off {wait:0.2f}s after {tries} tries writing account state".format(**details),
        extra={"error": repr(details.get("exception"))},
    )


def restriction_patch(
    action: Action,
    current: AccountState,
    *,
    suspension_days: int,
    effective_at: datetime,
) -> AccountPatch | None:
    """Account write for an action, or None when nothing changes.

    A ban is terminal: a suspension applied to a banned account leaves it
    banned. A new suspension never shortens a later existing expiry.
    """
    if action is Action.BAN:
        return AccountPatch(banned=True, suspended=False, suspension_expiry=None)
    if action is Action.TEMP_SUSPEND:
        if current.banned:
            return None
        expiry = effective_at + timedelta(days=suspension_days)
        if current.suspended and current.suspension_expiry is not None and current.suspension_expiry > expiry:
            expiry = current.suspension_expiry
        return AccountPatch(banned=False, suspended=True, suspension_expiry=expiry)
    return None


class EnforcementExecutor:
    def __init__(
        self,
        *,
        ledger: StrikeLedger,
        accounts: AccountRepository,
        reports: ReportRepository,
        listings: ListingRepository,
        locks: UserLocks | None = None,
        audit: AuditLog | None = None,
        store_timeout_seconds: float | None = None,
        account_write_attempts: int = 3,
        account_write_backoff_seconds: float = 0.1,
        default_suspension_days: int = DEFAULT_SUSPENSION_DAYS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._ledger = ledger
        self._accounts = accounts
        self._reports = reports
        self._listings = listings
        self._locks = locks or LocalUserLocks()
        self._audit = audit
        self._timeout = store_timeout_seconds
        self._attempts = max(1, account_write_attempts)
        self._backoff_factor = account_write_backoff_seconds
        self._default_days = default_suspension_days
        self._clock = clock

    async def enforce(
        self,
        report: Report,
        action: Action,
        *,
        severity: Severity,
        target_user_id: str | None,
        admin_id: str,
        suspension_days: int | None = None,
        notes: str | None = None,
    ) -> EnforcementResult:
        if not report.is_pending:
            raise AlreadyProcessedError(f"report_{report.status.value}")
        start = perf_counter()
        try:
            if action is Action.DISMISS:
                result = await self._dismiss(report, severity, target_user_id, admin_id, notes)
            else:
                if not target_user_id:
                    raise NotFoundError("target_user_not_found")
                async with self._locks.hold(target_user_id):
                    result = await self._apply(
                        report,
                        action,
                        severity=severity,
                        target_user_id=target_user_id,
                        admin_id=admin_id,
                        suspension_days=suspension_days or self._default_days,
                        notes=notes,
                    )
        except PartialFailureError:
            metrics.enforcement_outcome(action.value, "partial_failure")
            raise
        except StrikeEngineError as exc:
            metrics.enforcement_outcome(action.value, exc.code)
            raise
        metrics.enforcement_outcome(action.value, "ok")
        metrics.observe_enforcement(action.value, perf_counter() - start)
        await self._record_audit(result, admin_id, notes)
        logger.info(
            "enforcement applied",
            extra={
                "report_id": report.report_id,
                "report_kind": report.kind.value,
                "action": action.value,
                "severity": severity.value,
                "target_user": target_user_id,
                "new_total": result.new_total,
            },
        )
        return result

    async def _dismiss(
        self,
        report: Report,
        severity: Severity,
        target_user_id: str | None,
        admin_id: str,
        notes: str | None,
    ) -> EnforcementResult:
        # Dismissal shares the user's lock so it cannot interleave with a strike for the same report.
        if target_user_id:
            async with self._locks.hold(target_user_id):
                await self._dismiss_unstruck(report, admin_id, notes)
        else:
            await self._dismiss_unstruck(report, admin_id, notes)
        return EnforcementResult(
            report_id=report.report_id,
            report_kind=report.kind,
            action=Action.DISMISS,
            severity=severity,
            target_user_id=target_user_id,
        )

    async def _dismiss_unstruck(self, report: Report, admin_id: str, notes: str | None) -> None:
        existing = await self._ledger.find_for_report(report.report_id, report.kind)
        if existing is not None:
            raise InvalidInputError(
                f"report already has a recorded {existing.action_taken.value} strike; resubmit that action"
            )
        await self._transition(report, ReportStatus.DISMISSED, admin_id, notes)

    async def _transition(self, report: Report, status: ReportStatus, admin_id: str, notes: str | None) -> None:
        await bounded(
            self._reports.set_report_status(
                report.report_id,
                report.kind,
                status,
                reviewed_by=admin_id,
                notes=notes,
            ),
            operation="report_transition",
            timeout=self._timeout,
        )
        metrics.report_transition(report.kind.value, status.value)

    async def _apply(
        self,
        report: Report,
        action: Action,
        *,
        severity: Severity,
        target_user_id: str,
        admin_id: str,
        suspension_days: int,
        notes: str | None,
    ) -> EnforcementResult:
        fresh = await bounded(
            self._reports.get_report(report.report_id, report.kind),
            operation="report_load",
            timeout=self._timeout,
        )
        if fresh is None:
            raise NotFoundError("report_not_found")
        if not fresh.is_pending:
            raise AlreadyProcessedError(f"report_{fresh.status.value}")
        account = await bounded(self._accounts.get_state(target_user_id), operation="account_load", timeout=self._timeout)
        if account is None:
            raise NotFoundError("target_user_not_found")

        strike, previous_total = await self._record_strike(
            report,
            action,
            severity=severity,
            target_user_id=target_user_id,
            admin_id=admin_id,
            notes=notes,
        )
        new_total = previous_total + strike.weight

        patch = restriction_patch(action, account, suspension_days=suspension_days, effective_at=strike.created_at)
        if patch is not None:
            account = await self._write_account(target_user_id, patch, strike)

        content_removed = False
        if report.kind is ReportKind.LISTING:
            await self._take_down(report, strike)
            content_removed = True

        try:
            await self._transition(report, ReportStatus.RESOLVED, admin_id, notes)
        except StrikeEngineError as exc:
            raise self._partial("report", strike, exc) from exc

        return EnforcementResult(
            report_id=report.report_id,
            report_kind=report.kind,
            action=action,
            severity=strike.severity,
            target_user_id=target_user_id,
            previous_total=previous_total,
            new_total=new_total,
            strike=strike,
            suspension_expiry=account.suspension_expiry if action is Action.TEMP_SUSPEND and account.suspended else None,
            content_removed=content_removed,
            account=account,
        )

    async def _record_strike(
        self,
        report: Report,
        action: Action,
        *,
        severity: Severity,
        target_user_id: str,
        admin_id: str,
        notes: str | None,
    ) -> tuple[Strike, int]:
        existing = await self._ledger.find_for_report(report.report_id, report.kind)
        total = await self._ledger.total_strikes(target_user_id)
        if existing is not None:
            if existing.action_taken is not action:
                raise InvalidInputError(
                    f"report already has a recorded {existing.action_taken.value} strike; resubmit that action"
                )
            logger.warning(
                "replaying enforcement for recorded strike",
                extra={"report_id": report.report_id, "strike_id": existing.strike_id},
            )
            return existing, total - existing.weight
        strike = await self._ledger.append(
            target_user_id,
            severity,
            action_taken=action,
            report_id=report.report_id,
            report_kind=report.kind,
            admin_id=admin_id,
            notes=notes,
        )
        return strike, total

    async def _write_account(self, user_id: str, patch: AccountPatch, strike: Strike) -> AccountState:
        @backoff.on_exception(
            backoff.expo,
            PersistenceError,
            max_tries=self._attempts,
            factor=self._backoff_factor,
            jitter=None,
            on_backoff=_log_account_retry,
        )
        async def _write() -> AccountState:
            return await bounded(self._accounts.set_state(user_id, patch), operation="account_write", timeout=self._timeout)

        try:
            return await _write()
        except StrikeEngineError as exc:
            raise self._partial("account", strike, exc) from exc

    async def _take_down(self, report: Report, strike: Strike) -> None:
        try:
            await bounded(self._listings.take_down(report.target_id), operation="listing_take_down", timeout=self._timeout)
        except StrikeEngineError as exc:
            raise self._partial("content", strike, exc) from exc

    def _partial(self, stage: str, strike: Strike, cause: Exception) -> PartialFailureError:
        metrics.partial_failure(stage)
        logger.error(
            "enforcement diverged after strike append",
            exc_info=cause,
            extra={
                "stage": stage,
                "strike_id": strike.strike_id,
                "report_id": strike.report_id,
                "target_user": strike.user_id,
            },
        )
        return PartialFailureError(stage, strike_id=strike.strike_id)

    async def _record_audit(self, result: EnforcementResult, admin_id: str, notes: str | None) -> None:
        if self._audit is None:
            return
        entry = AuditEntry(
            admin_id=admin_id,
            action=f"report_action_{result.action.value}",
            target_id=result.target_user_id,
            details={
                "report_id": result.report_id,
                "report_type": result.report_kind.value,
                "severity": result.severity.value,
                "strike_value": result.strike.weight if result.strike else 0,
                "new_strike_total": result.new_total,
                "action": result.action.value,
                "suspension_until": result.suspension_expiry.isoformat() if result.suspension_expiry else None,
                "notes": notes,
            },
        )
        try:
            await bounded(self._audit.record(entry), operation="audit_record", timeout=self._timeout)
        except StrikeEngineError:
            logger.exception("audit log write failed", extra={"report_id": result.report_id})
