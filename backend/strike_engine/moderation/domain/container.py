"""Lightweight service container shared by moderation modules."""

from __future__ import annotations

from typing import Optional

import asyncpg
from redis.asyncio import Redis

from strike_engine.infra.redis import RedisProxy, redis_client
from strike_engine.moderation.domain.accounts import (
    AccountAdminChecker,
    AccountRepository,
    AnyAdminChecker,
    AuthorizationChecker,
    InMemoryAccountRepository,
    StaticAdminChecker,
)
from strike_engine.moderation.domain.audit import AuditLog, InMemoryAuditLog
from strike_engine.moderation.domain.enforcement import EnforcementExecutor
from strike_engine.moderation.domain.ledger import InMemoryStrikeRepository, StrikeLedger, StrikeRepository
from strike_engine.moderation.domain.lifecycle import ReportLifecycleController
from strike_engine.moderation.domain.locks import LocalUserLocks, RedisUserLocks, UserLocks
from strike_engine.moderation.domain.notifications import (
    InMemoryNotificationSink,
    NotificationDispatcher,
    NotificationSink,
)
from strike_engine.moderation.domain.reports import (
    InMemoryListingRepository,
    InMemoryReportRepository,
    ListingRepository,
    ReportRepository,
)
from strike_engine.moderation.domain.severity import SeverityClassifier, default_classifier
from strike_engine.moderation.infra.account_repo import PostgresAccountRepository
from strike_engine.moderation.infra.audit_repo import PostgresAuditLog
from strike_engine.moderation.infra.notification_sink import PostgresNotificationSink
from strike_engine.moderation.infra.report_repo import PostgresListingRepository, PostgresReportRepository
from strike_engine.moderation.infra.strike_repo import PostgresStrikeRepository
from strike_engine.settings import admin_ids, settings


def _default_authorizer(accounts: AccountRepository) -> AuthorizationChecker:
    configured = admin_ids()
    if configured:
        return AnyAdminChecker(StaticAdminChecker(configured), AccountAdminChecker(accounts))
    return AccountAdminChecker(accounts)


def _build_locks(redis_conn: Redis | RedisProxy | None = None) -> UserLocks:
    if settings.strike_lock_backend == "redis":
        return RedisUserLocks(
            redis_conn or redis_client,
            lease_seconds=settings.strike_lock_timeout_seconds,
            wait_seconds=settings.strike_lock_wait_seconds,
        )
    return LocalUserLocks()


_listing_repository: ListingRepository = InMemoryListingRepository()
_report_repository: ReportRepository = InMemoryReportRepository(_listing_repository)  # type: ignore[arg-type]
_account_repository: AccountRepository = InMemoryAccountRepository()
_strike_repository: StrikeRepository = InMemoryStrikeRepository()
_notification_sink: NotificationSink = InMemoryNotificationSink()
_audit_log: AuditLog = InMemoryAuditLog()
_locks: UserLocks = _build_locks()
_authorizer: AuthorizationChecker = _default_authorizer(_account_repository)
_classifier: SeverityClassifier = default_classifier
_ledger: StrikeLedger
_executor: EnforcementExecutor
_dispatcher: NotificationDispatcher
_controller: ReportLifecycleController


def _rebuild() -> None:
    global _ledger, _executor, _dispatcher, _controller
    timeout = settings.store_timeout_seconds
    _ledger = StrikeLedger(
        _strike_repository,
        timeout_seconds=timeout,
        max_batch=settings.strike_lookup_max_batch,
    )
    _executor = EnforcementExecutor(
        ledger=_ledger,
        accounts=_account_repository,
        reports=_report_repository,
        listings=_listing_repository,
        locks=_locks,
        audit=_audit_log,
        store_timeout_seconds=timeout,
        account_write_attempts=settings.account_write_attempts,
        account_write_backoff_seconds=settings.account_write_backoff_seconds,
        default_suspension_days=settings.default_suspension_days,
    )
    _dispatcher = NotificationDispatcher(_notification_sink, timeout_seconds=timeout)
    _controller = ReportLifecycleController(
        reports=_report_repository,
        listings=_listing_repository,
        ledger=_ledger,
        executor=_executor,
        dispatcher=_dispatcher,
        authorizer=_authorizer,
        classifier=_classifier,
        enforce_high_severity_floor=settings.enforce_high_severity_floor,
        store_timeout_seconds=timeout,
    )


_rebuild()


def configure(
    *,
    report_repository: Optional[ReportRepository] = None,
    listing_repository: Optional[ListingRepository] = None,
    account_repository: Optional[AccountRepository] = None,
    strike_repository: Optional[StrikeRepository] = None,
    notification_sink: Optional[NotificationSink] = None,
    audit_log: Optional[AuditLog] = None,
    locks: Optional[UserLocks] = None,
    authorizer: Optional[AuthorizationChecker] = None,
    classifier: Optional[SeverityClassifier] = None,
) -> None:
    global _report_repository, _listing_repository, _account_repository, _strike_repository
    global _notification_sink, _audit_log, _locks, _authorizer, _classifier
    if listing_repository is not None:
        _listing_repository = listing_repository
    if report_repository is not None:
        _report_repository = report_repository
    if account_repository is not None:
        _account_repository = account_repository
        if authorizer is None:
            _authorizer = _default_authorizer(account_repository)
    if strike_repository is not None:
        _strike_repository = strike_repository
    if notification_sink is not None:
        _notification_sink = notification_sink
    if audit_log is not None:
        _audit_log = audit_log
    if locks is not None:
        _locks = locks
    if authorizer is not None:
        _authorizer = authorizer
    if classifier is not None:
        _classifier = classifier
    _rebuild()


def configure_postgres(pool: asyncpg.Pool, redis_conn: Redis | RedisProxy | None = None) -> None:
    configure(
        report_repository=PostgresReportRepository(pool),
        listing_repository=PostgresListingRepository(pool),
        account_repository=PostgresAccountRepository(pool),
        strike_repository=PostgresStrikeRepository(pool),
        notification_sink=PostgresNotificationSink(pool),
        audit_log=PostgresAuditLog(pool),
        locks=_build_locks(redis_conn),
    )


def get_ledger() -> StrikeLedger:
    return _ledger


def get_executor() -> EnforcementExecutor:
    return _executor


def get_dispatcher() -> NotificationDispatcher:
    return _dispatcher


def get_controller() -> ReportLifecycleController:
    return _controller


def get_classifier() -> SeverityClassifier:
    return _classifier
