import os
import sys
from pathlib import Path

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-strike-engine-0123456789")
os.environ.setdefault("ENV", "dev")
os.environ.setdefault("STRIKE_LOCK_BACKEND", "local")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from strike_engine.infra import postgres
from strike_engine.main import app
from strike_engine.moderation.domain import container
from strike_engine.moderation.domain.accounts import AccountAdminChecker, InMemoryAccountRepository
from strike_engine.moderation.domain.audit import InMemoryAuditLog
from strike_engine.moderation.domain.enforcement import EnforcementExecutor
from strike_engine.moderation.domain.ledger import InMemoryStrikeRepository, StrikeLedger
from strike_engine.moderation.domain.lifecycle import ReportLifecycleController
from strike_engine.moderation.domain.locks import LocalUserLocks
from strike_engine.moderation.domain.models import AccountState, Listing, Report, ReportKind
from strike_engine.moderation.domain.notifications import InMemoryNotificationSink, NotificationDispatcher
from strike_engine.moderation.domain.reports import InMemoryListingRepository, InMemoryReportRepository
from strike_engine.settings import settings

ADMIN_ID = "admin-1"


class Harness:
	"""In-memory collaborators plus a factory for the engine wired on top of them."""

	def __init__(self) -> None:
		self.listings = InMemoryListingRepository()
		self.reports = InMemoryReportRepository(self.listings)
		self.accounts = InMemoryAccountRepository()
		self.strikes = InMemoryStrikeRepository()
		self.sink = InMemoryNotificationSink()
		self.audit = InMemoryAuditLog()
		self.add_user(ADMIN_ID, is_admin=True)

	def add_user(self, user_id: str, **fields) -> AccountState:
		return self.accounts.add(AccountState(user_id=user_id, **fields))

	def add_listing(self, listing_id: str, owner_id: str, title: str | None = None) -> Listing:
		return self.listings.add(Listing(listing_id=listing_id, owner_id=owner_id, title=title))

	def add_report(
		self,
		report_id: str,
		*,
		kind: ReportKind = ReportKind.USER,
		target_id: str,
		reason: str,
		reporter_id: str = "reporter-1",
		**fields,
	) -> Report:
		return self.reports.add(
			Report(report_id=report_id, kind=kind, target_id=target_id, reporter_id=reporter_id, reason=reason, **fields)
		)

	def build(
		self,
		*,
		accounts=None,
		listings=None,
		reports=None,
		strikes=None,
		sink=None,
		locks=None,
		authorizer=None,
		enforce_high_severity_floor: bool = False,
		account_write_attempts: int = 3,
		store_timeout_seconds: float | None = None,
	) -> ReportLifecycleController:
		accounts = accounts or self.accounts
		listings = listings or self.listings
		reports = reports or self.reports
		self.ledger = StrikeLedger(strikes or self.strikes, timeout_seconds=store_timeout_seconds)
		self.executor = EnforcementExecutor(
			ledger=self.ledger,
			accounts=accounts,
			reports=reports,
			listings=listings,
			locks=locks or LocalUserLocks(),
			audit=self.audit,
			store_timeout_seconds=store_timeout_seconds,
			account_write_attempts=account_write_attempts,
			account_write_backoff_seconds=0.0,
		)
		self.dispatcher = NotificationDispatcher(sink or self.sink)
		return ReportLifecycleController(
			reports=reports,
			listings=listings,
			ledger=self.ledger,
			executor=self.executor,
			dispatcher=self.dispatcher,
			authorizer=authorizer or AccountAdminChecker(self.accounts),
			enforce_high_severity_floor=enforce_high_severity_floor,
			store_timeout_seconds=store_timeout_seconds,
		)


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from strike_engine.infra.redis import redis_client, set_redis_client
	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""API tests authenticate via X-User-Id headers, which are only accepted in dev mode."""
	original_env = settings.environment
	settings.environment = "dev"
	try:
		yield
	finally:
		settings.environment = original_env


@pytest.fixture
def harness() -> Harness:
	return Harness()


@pytest.fixture
def wired(harness: Harness) -> Harness:
	"""Point the service container at the harness stores for HTTP tests."""
	container.configure(
		report_repository=harness.reports,
		listing_repository=harness.listings,
		account_repository=harness.accounts,
		strike_repository=harness.strikes,
		notification_sink=harness.sink,
		audit_log=harness.audit,
		locks=LocalUserLocks(),
		authorizer=AccountAdminChecker(harness.accounts),
	)
	return harness


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
