"""Central registry for Prometheus metrics used across the strike engine."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


REQUEST_COUNTER = Counter(
	"strike_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"strike_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

REDIS_UP = Gauge("strike_redis_up", "Redis availability (1 = up)")
POSTGRES_UP = Gauge("strike_postgres_up", "Postgres availability (1 = up)")

STRIKES_APPENDED_TOTAL = Counter(
	"mod_strikes_appended_total",
	"Strikes appended to the ledger",
	["severity"],
)

STRIKE_WEIGHT_TOTAL = Counter(
	"mod_strike_weight_total",
	"Sum of strike weights appended to the ledger",
	["severity"],
)

ENFORCEMENT_TOTAL = Counter(
	"mod_enforcement_total",
	"Enforcement attempts by action and outcome",
	["action", "result"],
)

ENFORCEMENT_LATENCY_SECONDS = Histogram(
	"mod_enforcement_duration_seconds",
	"Time spent inside the enforcement mutation sequence",
	["action"],
	buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

PARTIAL_FAILURES_TOTAL = Counter(
	"mod_enforcement_partial_failures_total",
	"Enforcement runs where the ledger and account writes diverged",
	["stage"],
)

REPORT_TRANSITIONS_TOTAL = Counter(
	"mod_report_transitions_total",
	"Report lifecycle transitions",
	["kind", "transition"],
)

NOTIFICATIONS_TOTAL = Counter(
	"mod_notifications_total",
	"Moderation notifications dispatched",
	["type", "result"],
)

STRIKE_LOCK_WAIT_SECONDS = Histogram(
	"mod_strike_lock_wait_seconds",
	"Time spent waiting for the per-user strike lock",
	["backend"],
	buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
)

ACCOUNT_WRITE_RETRIES_TOTAL = Counter(
	"mod_account_write_retries_total",
	"Retries of the account restriction write",
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def strike_appended(severity: str, weight: int) -> None:
	STRIKES_APPENDED_TOTAL.labels(severity=severity).inc()
	STRIKE_WEIGHT_TOTAL.labels(severity=severity).inc(weight)


def enforcement_outcome(action: str, result: str) -> None:
	ENFORCEMENT_TOTAL.labels(action=action, result=result).inc()


def observe_enforcement(action: str, elapsed_seconds: float) -> None:
	ENFORCEMENT_LATENCY_SECONDS.labels(action=action).observe(elapsed_seconds)


def partial_failure(stage: str) -> None:
	PARTIAL_FAILURES_TOTAL.labels(stage=stage).inc()


def report_transition(kind: str, transition: str) -> None:
	REPORT_TRANSITIONS_TOTAL.labels(kind=kind, transition=transition).inc()


def notification_sent(type_: str, result: str) -> None:
	NOTIFICATIONS_TOTAL.labels(type=type_, result=result).inc()


def observe_lock_wait(backend: str, elapsed_seconds: float) -> None:
	STRIKE_LOCK_WAIT_SECONDS.labels(backend=backend).observe(elapsed_seconds)


def account_write_retry() -> None:
	ACCOUNT_WRITE_RETRIES_TOTAL.inc()


def mark_redis(ok: bool) -> None:
	REDIS_UP.set(1 if ok else 0)


def mark_postgres(ok: bool) -> None:
	POSTGRES_UP.set(1 if ok else 0)
