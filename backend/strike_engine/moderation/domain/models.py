"""Domain types for reports, strikes, account restrictions and notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def weight(self) -> int:
        return STRIKE_WEIGHTS[self]


STRIKE_WEIGHTS: Mapping[Severity, int] = MappingProxyType(
    {
        Severity.LOW: 1,
        Severity.MEDIUM: 2,
        Severity.HIGH: 3,
    }
)


class Action(str, Enum):
    DISMISS = "dismiss"
    WARN = "warn"
    TEMP_SUSPEND = "temp_suspend"
    BAN = "ban"


class ReportKind(str, Enum):
    LISTING = "listing"
    USER = "user"


class ReportStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"

    @property
    def is_terminal(self) -> bool:
        return self is not ReportStatus.PENDING


class NotificationType(str, Enum):
    REPORT_RECEIVED = "report_received"
    ACTION_TAKEN = "action_taken"
    WARNING = "warning"
    TEMP_SUSPENSION = "temp_suspension"
    PERMANENT_BAN = "permanent_ban"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Report:
    report_id: str
    kind: ReportKind
    target_id: str
    reporter_id: str
    reason: str
    description: str | None = None
    severity: Severity | None = None
    status: ReportStatus = ReportStatus.PENDING
    created_at: datetime = field(default_factory=utc_now)
    reviewed_at: datetime | None = None
    reviewed_by: str | None = None
    admin_notes: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status is ReportStatus.PENDING


@dataclass(slots=True)
class Listing:
    listing_id: str
    owner_id: str
    title: str | None = None
    removed: bool = False


@dataclass(frozen=True, slots=True)
class Strike:
    strike_id: str
    user_id: str
    severity: Severity
    weight: int
    action_taken: Action
    created_at: datetime
    report_id: str | None = None
    report_kind: ReportKind | None = None
    admin_id: str | None = None
    notes: str | None = None

    @classmethod
    def build(
        cls,
        *,
        strike_id: str,
        user_id: str,
        severity: Severity,
        action_taken: Action,
        report_id: str | None = None,
        report_kind: ReportKind | None = None,
        admin_id: str | None = None,
        notes: str | None = None,
        created_at: datetime | None = None,
    ) -> "Strike":
        return cls(
            strike_id=strike_id,
            user_id=user_id,
            severity=severity,
            weight=severity.weight,
            action_taken=action_taken,
            created_at=created_at or utc_now(),
            report_id=report_id,
            report_kind=report_kind,
            admin_id=admin_id,
            notes=notes,
        )


@dataclass(slots=True)
class AccountState:
    user_id: str
    banned: bool = False
    suspended: bool = False
    suspension_expiry: datetime | None = None
    is_admin: bool = False

    def is_suspended_at(self, now: datetime | None = None) -> bool:
        if not self.suspended or self.suspension_expiry is None:
            return False
        return self.suspension_expiry > (now or utc_now())

    def is_active(self, now: datetime | None = None) -> bool:
        return not self.banned and not self.is_suspended_at(now)


@dataclass(frozen=True, slots=True)
class AccountPatch:
    """Restriction fields written by the enforcement executor."""

    banned: bool
    suspended: bool
    suspension_expiry: datetime | None


@dataclass(slots=True)
class Notification:
    recipient_id: str
    type: NotificationType
    title: str
    body: str
    related_id: str | None = None
    is_read: bool = False
    created_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True, slots=True)
class AdminDecision:
    """An admin submission; kind and action are validated by the controller."""

    report_id: str
    kind: ReportKind | str
    action: Action | str
    admin_id: str
    suspension_days: int | None = None
    notes: str | None = None


@dataclass(slots=True)
class EnforcementResult:
    report_id: str
    report_kind: ReportKind
    action: Action
    severity: Severity
    target_user_id: str | None
    previous_total: int | None = None
    new_total: int | None = None
    strike: Strike | None = None
    suspension_expiry: datetime | None = None
    content_removed: bool = False
    account: AccountState | None = None


@dataclass(slots=True)
class AuditEntry:
    admin_id: str
    action: str
    target_id: str | None
    details: dict
    created_at: datetime = field(default_factory=utc_now)
