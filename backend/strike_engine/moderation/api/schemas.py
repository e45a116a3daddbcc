"""Response models shared by the moderation routers."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from strike_engine.moderation.domain.models import Report, Strike


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReportOut(CamelModel):
    report_id: str
    report_type: str
    target_id: str
    reporter_id: str
    reason: str
    description: str | None
    severity: str | None
    status: str
    created_at: datetime

    @classmethod
    def from_domain(cls, report: Report) -> "ReportOut":
        return cls(
            report_id=report.report_id,
            report_type=report.kind.value,
            target_id=report.target_id,
            reporter_id=report.reporter_id,
            reason=report.reason,
            description=report.description,
            severity=report.severity.value if report.severity else None,
            status=report.status.value,
            created_at=report.created_at,
        )


class StrikeOut(CamelModel):
    strike_id: str
    severity: str
    strike_value: int
    action_taken: str
    report_id: str | None
    report_type: str | None
    admin_id: str | None
    notes: str | None
    created_at: datetime

    @classmethod
    def from_domain(cls, strike: Strike) -> "StrikeOut":
        return cls(
            strike_id=strike.strike_id,
            severity=strike.severity.value,
            strike_value=strike.weight,
            action_taken=strike.action_taken.value,
            report_id=strike.report_id,
            report_type=strike.report_kind.value if strike.report_kind else None,
            admin_id=strike.admin_id,
            notes=strike.notes,
            created_at=strike.created_at,
        )
