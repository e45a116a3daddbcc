"""Admin read endpoints for pending reports and action recommendations."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from strike_engine.infra.auth import AuthenticatedUser, get_current_user
from strike_engine.moderation.api.actions import get_controller_dep
from strike_engine.moderation.api.schemas import CamelModel, ReportOut
from strike_engine.moderation.domain.lifecycle import ReportLifecycleController

router = APIRouter(prefix="/api/mod/v1/reports", tags=["moderation-reports"])


class RecommendationOut(CamelModel):
    report: ReportOut
    target_user_id: str | None
    severity: str
    strike_value: int
    current_total: int
    projected_total: int
    recommended_action: str


@router.get("/pending", response_model=list[ReportOut])
async def pending_reports(
    user_id: str = Query(..., min_length=1),
    principal: AuthenticatedUser = Depends(get_current_user),
    controller: ReportLifecycleController = Depends(get_controller_dep),
) -> list[ReportOut]:
    reports = await controller.pending_reports_for_user(principal.id, user_id)
    return [ReportOut.from_domain(report) for report in reports]


@router.get("/{kind}/{report_id}/recommendation", response_model=RecommendationOut)
async def recommendation(
    kind: str,
    report_id: str,
    principal: AuthenticatedUser = Depends(get_current_user),
    controller: ReportLifecycleController = Depends(get_controller_dep),
) -> RecommendationOut:
    preview = await controller.preview(principal.id, report_id, kind)
    rec = preview.recommendation
    return RecommendationOut(
        report=ReportOut.from_domain(preview.report),
        target_user_id=preview.target_user_id,
        severity=rec.severity.value,
        strike_value=rec.weight,
        current_total=rec.current_total,
        projected_total=rec.projected_total,
        recommended_action=rec.action.value,
    )
