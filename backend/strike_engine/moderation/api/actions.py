"""Admin action submission for pending reports."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import Field

from strike_engine.infra.auth import AuthenticatedUser, get_current_user
from strike_engine.moderation.api.schemas import CamelModel
from strike_engine.moderation.domain.container import get_controller
from strike_engine.moderation.domain.errors import UnauthorizedError
from strike_engine.moderation.domain.lifecycle import ReportLifecycleController
from strike_engine.moderation.domain.models import AdminDecision

router = APIRouter(prefix="/api/mod/v1/actions", tags=["moderation-actions"])


class ActionIn(CamelModel):
    report_id: str = Field(..., min_length=1, max_length=128)
    report_type: str
    admin_id: str | None = None
    action: str
    suspension_days: int | None = None
    notes: str | None = None


class ActionOut(CamelModel):
    success: bool = True
    action: str
    severity: str
    new_strike_total: int | None = None
    suspension_until: str | None = None


def get_controller_dep() -> ReportLifecycleController:
    return get_controller()


@router.post("", response_model=ActionOut)
async def take_action(
    payload: ActionIn,
    principal: AuthenticatedUser = Depends(get_current_user),
    controller: ReportLifecycleController = Depends(get_controller_dep),
) -> ActionOut:
    if payload.admin_id and payload.admin_id != principal.id:
        raise UnauthorizedError("adminId does not match the authenticated principal")
    result = await controller.submit(
        AdminDecision(
            report_id=payload.report_id,
            kind=payload.report_type,
            action=payload.action,
            admin_id=principal.id,
            suspension_days=payload.suspension_days,
            notes=payload.notes,
        )
    )
    return ActionOut(
        action=result.action.value,
        severity=result.severity.value,
        new_strike_total=result.new_total,
        suspension_until=result.suspension_expiry.isoformat() if result.suspension_expiry else None,
    )
