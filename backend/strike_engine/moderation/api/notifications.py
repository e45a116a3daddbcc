"""Report intake acknowledgement."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from strike_engine.infra.auth import AuthenticatedUser, get_current_user
from strike_engine.moderation.api.schemas import CamelModel
from strike_engine.moderation.domain.container import get_dispatcher

router = APIRouter(prefix="/api/mod/v1/notifications", tags=["moderation-notifications"])


class ReportReceivedIn(CamelModel):
    report_id: str | None = None


@router.post("/report-received")
async def report_received(
    payload: ReportReceivedIn,
    user: AuthenticatedUser = Depends(get_current_user),
) -> dict[str, bool]:
    delivered = await get_dispatcher().acknowledge_report(user.id, report_id=payload.report_id)
    return {"success": delivered}
