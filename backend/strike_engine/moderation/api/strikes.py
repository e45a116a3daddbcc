"""Strike totals and history lookups for the admin dashboard."""

from __future__ import annotations

from typing import Dict, List

from fastapi import APIRouter, Depends
from pydantic import Field

from strike_engine.infra.auth import AuthenticatedUser, get_current_user
from strike_engine.moderation.api.actions import get_controller_dep
from strike_engine.moderation.api.schemas import CamelModel, StrikeOut
from strike_engine.moderation.domain.lifecycle import ReportLifecycleController

router = APIRouter(prefix="/api/mod/v1/strikes", tags=["moderation-strikes"])


class TotalsIn(CamelModel):
    user_ids: List[str] = Field(default_factory=list)


class HistoryOut(CamelModel):
    user_id: str
    total: int
    strikes: List[StrikeOut]


@router.post("/totals", response_model=Dict[str, int])
async def strike_totals(
    payload: TotalsIn,
    principal: AuthenticatedUser = Depends(get_current_user),
    controller: ReportLifecycleController = Depends(get_controller_dep),
) -> Dict[str, int]:
    return await controller.strike_totals(principal.id, payload.user_ids)


@router.get("/{user_id}", response_model=HistoryOut)
async def strike_history(
    user_id: str,
    principal: AuthenticatedUser = Depends(get_current_user),
    controller: ReportLifecycleController = Depends(get_controller_dep),
) -> HistoryOut:
    history = await controller.strike_history(principal.id, user_id)
    return HistoryOut(
        user_id=history.user_id,
        total=history.total,
        strikes=[StrikeOut.from_domain(strike) for strike in history.strikes],
    )
