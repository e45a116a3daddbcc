"""Reason catalogue so admin previews read the same table enforcement uses."""

from __future__ import annotations

from fastapi import APIRouter

from strike_engine.moderation.api.schemas import CamelModel
from strike_engine.moderation.domain.container import get_classifier

router = APIRouter(prefix="/api/mod/v1/severity", tags=["moderation-severity"])


class ReasonOut(CamelModel):
    reason: str
    severity: str
    strike_value: int
    immediate_action: str
    description: str


@router.get("/reasons", response_model=list[ReasonOut])
async def list_reasons() -> list[ReasonOut]:
    return [
        ReasonOut(
            reason=item.reason,
            severity=item.severity.value,
            strike_value=item.weight,
            immediate_action=item.immediate_action,
            description=item.description,
        )
        for item in get_classifier().reason_catalog()
    ]
