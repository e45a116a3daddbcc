"""Moderation API routers."""

from fastapi import APIRouter

from . import actions, notifications, reports, severity, strikes

router = APIRouter()
router.include_router(actions.router)
router.include_router(reports.router)
router.include_router(strikes.router)
router.include_router(severity.router)
router.include_router(notifications.router)

__all__ = ["router"]
