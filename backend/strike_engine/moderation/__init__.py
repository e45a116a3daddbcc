"""Moderation package integration helpers exposed to the application."""

from strike_engine.moderation.api import router
from strike_engine.moderation.domain.container import configure, configure_postgres

__all__ = ["router", "configure", "configure_postgres"]
