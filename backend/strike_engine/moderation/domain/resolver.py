"""Action resolver: projected strike total and severity to an enforcement action."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from strike_engine.moderation.domain.models import Action, Severity

WARNING_THRESHOLD = 1
SUSPENSION_THRESHOLD = 3
BAN_THRESHOLD = 6

ACTION_RANK: Mapping[Action, int] = MappingProxyType(
    {
        Action.DISMISS: 0,
        Action.WARN: 1,
        Action.TEMP_SUSPEND: 2,
        Action.BAN: 3,
    }
)


def resolve(projected_total: int, severity: Severity) -> Action:
    """Return the recommended action for a strike that brings the user to projected_total."""
    if projected_total < 0:
        raise ValueError("projected_total must be non-negative")
    if projected_total >= BAN_THRESHOLD:
        return Action.BAN
    if severity is Severity.HIGH:
        return Action.TEMP_SUSPEND
    if projected_total >= SUSPENSION_THRESHOLD:
        return Action.TEMP_SUSPEND
    if projected_total >= WARNING_THRESHOLD:
        return Action.WARN
    return Action.DISMISS


def meets_floor(action: Action, severity: Severity) -> bool:
    """High severity reports may not be penalised more mildly than a suspension."""
    if severity is not Severity.HIGH or action is Action.DISMISS:
        return True
    return ACTION_RANK[action] >= ACTION_RANK[Action.TEMP_SUSPEND]


@dataclass(frozen=True, slots=True)
class Recommendation:
    severity: Severity
    weight: int
    current_total: int
    projected_total: int
    action: Action


def recommend(current_total: int, severity: Severity) -> Recommendation:
    projected = current_total + severity.weight
    return Recommendation(
        severity=severity,
        weight=severity.weight,
        current_total=current_total,
        projected_total=projected,
        action=resolve(projected, severity),
    )


__all__ = [
    "ACTION_RANK",
    "BAN_THRESHOLD",
    "Recommendation",
    "SUSPENSION_THRESHOLD",
    "WARNING_THRESHOLD",
    "meets_floor",
    "recommend",
    "resolve",
]
