"""Reason code to severity classification.

The tables here are the single source for both the admin preview and the
enforcement path.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping

from strike_engine.moderation.domain.models import Severity


@dataclass(frozen=True, slots=True)
class ReasonDescription:
    reason: str
    severity: Severity
    weight: int
    immediate_action: str
    description: str


DEFAULT_SEVERITY = Severity.LOW

REASON_SEVERITY: Mapping[str, Severity] = MappingProxyType(
    {
        "spam": Severity.LOW,
        "duplicate": Severity.LOW,
        "other": Severity.LOW,
        "fake": Severity.MEDIUM,
        "inappropriate": Severity.MEDIUM,
        "harassment": Severity.MEDIUM,
        "fake_profile": Severity.MEDIUM,
        "impersonation": Severity.MEDIUM,
        "scam": Severity.HIGH,
        "prohibited": Severity.HIGH,
        "scammer": Severity.HIGH,
    }
)

# reason -> (immediate action guidance, description)
REASON_GUIDANCE: Mapping[str, tuple[str, str]] = MappingProxyType(
    {
        "spam": ("Flag for review", "Repetitive or irrelevant content submitted by a user."),
        "duplicate": ("Flag for review", "This is a duplicate of another listing."),
        "other": ("Flag for review", "Other violation not listed."),
        "fake": (
            "Content review + possible removal",
            "Item descriptions or images that misrepresent the actual product.",
        ),
        "inappropriate": (
            "Content review + possible removal",
            "Content that violates community standards or is offensive.",
        ),
        "harassment": ("Content review + possible action", "User is harassing or threatening other members."),
        "fake_profile": ("Account review + possible removal", "User profile appears fake or impersonating someone."),
        "impersonation": ("Account review + possible removal", "User is impersonating another person or entity."),
        "scam": ("Immediate content removal + ban", "Fraud or sellers attempting to deceive for financial gain."),
        "prohibited": (
            "Immediate content removal + ban",
            "Listing of items that are illegal or explicitly banned by platform policy.",
        ),
        "scammer": ("Immediate account action + ban", "User is running scams or committing fraud."),
    }
)

_FALLBACK_GUIDANCE = ("Flag for review", "Unrecognised reason.")


def normalise_reason(reason: str | None) -> str:
    return (reason or "").strip().lower()


class SeverityClassifier:
    """Pure lookup from reason code to severity; unknown codes are low."""

    def __init__(
        self,
        table: Mapping[str, Severity] = REASON_SEVERITY,
        guidance: Mapping[str, tuple[str, str]] = REASON_GUIDANCE,
    ) -> None:
        self._table = MappingProxyType(dict(table))
        self._guidance = MappingProxyType(dict(guidance))

    def classify(self, reason: str | None) -> Severity:
        return self._table.get(normalise_reason(reason), DEFAULT_SEVERITY)

    def weight(self, severity: Severity) -> int:
        return severity.weight

    def describe(self, reason: str | None) -> ReasonDescription:
        key = normalise_reason(reason)
        severity = self.classify(key)
        immediate_action, description = self._guidance.get(key, _FALLBACK_GUIDANCE)
        return ReasonDescription(
            reason=key or "other",
            severity=severity,
            weight=self.weight(severity),
            immediate_action=immediate_action,
            description=description,
        )

    def reason_catalog(self) -> List[ReasonDescription]:
        return [self.describe(reason) for reason in self._table]


default_classifier = SeverityClassifier()


def classify(reason: str | None) -> Severity:
    return default_classifier.classify(reason)


def strike_weight(severity: Severity) -> int:
    return default_classifier.weight(severity)


__all__ = [
    "DEFAULT_SEVERITY",
    "REASON_GUIDANCE",
    "REASON_SEVERITY",
    "ReasonDescription",
    "SeverityClassifier",
    "classify",
    "default_classifier",
    "normalise_reason",
    "strike_weight",
]
