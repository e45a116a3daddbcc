import pytest

from strike_engine.moderation.domain.models import STRIKE_WEIGHTS, Action, Severity, Strike
from strike_engine.moderation.domain.severity import (
    REASON_GUIDANCE,
    REASON_SEVERITY,
    SeverityClassifier,
    classify,
    default_classifier,
    strike_weight,
)


@pytest.mark.parametrize(
    "reason,expected",
    [
        ("spam", Severity.LOW),
        ("duplicate", Severity.LOW),
        ("other", Severity.LOW),
        ("fake", Severity.MEDIUM),
        ("inappropriate", Severity.MEDIUM),
        ("harassment", Severity.MEDIUM),
        ("fake_profile", Severity.MEDIUM),
        ("impersonation", Severity.MEDIUM),
        ("scam", Severity.HIGH),
        ("prohibited", Severity.HIGH),
        ("scammer", Severity.HIGH),
    ],
)
def test_reason_table(reason: str, expected: Severity) -> None:
    assert classify(reason) is expected


@pytest.mark.parametrize("reason", ["totally_new_code", "", None, "spam!"])
def test_unknown_reasons_default_to_low(reason) -> None:
    assert classify(reason) is Severity.LOW


def test_reason_codes_are_normalised() -> None:
    assert classify("  SCAM ") is Severity.HIGH
    assert classify("Fake_Profile") is Severity.MEDIUM


def test_weights_are_fixed() -> None:
    assert strike_weight(Severity.LOW) == 1
    assert strike_weight(Severity.MEDIUM) == 2
    assert strike_weight(Severity.HIGH) == 3
    assert Severity.HIGH.weight == 3


def test_tables_are_read_only() -> None:
    with pytest.raises(TypeError):
        REASON_SEVERITY["spam"] = Severity.HIGH  # type: ignore[index]
    with pytest.raises(TypeError):
        STRIKE_WEIGHTS[Severity.LOW] = 5  # type: ignore[index]


def test_every_reason_has_guidance() -> None:
    assert set(REASON_GUIDANCE) == set(REASON_SEVERITY)


def test_describe_reports_weight_and_guidance() -> None:
    described = default_classifier.describe("scam")
    assert described.severity is Severity.HIGH
    assert described.weight == 3
    assert described.immediate_action == "Immediate content removal + ban"


def test_describe_unknown_reason_falls_back() -> None:
    described = default_classifier.describe("mystery")
    assert described.severity is Severity.LOW
    assert described.weight == 1
    assert described.immediate_action == "Flag for review"


def test_catalog_lists_every_reason() -> None:
    catalog = default_classifier.reason_catalog()
    assert [item.reason for item in catalog] == list(REASON_SEVERITY)


def test_custom_table_does_not_leak_into_default() -> None:
    custom = SeverityClassifier({"spam": Severity.HIGH})
    assert custom.classify("spam") is Severity.HIGH
    assert custom.classify("scam") is Severity.LOW
    assert classify("spam") is Severity.LOW


def test_catalog_weight_matches_recorded_strike_weight() -> None:
    for item in default_classifier.reason_catalog():
        strike = Strike.build(strike_id="s", user_id="u", severity=item.severity, action_taken=Action.WARN)
        assert item.weight == strike.weight


def test_classifier_takes_no_separate_weight_table() -> None:
    with pytest.raises(TypeError):
        SeverityClassifier(weights={Severity.LOW: 9})  # type: ignore[call-arg]
