import asyncio
from datetime import datetime, timezone

import pytest

from strike_engine.moderation.domain.models import Action, AdminDecision, NotificationType, ReportKind, ReportStatus
from strike_engine.moderation.domain.notifications import (
    InMemoryNotificationSink,
    NotificationContext,
    NotificationDispatcher,
    compose,
    format_lift_date,
)


class FailingSink(InMemoryNotificationSink):
    def __init__(self, failing_user: str | None = None) -> None:
        super().__init__()
        self.failing_user = failing_user

    async def send(self, user_id, type, title, body, related_id=None):
        if self.failing_user is None or user_id == self.failing_user:
            raise RuntimeError("push gateway down")
        await super().send(user_id, type, title, body, related_id=related_id)


class HangingSink(InMemoryNotificationSink):
    async def send(self, user_id, type, title, body, related_id=None):
        await asyncio.sleep(5)


def test_format_lift_date() -> None:
    assert format_lift_date(datetime(2026, 3, 5, 14, 0, tzinfo=timezone.utc)) == "March 5, 2026"


def test_compose_warn_for_listing() -> None:
    messages = compose(
        Action.WARN,
        reporter_id="reporter",
        target_user_id="seller",
        context=NotificationContext(report_id="r-1", listing_title="Bike"),
    )
    reporter, target = messages
    assert reporter.recipient_id == "reporter"
    assert reporter.type is NotificationType.ACTION_TAKEN
    assert reporter.related_id == "r-1"
    assert target.type is NotificationType.WARNING
    assert target.body.startswith('Your listing for "Bike" was removed')


def test_compose_suspension_mentions_lift_date() -> None:
    expiry = datetime(2026, 11, 1, tzinfo=timezone.utc)
    messages = compose(
        Action.TEMP_SUSPEND,
        reporter_id=None,
        target_user_id="seller",
        context=NotificationContext(suspension_expiry=expiry),
    )
    [target] = messages
    assert target.type is NotificationType.TEMP_SUSPENSION
    assert "until November 1, 2026." in target.body


def test_compose_ban() -> None:
    messages = compose(Action.BAN, reporter_id="reporter", target_user_id="seller", context=NotificationContext())
    assert [message.type for message in messages] == [NotificationType.ACTION_TAKEN, NotificationType.PERMANENT_BAN]
    assert "permanently removed from UT Marketplace" in messages[1].body


def test_compose_dismiss_is_silent() -> None:
    assert compose(Action.DISMISS, reporter_id="reporter", target_user_id="seller", context=NotificationContext()) == []


@pytest.mark.asyncio
async def test_one_failed_delivery_does_not_block_others() -> None:
    sink = FailingSink(failing_user="reporter")
    dispatcher = NotificationDispatcher(sink)

    delivered = await dispatcher.notify(
        Action.BAN, reporter_id="reporter", target_user_id="seller", context=NotificationContext()
    )

    assert [message.recipient_id for message in delivered] == ["seller"]
    assert [message.recipient_id for message in sink.sent] == ["seller"]


@pytest.mark.asyncio
async def test_slow_sink_times_out_quietly() -> None:
    dispatcher = NotificationDispatcher(HangingSink(), timeout_seconds=0.05)
    delivered = await dispatcher.notify(
        Action.WARN, reporter_id="reporter", target_user_id="seller", context=NotificationContext()
    )
    assert delivered == []


@pytest.mark.asyncio
async def test_acknowledge_report() -> None:
    sink = InMemoryNotificationSink()
    dispatcher = NotificationDispatcher(sink)

    assert await dispatcher.acknowledge_report("reporter", report_id="r-9") is True
    [message] = sink.sent
    assert message.type is NotificationType.REPORT_RECEIVED
    assert message.title == "Report Received"
    assert message.related_id == "r-9"

    assert await NotificationDispatcher(FailingSink()).acknowledge_report("reporter") is False


@pytest.mark.asyncio
async def test_enforcement_succeeds_when_notifications_fail(harness) -> None:
    harness.add_user("seller")
    harness.add_report("r-1", target_id="seller", reason="scammer")
    controller = harness.build(sink=FailingSink())

    result = await controller.submit(
        AdminDecision(report_id="r-1", kind=ReportKind.USER, action=Action.BAN, admin_id="admin-1")
    )

    assert result.new_total == 3
    assert harness.accounts.accounts["seller"].banned is True
    assert (await harness.reports.get_report("r-1", ReportKind.USER)).status is ReportStatus.RESOLVED
