"""Outcome notifications for reporters and reported users.

Delivery is best effort: every send is independent and failures are logged
and counted, never raised to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Protocol, Sequence

from strike_engine.moderation.domain.models import Action, Notification, NotificationType
from strike_engine.obs import metrics

logger = logging.getLogger(__name__)

PLATFORM_NAME = "UT Marketplace"


class NotificationSink(Protocol):
    async def send(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        body: str,
        related_id: str | None = None,
    ) -> None:
        ...


class InMemoryNotificationSink(NotificationSink):
    def __init__(self) -> None:
        self.sent: List[Notification] = []

    async def send(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        body: str,
        related_id: str | None = None,
    ) -> None:
        self.sent.append(
            Notification(recipient_id=user_id, type=type, title=title, body=body, related_id=related_id)
        )

    def for_user(self, user_id: str) -> List[Notification]:
        return [item for item in self.sent if item.recipient_id == user_id]


@dataclass(frozen=True, slots=True)
class NotificationContext:
    report_id: str | None = None
    listing_title: str | None = None
    suspension_expiry: datetime | None = None


def format_lift_date(value: datetime) -> str:
    """Render e.g. "March 5, 2026"."""
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def compose(
    action: Action,
    *,
    reporter_id: str | None,
    target_user_id: str | None,
    context: NotificationContext,
) -> List[Notification]:
    if action is Action.DISMISS:
        return []
    messages: List[Notification] = []
    if reporter_id:
        messages.append(
            Notification(
                recipient_id=reporter_id,
                type=NotificationType.ACTION_TAKEN,
                title="Report Update",
                body="Update: The account you reported has been actioned by our moderation team.",
                related_id=context.report_id,
            )
        )
    if not target_user_id:
        return messages
    if action is Action.WARN:
        part = f' for "{context.listing_title}"' if context.listing_title else ""
        messages.append(
            Notification(
                recipient_id=target_user_id,
                type=NotificationType.WARNING,
                title="Policy Violation Warning",
                body=f"Your listing{part} was removed for violating our community guidelines. This is a warning.",
            )
        )
    elif action is Action.TEMP_SUSPEND and context.suspension_expiry is not None:
        messages.append(
            Notification(
                recipient_id=target_user_id,
                type=NotificationType.TEMP_SUSPENSION,
                title="Account Temporarily Restricted",
                body=(
                    "Your account is temporarily restricted. You may browse but cannot message or create "
                    f"listings until {format_lift_date(context.suspension_expiry)}."
                ),
            )
        )
    elif action is Action.BAN:
        messages.append(
            Notification(
                recipient_id=target_user_id,
                type=NotificationType.PERMANENT_BAN,
                title="Account Removed",
                body=(
                    f"Your account has been permanently removed from {PLATFORM_NAME} due to repeated or "
                    "severe policy violations."
                ),
            )
        )
    return messages


class NotificationDispatcher:
    def __init__(self, sink: NotificationSink, *, timeout_seconds: float | None = None) -> None:
        self._sink = sink
        self._timeout = timeout_seconds

    async def _deliver(self, message: Notification) -> bool:
        try:
            send = self._sink.send(
                message.recipient_id,
                message.type,
                message.title,
                message.body,
                related_id=message.related_id,
            )
            if self._timeout is not None:
                await asyncio.wait_for(send, timeout=self._timeout)
            else:
                await send
        except Exception:  # noqa: BLE001 - a missed notification is not a moderation failure
            metrics.notification_sent(message.type.value, "error")
            logger.exception(
                "notification delivery failed",
                extra={"recipient": message.recipient_id, "notification_type": message.type.value},
            )
            return False
        metrics.notification_sent(message.type.value, "ok")
        return True

    async def dispatch(self, messages: Sequence[Notification]) -> List[Notification]:
        if not messages:
            return []
        outcomes = await asyncio.gather(*(self._deliver(message) for message in messages))
        return [message for message, ok in zip(messages, outcomes) if ok]

    async def notify(
        self,
        action: Action,
        *,
        reporter_id: str | None,
        target_user_id: str | None,
        context: NotificationContext,
    ) -> List[Notification]:
        """Send the outcome messages for an action; returns the ones delivered."""
        messages = compose(action, reporter_id=reporter_id, target_user_id=target_user_id, context=context)
        return await self.dispatch(messages)

    async def acknowledge_report(self, reporter_id: str, *, report_id: str | None = None) -> bool:
        message = Notification(
            recipient_id=reporter_id,
            type=NotificationType.REPORT_RECEIVED,
            title="Report Received",
            body="Thank you for reporting. We are reviewing your report and will keep you updated.",
            related_id=report_id,
        )
        return await self._deliver(message)
