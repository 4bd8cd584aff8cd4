"""Notification dispatcher.

Turns notification requests into stored records and delivery attempts
across channels. Delivery problems are recorded on the notification and
never raised to the caller.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

from django.utils import timezone

from disputes.domain import (
    ChannelDelivery,
    DisputeId,
    Notification,
    NotificationChannel,
    NotificationId,
    NotificationQuery,
    NotificationStatus,
    NotificationType,
    Page,
)
from disputes.domain.errors import InvalidDisputeIdError, InvalidFieldError
from disputes.services.channels import ChannelSender
from disputes.stores.interfaces import DisputeStore, NotificationStore

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 200
MESSAGE_MAX_LENGTH = 1000
DEFAULT_CHANNELS = (NotificationChannel.EMAIL, NotificationChannel.IN_APP)


@dataclass(frozen=True)
class Inbox:
    page: Page[Notification]
    unread_count: int


def parse_notification_id(value: str) -> NotificationId:
    try:
        return NotificationId.from_string(value)
    except ValueError as exc:
        raise InvalidDisputeIdError() from exc


class NotificationService:
    """Service for creating, delivering and reading dispute notifications."""

    def __init__(
        self,
        store: NotificationStore,
        disputes: DisputeStore,
        senders: Iterable[ChannelSender],
        clock: Callable[[], datetime] = timezone.now,
        reminder_after: timedelta = timedelta(hours=24),
    ) -> None:
        self._store = store
        self._disputes = disputes
        self._senders = {sender.channel: sender for sender in senders}
        self._clock = clock
        self._reminder_after = reminder_after

    def create_notification(
        self,
        dispute_id: DisputeId,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        channels: Iterable[NotificationChannel] = DEFAULT_CHANNELS,
        data: Mapping[str, Any] | None = None,
        scheduled_at: datetime | None = None,
    ) -> Notification:
        """Store a notification and deliver it now unless it is scheduled."""
        if not title or len(title) > TITLE_MAX_LENGTH:
            raise InvalidFieldError("title", f"must be 1-{TITLE_MAX_LENGTH} characters")
        if not message or len(message) > MESSAGE_MAX_LENGTH:
            raise InvalidFieldError("message", f"must be 1-{MESSAGE_MAX_LENGTH} characters")

        notification = self._store.add(
            Notification(
                id=NotificationId(uuid4()),
                dispute_id=dispute_id,
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                channels=tuple(dict.fromkeys(channels)),
                status=NotificationStatus.PENDING,
                created_at=self._clock(),
                data=dict(data or {}),
                scheduled_at=scheduled_at,
            )
        )
        if scheduled_at is None:
            self.process_notification(str(notification.id))
            notification = self._store.get(notification.id) or notification
        return notification

    def process_notification(self, notification_id: str) -> bool:
        """Attempt every channel of a pending notification.

        Channels are tried in order and independently. The notification is
        SENT only if every channel succeeded, FAILED otherwise; the
        per-channel outcome is kept in ``deliveries``.
        """
        notification = self._store.get(parse_notification_id(notification_id))
        if notification is None or notification.status is not NotificationStatus.PENDING:
            return False

        deliveries = tuple(self._attempt(notification, channel) for channel in notification.channels)
        delivered = all(d.succeeded for d in deliveries)
        now = self._clock()
        self._store.save(
            replace(
                notification,
                deliveries=deliveries,
                status=NotificationStatus.SENT if delivered else NotificationStatus.FAILED,
                sent_at=now if delivered else None,
            )
        )
        return delivered

    def _attempt(self, notification: Notification, channel: NotificationChannel) -> ChannelDelivery:
        sender = self._senders.get(channel)
        error = None
        if sender is None:
            error = f"No sender configured for {channel.value}"
            logger.error("Error sending %s notification %s: %s", channel.value, notification.id, error)
        else:
            try:
                if not sender.send(notification):
                    error = "Channel reported failure"
                    logger.error("%s channel rejected notification %s", channel.value, notification.id)
            except Exception as exc:
                logger.exception("Error sending %s notification %s", channel.value, notification.id)
                error = str(exc) or exc.__class__.__name__
        return ChannelDelivery(
            channel=channel,
            succeeded=error is None,
            attempted_at=self._clock(),
            error=error,
        )

    def get_notifications(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 20,
        unread_only: bool = False,
        type: NotificationType | None = None,
    ) -> Inbox:
        query = NotificationQuery(
            user_id=user_id, unread_only=unread_only, type=type, page=page, limit=limit
        )
        return Inbox(page=self._store.search(query), unread_count=self._store.count_unread(user_id))

    def mark_as_read(self, notification_id: str, user_id: str) -> bool:
        """Mark one notification read. Already-read notifications succeed unchanged."""
        return self._store.mark_read(parse_notification_id(notification_id), user_id, self._clock())

    def mark_all_as_read(self, user_id: str) -> int:
        return self._store.mark_all_read(user_id, self._clock())

    def delete_notification(self, notification_id: str, user_id: str) -> bool:
        return self._store.delete(parse_notification_id(notification_id), user_id)

    def cancel_for_dispute(self, dispute_id: DisputeId) -> int:
        return self._store.cancel_pending_for_dispute(dispute_id)

    def schedule_reminders(self, now: datetime | None = None) -> int:
        """Remind complainants of disputes idle for longer than the reminder window.

        A dispute that already got a reminder inside the window is skipped.
        Returns the number of reminders created.
        """
        now = now or self._clock()
        cutoff = now - self._reminder_after
        created = 0
        for dispute in self._disputes.list_stale(cutoff):
            try:
                if self._store.exists_since(dispute.id, NotificationType.REMINDER, cutoff):
                    continue
                self.create_notification(
                    dispute_id=dispute.id,
                    user_id=dispute.user_id,
                    type=NotificationType.REMINDER,
                    title="Dispute Update Reminder",
                    message="Your dispute is still being processed. We'll update you soon.",
                    data={"disputeId": str(dispute.id), "status": dispute.status.value},
                )
            except Exception:
                logger.exception("Failed to create reminder for dispute %s", dispute.id)
                continue
            created += 1
        logger.info("Scheduled %d reminder notifications", created)
        return created

    def process_scheduled(self, now: datetime | None = None) -> int:
        """Deliver pending notifications whose scheduled time has passed."""
        now = now or self._clock()
        delivered = 0
        for notification in self._store.list_due(now):
            if self.process_notification(str(notification.id)):
                delivered += 1
        logger.info("Processed scheduled notifications, %d delivered", delivered)
        return delivered
