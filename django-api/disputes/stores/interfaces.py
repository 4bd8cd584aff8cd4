"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from disputes.domain import (
    Dispute,
    DisputeId,
    DisputeQuery,
    Notification,
    NotificationId,
    NotificationQuery,
    NotificationType,
    Page,
)


class DisputeStore(ABC):
    """Interface for dispute persistence operations."""

    @abstractmethod
    def add(self, dispute: Dispute) -> Dispute:
        """Insert a new dispute.

        Raises:
            DuplicateActiveDisputeError: If the ticket already has a
                non-terminal dispute.
        """
        ...

    @abstractmethod
    def get(self, dispute_id: DisputeId) -> Dispute | None:
        """Return a dispute by ID, or None if not found."""
        ...

    @abstractmethod
    def save(self, dispute: Dispute) -> Dispute:
        """Overwrite an existing dispute (last write wins)."""
        ...

    @abstractmethod
    def find_active_for_ticket(
        self, ticket_id: str, exclude: DisputeId | None = None
    ) -> Dispute | None:
        """Return the non-terminal dispute for a ticket, if any."""
        ...

    @abstractmethod
    def search(self, query: DisputeQuery) -> Page[Dispute]:
        """Return one page of disputes matching the query."""
        ...

    @abstractmethod
    def list_stale(self, cutoff: datetime) -> list[Dispute]:
        """Return non-terminal disputes with no activity since cutoff."""
        ...

    @abstractmethod
    def list_created_between(
        self, start: datetime | None, end: datetime | None
    ) -> list[Dispute]:
        """Return disputes created inside the (inclusive) window."""
        ...


class NotificationStore(ABC):
    """Interface for notification persistence operations."""

    @abstractmethod
    def add(self, notification: Notification) -> Notification:
        ...

    @abstractmethod
    def get(self, notification_id: NotificationId) -> Notification | None:
        ...

    @abstractmethod
    def save(self, notification: Notification) -> Notification:
        ...

    @abstractmethod
    def search(self, query: NotificationQuery) -> Page[Notification]:
        """Return one page of a user's notifications, newest first."""
        ...

    @abstractmethod
    def count_unread(self, user_id: str) -> int:
        ...

    @abstractmethod
    def mark_read(self, notification_id: NotificationId, user_id: str, at: datetime) -> bool:
        """Stamp read_at if unset. Return False if the user has no such notification."""
        ...

    @abstractmethod
    def mark_all_read(self, user_id: str, at: datetime) -> int:
        """Stamp read_at on every unread notification; return how many changed."""
        ...

    @abstractmethod
    def delete(self, notification_id: NotificationId, user_id: str) -> bool:
        ...

    @abstractmethod
    def cancel_pending_for_dispute(self, dispute_id: DisputeId) -> int:
        """Move the dispute's pending notifications to cancelled."""
        ...

    @abstractmethod
    def list_due(self, now: datetime) -> list[Notification]:
        """Return pending notifications whose scheduled_at has passed."""
        ...

    @abstractmethod
    def exists_since(
        self, dispute_id: DisputeId, type: NotificationType, since: datetime
    ) -> bool:
        """Check if a notification of this type was created for the dispute since a time."""
        ...
