"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in disputes/models.py (persistence layer).

A Dispute is an aggregate: its evidence, escalation history and
communication history are owned, append-only tuples. Every mutation
returns a new instance.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Self

from disputes.domain.value_objects import (
    CommunicationType,
    DisputeId,
    DisputePriority,
    DisputeStatus,
    DisputeType,
    EscalationLevel,
    EvidenceType,
    Money,
    NotificationChannel,
    NotificationId,
    NotificationStatus,
    NotificationType,
    RefundStatus,
)


@dataclass(frozen=True)
class Evidence:
    """Descriptor of a file already stored by the evidence processor."""

    id: str
    type: EvidenceType
    filename: str
    original_name: str
    mime_type: str
    size: int
    url: str
    uploaded_at: datetime
    description: str | None = None


@dataclass(frozen=True)
class EscalationEntry:
    level: int
    escalated_by: str
    reason: str
    escalated_at: datetime
    escalated_to: str | None = None


@dataclass(frozen=True)
class CommunicationEntry:
    type: CommunicationType
    sender_id: str
    message: str
    sent_at: datetime
    is_internal: bool = False
    recipient_id: str | None = None
    subject: str | None = None
    attachments: tuple[str, ...] = ()
    read_at: datetime | None = None


@dataclass(frozen=True)
class Dispute:
    """Domain representation of a Dispute."""

    id: DisputeId
    ticket_id: str
    user_id: str
    dispute_type: DisputeType
    priority: DisputePriority
    status: DisputeStatus
    subject: str
    description: str
    created_at: datetime
    updated_at: datetime
    last_activity_at: datetime
    tags: tuple[str, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)
    evidence: tuple[Evidence, ...] = ()
    escalation_level: EscalationLevel = EscalationLevel()
    escalation_history: tuple[EscalationEntry, ...] = ()
    communication_history: tuple[CommunicationEntry, ...] = ()
    admin_id: str | None = None
    admin_response: str | None = None
    resolution: str | None = None
    refund_amount: Money | None = None
    refund_status: RefundStatus | None = None
    resolved_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_escalated(self) -> bool:
        return self.escalation_level.value > 0

    def touched(self, at: datetime) -> Self:
        return replace(self, updated_at=at, last_activity_at=at)

    def with_communication(self, entry: CommunicationEntry) -> Self:
        """Append a message, keeping the log ordered by sent_at."""
        if self.communication_history:
            last_sent = self.communication_history[-1].sent_at
            if entry.sent_at < last_sent:
                entry = replace(entry, sent_at=last_sent)
        return replace(
            self,
            communication_history=self.communication_history + (entry,),
        ).touched(entry.sent_at)

    def with_evidence(self, items: tuple[Evidence, ...], at: datetime) -> Self:
        return replace(self, evidence=self.evidence + items).touched(at)

    def escalated(
        self,
        escalated_by: str,
        reason: str,
        at: datetime,
        escalated_to: str | None = None,
    ) -> Self:
        """Raise the level by one and force the escalated status.

        Raises:
            ValueError: If the level is already at its maximum.
        """
        level = self.escalation_level.raised()
        entry = EscalationEntry(
            level=level.value,
            escalated_by=escalated_by,
            escalated_to=escalated_to,
            reason=reason,
            escalated_at=at,
        )
        return replace(
            self,
            escalation_level=level,
            escalation_history=self.escalation_history + (entry,),
            status=DisputeStatus.ESCALATED,
        ).touched(at)

    def with_status(self, status: DisputeStatus, at: datetime) -> Self:
        """Move to a status, stamping resolved_at on the first resolution."""
        resolved_at = self.resolved_at
        if status.is_resolution and resolved_at is None:
            resolved_at = at
        return replace(self, status=status, resolved_at=resolved_at).touched(at)


@dataclass(frozen=True)
class ChannelDelivery:
    """Outcome of one delivery attempt on one channel."""

    channel: NotificationChannel
    succeeded: bool
    attempted_at: datetime
    error: str | None = None


@dataclass(frozen=True)
class Notification:
    """Domain representation of a Notification."""

    id: NotificationId
    dispute_id: DisputeId
    user_id: str
    type: NotificationType
    title: str
    message: str
    channels: tuple[NotificationChannel, ...]
    status: NotificationStatus
    created_at: datetime
    data: Mapping[str, Any] = field(default_factory=dict)
    scheduled_at: datetime | None = None
    sent_at: datetime | None = None
    delivered_at: datetime | None = None
    read_at: datetime | None = None
    deliveries: tuple[ChannelDelivery, ...] = ()

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def delivery_for(self, channel: NotificationChannel) -> ChannelDelivery | None:
        for delivery in self.deliveries:
            if delivery.channel == channel:
                return delivery
        return None
