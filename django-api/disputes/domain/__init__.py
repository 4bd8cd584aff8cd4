from disputes.domain.models import (
    ChannelDelivery,
    CommunicationEntry,
    Dispute,
    EscalationEntry,
    Evidence,
    Notification,
)
from disputes.domain.queries import DisputeQuery, NotificationQuery, Page, SortField, SortOrder
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

__all__ = [
    "ChannelDelivery",
    "CommunicationEntry",
    "Dispute",
    "EscalationEntry",
    "Evidence",
    "Notification",
    "DisputeQuery",
    "NotificationQuery",
    "Page",
    "SortField",
    "SortOrder",
    "CommunicationType",
    "DisputeId",
    "DisputePriority",
    "DisputeStatus",
    "DisputeType",
    "EscalationLevel",
    "EvidenceType",
    "Money",
    "NotificationChannel",
    "NotificationId",
    "NotificationStatus",
    "NotificationType",
    "RefundStatus",
]
