"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Self
from uuid import UUID


class DisputeType(Enum):
    """Closed set of reasons a ticket holder can contest a purchase."""

    REFUND_REQUEST = "refund_request"
    EVENT_CANCELLED = "event_cancelled"
    EVENT_POSTPONED = "event_postponed"
    VENUE_CHANGED = "venue_changed"
    TECHNICAL_ISSUE = "technical_issue"
    FRAUDULENT_CHARGE = "fraudulent_charge"
    DUPLICATE_CHARGE = "duplicate_charge"
    SERVICE_ISSUE = "service_issue"
    ACCESS_DENIED = "access_denied"
    OTHER = "other"


class DisputeStatus(Enum):
    """Lifecycle status of a dispute."""

    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    INVESTIGATING = "investigating"
    AWAITING_RESPONSE = "awaiting_response"
    ESCALATED = "escalated"
    RESOLVED = "resolved"
    REJECTED = "rejected"
    APPROVED = "approved"
    CANCELLED = "cancelled"
    CLOSED = "closed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_resolution(self) -> bool:
        return self in RESOLUTION_STATUSES


# No complainant-initiated mutation is allowed once a dispute reaches one of these.
TERMINAL_STATUSES = frozenset(
    {
        DisputeStatus.RESOLVED,
        DisputeStatus.REJECTED,
        DisputeStatus.APPROVED,
        DisputeStatus.CANCELLED,
        DisputeStatus.CLOSED,
    }
)

# Entering one of these stamps resolved_at (cancellation is not a resolution).
RESOLUTION_STATUSES = frozenset(
    {
        DisputeStatus.RESOLVED,
        DisputeStatus.REJECTED,
        DisputeStatus.APPROVED,
        DisputeStatus.CLOSED,
    }
)


class DisputePriority(Enum):
    """Priority levels, declared from least to most severe."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return list(DisputePriority).index(self)


class EvidenceType(Enum):
    IMAGE = "image"
    DOCUMENT = "document"
    VIDEO = "video"
    AUDIO = "audio"
    OTHER = "other"

    @classmethod
    def from_mime_type(cls, mime_type: str) -> Self:
        if mime_type.startswith("image/"):
            return cls.IMAGE
        if mime_type.startswith("video/"):
            return cls.VIDEO
        if mime_type.startswith("audio/"):
            return cls.AUDIO
        if any(marker in mime_type for marker in ("pdf", "document", "text")):
            return cls.DOCUMENT
        return cls.OTHER


class CommunicationType(Enum):
    EMAIL = "email"
    SMS = "sms"
    INTERNAL_NOTE = "internal_note"
    SYSTEM_MESSAGE = "system_message"
    USER_MESSAGE = "user_message"
    ADMIN_MESSAGE = "admin_message"


class RefundStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PROCESSED = "processed"
    FAILED = "failed"


class NotificationType(Enum):
    """Dispute events a user can be notified about."""

    DISPUTE_CREATED = "dispute_created"
    DISPUTE_UPDATED = "dispute_updated"
    STATUS_CHANGED = "status_changed"
    ADMIN_RESPONSE = "admin_response"
    ESCALATION = "escalation"
    RESOLUTION = "resolution"
    REFUND_PROCESSED = "refund_processed"
    REMINDER = "reminder"
    DEADLINE_APPROACHING = "deadline_approaching"


class NotificationChannel(Enum):
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"
    IN_APP = "in_app"
    WEBHOOK = "webhook"


class NotificationStatus(Enum):
    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class DisputeId:
    """Unique identifier for a Dispute."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class NotificationId:
    """Unique identifier for a Notification."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Money:
    """Price representation with validation."""

    amount: Decimal

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("Money amount cannot be negative")

    def __str__(self) -> str:
        return f"{self.amount:.2f}"


MAX_ESCALATION_LEVEL = 5


@dataclass(frozen=True)
class EscalationLevel:
    """Escalation depth, bounded to 0..5."""

    value: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.value <= MAX_ESCALATION_LEVEL:
            raise ValueError(f"Escalation level must be between 0 and {MAX_ESCALATION_LEVEL}")

    @property
    def is_max(self) -> bool:
        return self.value >= MAX_ESCALATION_LEVEL

    def raised(self) -> Self:
        return type(self)(self.value + 1)
