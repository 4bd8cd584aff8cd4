"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
Evidence, escalation and communication logs are stored as JSON arrays on
the dispute row; the store is the only writer and only ever appends.
"""

import uuid

from django.db import models
from django.db.models import Q

from disputes.domain.value_objects import (
    TERMINAL_STATUSES,
    DisputePriority,
    DisputeStatus,
    DisputeType,
    NotificationStatus,
    NotificationType,
    RefundStatus,
)


def enum_choices(enum) -> list[tuple[str, str]]:
    return [(member.value, member.name.replace("_", " ").title()) for member in enum]


TERMINAL_STATUS_VALUES = sorted(status.value for status in TERMINAL_STATUSES)


class Dispute(models.Model):
    """Persistence model for disputes."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    ticket_id = models.CharField(max_length=64, db_index=True)
    user_id = models.CharField(max_length=64, db_index=True)
    dispute_type = models.CharField(max_length=32, choices=enum_choices(DisputeType))
    status = models.CharField(
        max_length=32,
        choices=enum_choices(DisputeStatus),
        default=DisputeStatus.PENDING.value,
    )
    priority = models.CharField(
        max_length=16,
        choices=enum_choices(DisputePriority),
        default=DisputePriority.MEDIUM.value,
    )
    subject = models.CharField(max_length=200)
    description = models.TextField()
    tags = models.JSONField(default=list, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    evidence = models.JSONField(default=list, blank=True)
    escalation_level = models.PositiveSmallIntegerField(default=0)
    escalation_history = models.JSONField(default=list, blank=True)
    communication_history = models.JSONField(default=list, blank=True)
    admin_id = models.CharField(max_length=64, blank=True, null=True)
    admin_response = models.TextField(blank=True, null=True)
    resolution = models.TextField(blank=True, null=True)
    refund_amount = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    refund_status = models.CharField(
        max_length=16, choices=enum_choices(RefundStatus), blank=True, null=True
    )
    search_text = models.TextField(blank=True, default="")
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()
    last_activity_at = models.DateTimeField(db_index=True)
    resolved_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="dispute_created_idx"),
            models.Index(fields=["user_id", "status"], name="dispute_user_status_idx"),
            models.Index(fields=["priority", "status"], name="dispute_priority_status_idx"),
            models.Index(fields=["dispute_type", "status"], name="dispute_type_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["ticket_id"],
                condition=~Q(status__in=TERMINAL_STATUS_VALUES),
                name="unique_active_dispute_per_ticket",
            ),
        ]

    def __str__(self) -> str:
        return f"Dispute {self.id} on ticket {self.ticket_id} ({self.status})"


class DisputeNotification(models.Model):
    """Persistence model for per-user dispute notifications."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    dispute = models.ForeignKey(Dispute, on_delete=models.CASCADE, related_name="notifications")
    user_id = models.CharField(max_length=64, db_index=True)
    type = models.CharField(max_length=32, choices=enum_choices(NotificationType))
    title = models.CharField(max_length=200)
    message = models.CharField(max_length=1000)
    data = models.JSONField(default=dict, blank=True)
    channels = models.JSONField(default=list, blank=True)
    status = models.CharField(
        max_length=16,
        choices=enum_choices(NotificationStatus),
        default=NotificationStatus.PENDING.value,
        db_index=True,
    )
    deliveries = models.JSONField(default=list, blank=True)
    scheduled_at = models.DateTimeField(blank=True, null=True)
    sent_at = models.DateTimeField(blank=True, null=True)
    delivered_at = models.DateTimeField(blank=True, null=True)
    read_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="notification_created_idx"),
            models.Index(fields=["user_id", "status"], name="notification_user_status_idx"),
            models.Index(fields=["dispute", "type"], name="notification_type_idx"),
            models.Index(fields=["scheduled_at", "status"], name="notification_schedule_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.type} for user {self.user_id}"
