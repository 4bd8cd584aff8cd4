"""Django ORM implementation of the dispute and notification stores."""

from datetime import datetime
from decimal import Decimal
from functools import reduce
from operator import or_
from typing import Any

from django.db import IntegrityError, transaction
from django.db.models import Case, IntegerField, Q, Value, When

from disputes import models as orm
from disputes.domain import (
    ChannelDelivery,
    CommunicationEntry,
    CommunicationType,
    Dispute,
    DisputeId,
    DisputePriority,
    DisputeQuery,
    DisputeStatus,
    DisputeType,
    EscalationEntry,
    EscalationLevel,
    Evidence,
    EvidenceType,
    Money,
    Notification,
    NotificationChannel,
    NotificationId,
    NotificationQuery,
    NotificationStatus,
    NotificationType,
    Page,
    RefundStatus,
    SortField,
    SortOrder,
)
from disputes.domain.errors import DuplicateActiveDisputeError
from disputes.stores.interfaces import DisputeStore, NotificationStore

SORT_COLUMNS = {
    SortField.CREATED_AT: "created_at",
    SortField.UPDATED_AT: "updated_at",
    SortField.STATUS: "status",
    SortField.PRIORITY: "priority_rank",
}


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


# -- embedded log (de)serialization ----------------------------------------


def _evidence_to_json(item: Evidence) -> dict[str, Any]:
    return {
        "id": item.id,
        "type": item.type.value,
        "filename": item.filename,
        "original_name": item.original_name,
        "mime_type": item.mime_type,
        "size": item.size,
        "url": item.url,
        "uploaded_at": _iso(item.uploaded_at),
        "description": item.description,
    }


def _evidence_from_json(data: dict[str, Any]) -> Evidence:
    return Evidence(
        id=data["id"],
        type=EvidenceType(data["type"]),
        filename=data["filename"],
        original_name=data["original_name"],
        mime_type=data["mime_type"],
        size=data["size"],
        url=data["url"],
        uploaded_at=_parse(data["uploaded_at"]),
        description=data.get("description"),
    )


def _escalation_to_json(entry: EscalationEntry) -> dict[str, Any]:
    return {
        "level": entry.level,
        "escalated_by": entry.escalated_by,
        "escalated_to": entry.escalated_to,
        "reason": entry.reason,
        "escalated_at": _iso(entry.escalated_at),
    }


def _escalation_from_json(data: dict[str, Any]) -> EscalationEntry:
    return EscalationEntry(
        level=data["level"],
        escalated_by=data["escalated_by"],
        escalated_to=data.get("escalated_to"),
        reason=data["reason"],
        escalated_at=_parse(data["escalated_at"]),
    )


def _communication_to_json(entry: CommunicationEntry) -> dict[str, Any]:
    return {
        "type": entry.type.value,
        "sender_id": entry.sender_id,
        "recipient_id": entry.recipient_id,
        "subject": entry.subject,
        "message": entry.message,
        "attachments": list(entry.attachments),
        "sent_at": _iso(entry.sent_at),
        "read_at": _iso(entry.read_at),
        "is_internal": entry.is_internal,
    }


def _communication_from_json(data: dict[str, Any]) -> CommunicationEntry:
    return CommunicationEntry(
        type=CommunicationType(data["type"]),
        sender_id=data["sender_id"],
        recipient_id=data.get("recipient_id"),
        subject=data.get("subject"),
        message=data["message"],
        attachments=tuple(data.get("attachments") or ()),
        sent_at=_parse(data["sent_at"]),
        read_at=_parse(data.get("read_at")),
        is_internal=data.get("is_internal", False),
    )


def _delivery_to_json(delivery: ChannelDelivery) -> dict[str, Any]:
    return {
        "channel": delivery.channel.value,
        "succeeded": delivery.succeeded,
        "attempted_at": _iso(delivery.attempted_at),
        "error": delivery.error,
    }


def _delivery_from_json(data: dict[str, Any]) -> ChannelDelivery:
    return ChannelDelivery(
        channel=NotificationChannel(data["channel"]),
        succeeded=data["succeeded"],
        attempted_at=_parse(data["attempted_at"]),
        error=data.get("error"),
    )


# -- row <-> domain ----------------------------------------------------------


def dispute_to_domain(row: orm.Dispute) -> Dispute:
    return Dispute(
        id=DisputeId(row.id),
        ticket_id=row.ticket_id,
        user_id=row.user_id,
        dispute_type=DisputeType(row.dispute_type),
        priority=DisputePriority(row.priority),
        status=DisputeStatus(row.status),
        subject=row.subject,
        description=row.description,
        created_at=row.created_at,
        updated_at=row.updated_at,
        last_activity_at=row.last_activity_at,
        tags=tuple(row.tags or ()),
        metadata=dict(row.metadata or {}),
        evidence=tuple(_evidence_from_json(item) for item in row.evidence or ()),
        escalation_level=EscalationLevel(row.escalation_level),
        escalation_history=tuple(
            _escalation_from_json(item) for item in row.escalation_history or ()
        ),
        communication_history=tuple(
            _communication_from_json(item) for item in row.communication_history or ()
        ),
        admin_id=row.admin_id,
        admin_response=row.admin_response,
        resolution=row.resolution,
        refund_amount=Money(Decimal(row.refund_amount)) if row.refund_amount is not None else None,
        refund_status=RefundStatus(row.refund_status) if row.refund_status else None,
        resolved_at=row.resolved_at,
    )


def _search_text(dispute: Dispute) -> str:
    parts = [dispute.subject, dispute.description]
    # Internal notes stay out of the text complainants can search.
    parts.extend(entry.message for entry in dispute.communication_history if not entry.is_internal)
    return "\n".join(parts)


def dispute_to_row(dispute: Dispute) -> orm.Dispute:
    return orm.Dispute(
        id=dispute.id.value,
        ticket_id=dispute.ticket_id,
        user_id=dispute.user_id,
        dispute_type=dispute.dispute_type.value,
        priority=dispute.priority.value,
        status=dispute.status.value,
        subject=dispute.subject,
        description=dispute.description,
        tags=list(dispute.tags),
        metadata=dict(dispute.metadata),
        evidence=[_evidence_to_json(item) for item in dispute.evidence],
        escalation_level=dispute.escalation_level.value,
        escalation_history=[_escalation_to_json(e) for e in dispute.escalation_history],
        communication_history=[
            _communication_to_json(e) for e in dispute.communication_history
        ],
        admin_id=dispute.admin_id,
        admin_response=dispute.admin_response,
        resolution=dispute.resolution,
        refund_amount=dispute.refund_amount.amount if dispute.refund_amount else None,
        refund_status=dispute.refund_status.value if dispute.refund_status else None,
        search_text=_search_text(dispute),
        created_at=dispute.created_at,
        updated_at=dispute.updated_at,
        last_activity_at=dispute.last_activity_at,
        resolved_at=dispute.resolved_at,
    )


def notification_to_domain(row: orm.DisputeNotification) -> Notification:
    return Notification(
        id=NotificationId(row.id),
        dispute_id=DisputeId(row.dispute_id),
        user_id=row.user_id,
        type=NotificationType(row.type),
        title=row.title,
        message=row.message,
        channels=tuple(NotificationChannel(c) for c in row.channels or ()),
        status=NotificationStatus(row.status),
        created_at=row.created_at,
        data=dict(row.data or {}),
        scheduled_at=row.scheduled_at,
        sent_at=row.sent_at,
        delivered_at=row.delivered_at,
        read_at=row.read_at,
        deliveries=tuple(_delivery_from_json(d) for d in row.deliveries or ()),
    )


def notification_to_row(notification: Notification) -> orm.DisputeNotification:
    return orm.DisputeNotification(
        id=notification.id.value,
        dispute_id=notification.dispute_id.value,
        user_id=notification.user_id,
        type=notification.type.value,
        title=notification.title,
        message=notification.message,
        data=dict(notification.data),
        channels=[c.value for c in notification.channels],
        status=notification.status.value,
        deliveries=[_delivery_to_json(d) for d in notification.deliveries],
        scheduled_at=notification.scheduled_at,
        sent_at=notification.sent_at,
        delivered_at=notification.delivered_at,
        read_at=notification.read_at,
        created_at=notification.created_at,
    )


class DjangoDisputeStore(DisputeStore):
    """Relational dispute store using Django ORM."""

    def add(self, dispute: Dispute) -> Dispute:
        # The partial unique index closes the race between the service's
        # duplicate check and this insert.
        try:
            with transaction.atomic():
                if self.find_active_for_ticket(dispute.ticket_id) is not None:
                    raise DuplicateActiveDisputeError()
                dispute_to_row(dispute).save(force_insert=True)
        except IntegrityError as exc:
            raise DuplicateActiveDisputeError() from exc
        return dispute

    def get(self, dispute_id: DisputeId) -> Dispute | None:
        row = orm.Dispute.objects.filter(pk=dispute_id.value).first()
        return dispute_to_domain(row) if row else None

    def save(self, dispute: Dispute) -> Dispute:
        try:
            with transaction.atomic():
                dispute_to_row(dispute).save(force_update=True)
        except IntegrityError as exc:
            raise DuplicateActiveDisputeError() from exc
        return dispute

    def find_active_for_ticket(
        self, ticket_id: str, exclude: DisputeId | None = None
    ) -> Dispute | None:
        rows = orm.Dispute.objects.filter(ticket_id=ticket_id).exclude(
            status__in=orm.TERMINAL_STATUS_VALUES
        )
        if exclude is not None:
            rows = rows.exclude(pk=exclude.value)
        row = rows.first()
        return dispute_to_domain(row) if row else None

    def search(self, query: DisputeQuery) -> Page[Dispute]:
        rows = orm.Dispute.objects.all()
        if query.user_id:
            rows = rows.filter(user_id=query.user_id)
        if query.admin_id:
            rows = rows.filter(admin_id=query.admin_id)
        if query.status:
            rows = rows.filter(status=query.status.value)
        if query.dispute_type:
            rows = rows.filter(dispute_type=query.dispute_type.value)
        if query.priority:
            rows = rows.filter(priority=query.priority.value)
        if query.start_date:
            rows = rows.filter(created_at__gte=query.start_date)
        if query.end_date:
            rows = rows.filter(created_at__lte=query.end_date)
        terms = (query.search or "").split()
        if terms:
            rows = rows.filter(reduce(or_, (Q(search_text__icontains=t) for t in terms)))

        rows = rows.annotate(
            priority_rank=Case(
                *(When(priority=p.value, then=Value(p.rank)) for p in DisputePriority),
                default=Value(0),
                output_field=IntegerField(),
            )
        )
        column = SORT_COLUMNS[query.sort_by]
        prefix = "-" if query.sort_order is SortOrder.DESC else ""
        rows = rows.order_by(f"{prefix}{column}", f"{prefix}id")

        total = rows.count()
        window = rows[query.offset : query.offset + query.limit]
        return Page(
            items=[dispute_to_domain(row) for row in window],
            total=total,
            page=query.page,
            limit=query.limit,
        )

    def list_stale(self, cutoff: datetime) -> list[Dispute]:
        rows = orm.Dispute.objects.filter(last_activity_at__lt=cutoff).exclude(
            status__in=orm.TERMINAL_STATUS_VALUES
        )
        return [dispute_to_domain(row) for row in rows.order_by("last_activity_at")]

    def list_created_between(
        self, start: datetime | None, end: datetime | None
    ) -> list[Dispute]:
        rows = orm.Dispute.objects.all()
        if start:
            rows = rows.filter(created_at__gte=start)
        if end:
            rows = rows.filter(created_at__lte=end)
        return [dispute_to_domain(row) for row in rows]


class DjangoNotificationStore(NotificationStore):
    """Relational notification store using Django ORM."""

    def add(self, notification: Notification) -> Notification:
        notification_to_row(notification).save(force_insert=True)
        return notification

    def get(self, notification_id: NotificationId) -> Notification | None:
        row = orm.DisputeNotification.objects.filter(pk=notification_id.value).first()
        return notification_to_domain(row) if row else None

    def save(self, notification: Notification) -> Notification:
        notification_to_row(notification).save(force_update=True)
        return notification

    def search(self, query: NotificationQuery) -> Page[Notification]:
        rows = orm.DisputeNotification.objects.filter(user_id=query.user_id)
        if query.unread_only:
            rows = rows.filter(read_at__isnull=True)
        if query.type:
            rows = rows.filter(type=query.type.value)
        rows = rows.order_by("-created_at", "-id")
        total = rows.count()
        window = rows[query.offset : query.offset + query.limit]
        return Page(
            items=[notification_to_domain(row) for row in window],
            total=total,
            page=query.page,
            limit=query.limit,
        )

    def count_unread(self, user_id: str) -> int:
        return orm.DisputeNotification.objects.filter(
            user_id=user_id, read_at__isnull=True
        ).count()

    def mark_read(self, notification_id: NotificationId, user_id: str, at: datetime) -> bool:
        rows = orm.DisputeNotification.objects.filter(pk=notification_id.value, user_id=user_id)
        if not rows.exists():
            return False
        rows.filter(read_at__isnull=True).update(read_at=at)
        return True

    def mark_all_read(self, user_id: str, at: datetime) -> int:
        return orm.DisputeNotification.objects.filter(
            user_id=user_id, read_at__isnull=True
        ).update(read_at=at)

    def delete(self, notification_id: NotificationId, user_id: str) -> bool:
        deleted, _ = orm.DisputeNotification.objects.filter(
            pk=notification_id.value, user_id=user_id
        ).delete()
        return deleted > 0

    def cancel_pending_for_dispute(self, dispute_id: DisputeId) -> int:
        return orm.DisputeNotification.objects.filter(
            dispute_id=dispute_id.value,
            status=NotificationStatus.PENDING.value,
        ).update(status=NotificationStatus.CANCELLED.value)

    def list_due(self, now: datetime) -> list[Notification]:
        rows = orm.DisputeNotification.objects.filter(
            status=NotificationStatus.PENDING.value,
            scheduled_at__isnull=False,
            scheduled_at__lte=now,
        ).order_by("scheduled_at")
        return [notification_to_domain(row) for row in rows]

    def exists_since(
        self, dispute_id: DisputeId, type: NotificationType, since: datetime
    ) -> bool:
        return orm.DisputeNotification.objects.filter(
            dispute_id=dispute_id.value,
            type=type.value,
            created_at__gte=since,
        ).exists()
