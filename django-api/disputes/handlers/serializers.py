"""Serializers for request validation and domain-model responses.

Request serializers validate input format and map camelCase payload keys
onto service arguments through ``source``. Response serializers read the
frozen domain dataclasses directly.
"""

from enum import Enum

from rest_framework import serializers

from disputes.conf import dispute_setting
from disputes.domain import (
    CommunicationType,
    DisputePriority,
    DisputeQuery,
    DisputeStatus,
    DisputeType,
    EvidenceType,
    NotificationChannel,
    NotificationStatus,
    NotificationType,
    RefundStatus,
    SortField,
    SortOrder,
)
from disputes.domain import rules

DATE_INPUT_FORMATS = ["iso-8601", "%Y-%m-%d"]


class EnumField(serializers.ChoiceField):
    """Choice field that reads and writes Enum members by value."""

    def __init__(self, enum: type[Enum], **kwargs) -> None:
        self.enum = enum
        super().__init__(choices=[member.value for member in enum], **kwargs)

    def to_internal_value(self, data):
        return self.enum(super().to_internal_value(data))

    def to_representation(self, value):
        return value.value if isinstance(value, Enum) else value


# -- responses ------------------------------------------------------------------


class EvidenceSerializer(serializers.Serializer):
    id = serializers.CharField()
    type = EnumField(EvidenceType)
    filename = serializers.CharField()
    originalName = serializers.CharField(source="original_name")
    mimeType = serializers.CharField(source="mime_type")
    size = serializers.IntegerField()
    url = serializers.CharField()
    uploadedAt = serializers.DateTimeField(source="uploaded_at")
    description = serializers.CharField(allow_null=True)


class EscalationEntrySerializer(serializers.Serializer):
    level = serializers.IntegerField()
    escalatedBy = serializers.CharField(source="escalated_by")
    escalatedTo = serializers.CharField(source="escalated_to", allow_null=True)
    reason = serializers.CharField()
    escalatedAt = serializers.DateTimeField(source="escalated_at")


class CommunicationEntrySerializer(serializers.Serializer):
    type = EnumField(CommunicationType)
    sender = serializers.CharField(source="sender_id")
    recipient = serializers.CharField(source="recipient_id", allow_null=True)
    subject = serializers.CharField(allow_null=True)
    message = serializers.CharField()
    attachments = serializers.ListField(child=serializers.CharField())
    sentAt = serializers.DateTimeField(source="sent_at")
    readAt = serializers.DateTimeField(source="read_at", allow_null=True)
    isInternal = serializers.BooleanField(source="is_internal")

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data["from"] = data.pop("sender")
        data["to"] = data.pop("recipient")
        return data


class DisputeSerializer(serializers.Serializer):
    """Serializer for Dispute domain model."""

    id = serializers.CharField()
    ticketId = serializers.CharField(source="ticket_id")
    userId = serializers.CharField(source="user_id")
    disputeType = EnumField(DisputeType, source="dispute_type")
    status = EnumField(DisputeStatus)
    priority = EnumField(DisputePriority)
    subject = serializers.CharField()
    description = serializers.CharField()
    tags = serializers.ListField(child=serializers.CharField())
    metadata = serializers.DictField()
    evidence = EvidenceSerializer(many=True)
    escalationLevel = serializers.IntegerField(source="escalation_level.value")
    escalationHistory = EscalationEntrySerializer(source="escalation_history", many=True)
    communicationHistory = serializers.SerializerMethodField()
    adminId = serializers.CharField(source="admin_id", allow_null=True)
    adminResponse = serializers.CharField(source="admin_response", allow_null=True)
    resolution = serializers.CharField(allow_null=True)
    refundAmount = serializers.SerializerMethodField()
    refundStatus = EnumField(RefundStatus, source="refund_status", allow_null=True)
    createdAt = serializers.DateTimeField(source="created_at")
    updatedAt = serializers.DateTimeField(source="updated_at")
    lastActivityAt = serializers.DateTimeField(source="last_activity_at")
    resolvedAt = serializers.DateTimeField(source="resolved_at", allow_null=True)

    def get_communicationHistory(self, obj):
        entries = obj.communication_history
        if not self.context.get("include_internal", False):
            entries = [entry for entry in entries if not entry.is_internal]
        return CommunicationEntrySerializer(entries, many=True).data

    def get_refundAmount(self, obj):
        return str(obj.refund_amount) if obj.refund_amount is not None else None


class ChannelDeliverySerializer(serializers.Serializer):
    channel = EnumField(NotificationChannel)
    succeeded = serializers.BooleanField()
    attemptedAt = serializers.DateTimeField(source="attempted_at")
    error = serializers.CharField(allow_null=True)


class NotificationSerializer(serializers.Serializer):
    id = serializers.CharField()
    disputeId = serializers.CharField(source="dispute_id")
    userId = serializers.CharField(source="user_id")
    type = EnumField(NotificationType)
    title = serializers.CharField()
    message = serializers.CharField()
    data = serializers.DictField()
    channels = serializers.ListField(child=EnumField(NotificationChannel))
    status = EnumField(NotificationStatus)
    deliveries = ChannelDeliverySerializer(many=True)
    scheduledAt = serializers.DateTimeField(source="scheduled_at", allow_null=True)
    sentAt = serializers.DateTimeField(source="sent_at", allow_null=True)
    deliveredAt = serializers.DateTimeField(source="delivered_at", allow_null=True)
    readAt = serializers.DateTimeField(source="read_at", allow_null=True)
    createdAt = serializers.DateTimeField(source="created_at")


class ResolutionTimeSerializer(serializers.Serializer):
    average = serializers.FloatField()
    median = serializers.FloatField()


class AnalyticsSerializer(serializers.Serializer):
    totalDisputes = serializers.IntegerField(source="total_disputes")
    byStatus = serializers.DictField(source="by_status", child=serializers.IntegerField())
    byType = serializers.DictField(source="by_type", child=serializers.IntegerField())
    byPriority = serializers.DictField(source="by_priority", child=serializers.IntegerField())
    resolutionTime = ResolutionTimeSerializer(source="resolution_time")
    escalatedDisputes = serializers.IntegerField(source="escalated_disputes")
    escalationRate = serializers.FloatField(source="escalation_rate")


# -- requests ---------------------------------------------------------------------


def _tags_field(**kwargs):
    return serializers.ListField(
        child=serializers.CharField(max_length=rules.TAG_MAX_LENGTH),
        max_length=rules.MAX_TAGS,
        **kwargs,
    )


class CreateDisputeSerializer(serializers.Serializer):
    ticketId = serializers.CharField(source="ticket_id", max_length=64)
    disputeType = EnumField(DisputeType, source="dispute_type")
    priority = EnumField(DisputePriority, required=False)
    subject = serializers.CharField(
        min_length=rules.SUBJECT_MIN_LENGTH, max_length=rules.SUBJECT_MAX_LENGTH
    )
    description = serializers.CharField(
        min_length=rules.DESCRIPTION_MIN_LENGTH, max_length=rules.DESCRIPTION_MAX_LENGTH
    )
    tags = _tags_field(required=False)
    metadata = serializers.DictField(required=False)


class UpdateDisputeSerializer(serializers.Serializer):
    subject = serializers.CharField(
        required=False, min_length=rules.SUBJECT_MIN_LENGTH, max_length=rules.SUBJECT_MAX_LENGTH
    )
    description = serializers.CharField(
        required=False,
        min_length=rules.DESCRIPTION_MIN_LENGTH,
        max_length=rules.DESCRIPTION_MAX_LENGTH,
    )
    tags = _tags_field(required=False)
    metadata = serializers.DictField(required=False)


class AddCommunicationSerializer(serializers.Serializer):
    message = serializers.CharField(min_length=1, max_length=rules.MESSAGE_MAX_LENGTH)
    isInternal = serializers.BooleanField(source="is_internal", default=False)
    attachments = serializers.ListField(
        child=serializers.CharField(), max_length=rules.MAX_ATTACHMENTS, required=False
    )


class EscalateSerializer(serializers.Serializer):
    reason = serializers.CharField(min_length=1, max_length=rules.REASON_MAX_LENGTH)
    escalatedTo = serializers.CharField(source="escalated_to", required=False, max_length=64)


class AdminUpdateSerializer(serializers.Serializer):
    status = EnumField(DisputeStatus, required=False)
    priority = EnumField(DisputePriority, required=False)
    adminResponse = serializers.CharField(
        source="admin_response", required=False, max_length=rules.ADMIN_TEXT_MAX_LENGTH
    )
    resolution = serializers.CharField(required=False, max_length=rules.ADMIN_TEXT_MAX_LENGTH)
    refundAmount = serializers.DecimalField(
        source="refund_amount", required=False, max_digits=10, decimal_places=2, min_value=0
    )
    refundStatus = EnumField(RefundStatus, source="refund_status", required=False)
    tags = _tags_field(required=False)
    escalationLevel = serializers.IntegerField(
        source="escalation_level", required=False, min_value=0, max_value=5
    )


class BulkUpdateSerializer(serializers.Serializer):
    disputeIds = serializers.ListField(
        source="dispute_ids", child=serializers.CharField(), allow_empty=False
    )
    updateData = AdminUpdateSerializer(source="update_data")


class AssignSerializer(serializers.Serializer):
    adminId = serializers.CharField(source="admin_id", max_length=64)


class DateWindowSerializer(serializers.Serializer):
    startDate = serializers.DateTimeField(
        source="start_date", required=False, input_formats=DATE_INPUT_FORMATS
    )
    endDate = serializers.DateTimeField(
        source="end_date", required=False, input_formats=DATE_INPUT_FORMATS
    )

    def validate(self, attrs):
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and start > end:
            raise serializers.ValidationError("startDate must not be after endDate")
        return attrs


class DisputeQuerySerializer(DateWindowSerializer):
    status = EnumField(DisputeStatus, required=False)
    disputeType = EnumField(DisputeType, source="dispute_type", required=False)
    priority = EnumField(DisputePriority, required=False)
    search = serializers.CharField(required=False, max_length=100)
    sortBy = EnumField(SortField, source="sort_by", default=SortField.CREATED_AT)
    sortOrder = EnumField(SortOrder, source="sort_order", default=SortOrder.DESC)
    page = serializers.IntegerField(min_value=1, default=1)
    limit = serializers.IntegerField(min_value=1, required=False)
    adminId = serializers.CharField(source="admin_id", required=False, max_length=64)

    def validate_limit(self, value):
        return min(value, dispute_setting("MAX_PAGE_SIZE"))

    def to_query(self) -> DisputeQuery:
        data = dict(self.validated_data)
        data.setdefault("limit", dispute_setting("DEFAULT_PAGE_SIZE"))
        return DisputeQuery(**data)


class NotificationQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, default=1)
    limit = serializers.IntegerField(min_value=1, required=False)
    unreadOnly = serializers.BooleanField(source="unread_only", default=False)
    type = EnumField(NotificationType, required=False)

    def validate_limit(self, value):
        return min(value, dispute_setting("MAX_PAGE_SIZE"))
