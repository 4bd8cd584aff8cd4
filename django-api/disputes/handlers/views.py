"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Let domain errors propagate to the exception handler
- Never contain business logic
"""

from functools import cached_property

from rest_framework import status
from rest_framework.permissions import IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from disputes import cache
from disputes.conf import dispute_setting
from disputes.domain import Dispute, Page
from disputes.domain.errors import NotificationNotFoundError
from disputes.handlers.permissions import IsSuperUser
from disputes.handlers.serializers import (
    AddCommunicationSerializer,
    AdminUpdateSerializer,
    AnalyticsSerializer,
    AssignSerializer,
    BulkUpdateSerializer,
    CreateDisputeSerializer,
    DateWindowSerializer,
    DisputeQuerySerializer,
    DisputeSerializer,
    EscalateSerializer,
    EvidenceSerializer,
    NotificationQuerySerializer,
    NotificationSerializer,
    UpdateDisputeSerializer,
)
from disputes.services.dispute_service import AdminChanges, DisputeChanges
from disputes.wiring import (
    build_dispute_service,
    build_evidence_processor,
    build_notification_service,
)

EVIDENCE_FIELD = "evidence"


def envelope(data=None, message: str | None = None, status_code: int = status.HTTP_200_OK) -> Response:
    body = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return Response(body, status=status_code)


def validated(serializer_class, data, **kwargs):
    serializer = serializer_class(data=data, **kwargs)
    serializer.is_valid(raise_exception=True)
    return serializer


class DisputeAPIView(APIView):
    """Base view carrying the caller identity and the dispute service."""

    @cached_property
    def service(self):
        return build_dispute_service()

    def user_id(self, request: Request) -> str:
        return str(request.user.pk)

    def is_staff(self, request: Request) -> bool:
        return bool(request.user.is_staff)

    def dispute_data(self, request: Request, dispute: Dispute) -> dict:
        return DisputeSerializer(dispute, context={"include_internal": self.is_staff(request)}).data

    def page_data(self, request: Request, page: Page[Dispute]) -> dict:
        context = {"include_internal": self.is_staff(request)}
        return {
            "disputes": DisputeSerializer(page.items, many=True, context=context).data,
            "total": page.total,
            "page": page.page,
            "totalPages": page.total_pages,
        }


class DisputeListView(DisputeAPIView):
    """Handler for GET/POST /api/disputes"""

    def get(self, request: Request) -> Response:
        query = validated(DisputeQuerySerializer, request.query_params).to_query()
        page = self.service.get_user_disputes(self.user_id(request), query)
        return envelope(self.page_data(request, page))

    def post(self, request: Request) -> Response:
        data = validated(CreateDisputeSerializer, request.data).validated_data
        files = request.FILES.getlist(EVIDENCE_FIELD)
        processor = build_evidence_processor()
        if files:
            processor.validate(files)
        dispute = self.service.create_dispute(user_id=self.user_id(request), **data)
        if files:
            evidence = processor.store(files, dispute.id)
            dispute = self.service.add_evidence(str(dispute.id), evidence, self.user_id(request))
        return envelope(
            self.dispute_data(request, dispute),
            message="Dispute created successfully",
            status_code=status.HTTP_201_CREATED,
        )


class DisputeDetailView(DisputeAPIView):
    """Handler for GET/PATCH/DELETE /api/disputes/{dispute_id}"""

    def get(self, request: Request, dispute_id: str) -> Response:
        requester = None if self.is_staff(request) else self.user_id(request)
        dispute = self.service.get_dispute(dispute_id, requester_id=requester)
        return envelope(self.dispute_data(request, dispute))

    def patch(self, request: Request, dispute_id: str) -> Response:
        data = validated(UpdateDisputeSerializer, request.data).validated_data
        dispute = self.service.update_dispute(dispute_id, self.user_id(request), DisputeChanges(**data))
        return envelope(self.dispute_data(request, dispute), message="Dispute updated successfully")

    def delete(self, request: Request, dispute_id: str) -> Response:
        self.service.delete_dispute(dispute_id, self.user_id(request))
        return envelope(message="Dispute cancelled successfully")


class DisputeCommunicationView(DisputeAPIView):
    """Handler for POST /api/disputes/{dispute_id}/communication"""

    def post(self, request: Request, dispute_id: str) -> Response:
        data = validated(AddCommunicationSerializer, request.data).validated_data
        dispute = self.service.add_communication(
            dispute_id,
            self.user_id(request),
            data["message"],
            is_staff=self.is_staff(request),
            is_internal=data["is_internal"],
            attachments=data.get("attachments", ()),
        )
        return envelope(self.dispute_data(request, dispute), message="Message added successfully")


class DisputeEvidenceView(DisputeAPIView):
    """Handler for POST /api/disputes/{dispute_id}/evidence"""

    def post(self, request: Request, dispute_id: str) -> Response:
        requester = None if self.is_staff(request) else self.user_id(request)
        dispute = self.service.ensure_can_add_evidence(dispute_id, requester_id=requester)
        evidence = build_evidence_processor().process(request.FILES.getlist(EVIDENCE_FIELD), dispute.id)
        dispute = self.service.add_evidence(dispute_id, evidence, requester_id=requester)
        return envelope(
            {
                "dispute": self.dispute_data(request, dispute),
                "uploadedFiles": EvidenceSerializer(evidence, many=True).data,
            },
            message="Evidence uploaded successfully",
        )


class DisputeEscalationView(DisputeAPIView):
    """Handler for POST /api/disputes/{dispute_id}/escalate"""

    def post(self, request: Request, dispute_id: str) -> Response:
        data = validated(EscalateSerializer, request.data).validated_data
        dispute = self.service.escalate(
            dispute_id,
            self.user_id(request),
            data["reason"],
            escalated_to=data.get("escalated_to"),
            is_staff=self.is_staff(request),
        )
        return envelope(self.dispute_data(request, dispute), message="Dispute escalated successfully")


class AdminDisputeListView(DisputeAPIView):
    """Handler for GET /api/disputes/admin/all"""

    permission_classes = [IsAdminUser]

    def get(self, request: Request) -> Response:
        query = validated(DisputeQuerySerializer, request.query_params).to_query()
        return envelope(self.page_data(request, self.service.get_all_disputes(query)))


class AdminDisputeDetailView(DisputeAPIView):
    """Handler for PATCH /api/disputes/admin/{dispute_id}"""

    permission_classes = [IsAdminUser]

    def patch(self, request: Request, dispute_id: str) -> Response:
        data = validated(AdminUpdateSerializer, request.data).validated_data
        dispute = self.service.admin_update_dispute(dispute_id, self.user_id(request), AdminChanges(**data))
        return envelope(self.dispute_data(request, dispute), message="Dispute updated successfully")


class AdminDisputeAssignView(DisputeAPIView):
    """Handler for POST /api/disputes/admin/{dispute_id}/assign"""

    permission_classes = [IsSuperUser]

    def post(self, request: Request, dispute_id: str) -> Response:
        data = validated(AssignSerializer, request.data).validated_data
        dispute = self.service.assign_dispute(dispute_id, self.user_id(request), data["admin_id"])
        return envelope(self.dispute_data(request, dispute), message="Dispute assigned successfully")


class AdminBulkUpdateView(DisputeAPIView):
    """Handler for PATCH /api/disputes/admin/bulk-update"""

    permission_classes = [IsSuperUser]

    def patch(self, request: Request) -> Response:
        data = validated(BulkUpdateSerializer, request.data).validated_data
        result = self.service.bulk_update_disputes(
            data["dispute_ids"], self.user_id(request), AdminChanges(**data["update_data"])
        )
        return envelope(
            {
                "results": [
                    {
                        "disputeId": item.dispute_id,
                        "success": item.success,
                        **(
                            {"dispute": self.dispute_data(request, item.dispute)}
                            if item.success
                            else {"error": item.error}
                        ),
                    }
                    for item in result.results
                ],
                "summary": {
                    "total": len(result.results),
                    "successful": result.success_count,
                    "failed": result.failure_count,
                },
            },
            message=f"Bulk update completed: {result.success_count} successful, {result.failure_count} failed",
        )


class AdminAnalyticsView(DisputeAPIView):
    """Handler for GET /api/disputes/admin/analytics"""

    permission_classes = [IsAdminUser]

    def get(self, request: Request) -> Response:
        window = validated(DateWindowSerializer, request.query_params).validated_data
        start, end = window.get("start_date"), window.get("end_date")
        data = cache.get_analytics(start, end)
        if data is None:
            data = AnalyticsSerializer(self.service.get_dispute_analytics(start, end)).data
            cache.set_analytics(start, end, data)
        return envelope(data)


class NotificationAPIView(APIView):
    @cached_property
    def service(self):
        return build_notification_service()


class NotificationListView(NotificationAPIView):
    """Handler for GET /api/disputes/notifications"""

    def get(self, request: Request) -> Response:
        params = validated(NotificationQuerySerializer, request.query_params).validated_data
        inbox = self.service.get_notifications(
            str(request.user.pk),
            page=params["page"],
            limit=params.get("limit", dispute_setting("NOTIFICATION_PAGE_SIZE")),
            unread_only=params["unread_only"],
            type=params.get("type"),
        )
        return envelope(
            {
                "notifications": NotificationSerializer(inbox.page.items, many=True).data,
                "total": inbox.page.total,
                "unreadCount": inbox.unread_count,
                "page": inbox.page.page,
                "totalPages": inbox.page.total_pages,
            }
        )


class NotificationReadView(NotificationAPIView):
    """Handler for PATCH /api/disputes/notifications/{notification_id}/read"""

    def patch(self, request: Request, notification_id: str) -> Response:
        if not self.service.mark_as_read(notification_id, str(request.user.pk)):
            raise NotificationNotFoundError()
        return envelope(message="Notification marked as read")


class NotificationReadAllView(NotificationAPIView):
    """Handler for PATCH /api/disputes/notifications/mark-all-read"""

    def patch(self, request: Request) -> Response:
        count = self.service.mark_all_as_read(str(request.user.pk))
        return envelope({"count": count}, message=f"{count} notifications marked as read")


class NotificationDetailView(NotificationAPIView):
    """Handler for DELETE /api/disputes/notifications/{notification_id}"""

    def delete(self, request: Request, notification_id: str) -> Response:
        if not self.service.delete_notification(notification_id, str(request.user.pk)):
            raise NotificationNotFoundError()
        return envelope(message="Notification deleted successfully")
