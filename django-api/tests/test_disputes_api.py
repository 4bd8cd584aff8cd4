"""Integration tests for the disputes HTTP API.

Run with: pytest tests/test_disputes_api.py -v
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient

from disputes.models import Dispute as DisputeRow
from disputes.models import DisputeNotification
from disputes.services.collaborators import TicketInfo

CREATE_PAYLOAD = {
    "ticketId": "T-100",
    "disputeType": "refund_request",
    "subject": "Refund please",
    "description": "The event was not what was advertised.",
}


@pytest.fixture
def fan(django_user_model):
    return django_user_model.objects.create_user(username="fan", email="fan@example.com", password="pw")


@pytest.fixture
def other_fan(django_user_model):
    return django_user_model.objects.create_user(username="other", email="other@example.com", password="pw")


@pytest.fixture
def staff(django_user_model):
    return django_user_model.objects.create_user(
        username="agent", email="agent@example.com", password="pw", is_staff=True
    )


@pytest.fixture
def superuser(django_user_model):
    return django_user_model.objects.create_superuser(username="boss", email="boss@example.com", password="pw")


@pytest.fixture
def fan_tickets(registry_tickets, fan):
    for ticket_id in ("T-100", "T-101", "T-102"):
        registry_tickets[ticket_id] = TicketInfo(id=ticket_id, owner_id=str(fan.pk), price=Decimal("25"))
    return registry_tickets


def as_user(client: APIClient, user) -> APIClient:
    client.force_authenticate(user=user)
    return client


def create_dispute(client, **overrides):
    response = client.post("/api/disputes", {**CREATE_PAYLOAD, **overrides}, format="json")
    assert response.status_code == 201, response.data
    return response.data["data"]


@pytest.mark.django_db
class TestCreateDispute:
    """Tests for POST /api/disputes"""

    def test_requires_authentication(self, api_client: APIClient):
        response = api_client.post("/api/disputes", CREATE_PAYLOAD, format="json")
        assert response.status_code in (401, 403)
        assert response.data["success"] is False

    def test_creates_pending_dispute(self, api_client: APIClient, fan, fan_tickets, mailoutbox):
        response = as_user(api_client, fan).post("/api/disputes", CREATE_PAYLOAD, format="json")
        assert response.status_code == 201
        assert response.data["success"] is True
        assert response.data["message"] == "Dispute created successfully"
        data = response.data["data"]
        assert data["status"] == "pending"
        assert data["priority"] == "medium"
        assert data["userId"] == str(fan.pk)
        assert data["escalationLevel"] == 0
        assert len(data["communicationHistory"]) == 1
        assert data["communicationHistory"][0]["from"] == str(fan.pk)
        assert [m.subject for m in mailoutbox] == ["Dispute Created Successfully"]

    def test_fraudulent_charge_is_high_priority(self, api_client: APIClient, fan, fan_tickets):
        data = create_dispute(as_user(api_client, fan), disputeType="fraudulent_charge", priority="low")
        assert data["priority"] == "high"

    def test_ticket_of_another_user(self, api_client: APIClient, other_fan, fan_tickets):
        response = as_user(api_client, other_fan).post("/api/disputes", CREATE_PAYLOAD, format="json")
        assert response.status_code == 403
        assert response.data["success"] is False
        assert not DisputeRow.objects.exists()

    def test_duplicate_open_dispute(self, api_client: APIClient, fan, fan_tickets):
        client = as_user(api_client, fan)
        create_dispute(client)
        response = client.post("/api/disputes", CREATE_PAYLOAD, format="json")
        assert response.status_code == 409
        assert response.data["code"] == "DUPLICATE_ACTIVE_DISPUTE"

    def test_validation_errors(self, api_client: APIClient, fan, fan_tickets):
        response = as_user(api_client, fan).post(
            "/api/disputes", {**CREATE_PAYLOAD, "subject": "Hi", "disputeType": "bogus"}, format="json"
        )
        assert response.status_code == 400
        assert response.data["success"] is False
        assert set(response.data["errors"]) >= {"subject", "disputeType"}

    def test_create_with_evidence(self, api_client: APIClient, fan, fan_tickets, settings, tmp_path):
        settings.MEDIA_ROOT = tmp_path
        upload = SimpleUploadedFile("receipt.png", b"\x89PNG fake", content_type="image/png")
        response = as_user(api_client, fan).post(
            "/api/disputes", {**CREATE_PAYLOAD, "evidence": [upload]}, format="multipart"
        )
        assert response.status_code == 201
        [evidence] = response.data["data"]["evidence"]
        assert evidence["originalName"] == "receipt.png"
        assert evidence["type"] == "image"

    def test_rejected_evidence_creates_nothing(self, api_client: APIClient, fan, fan_tickets, settings, tmp_path):
        settings.MEDIA_ROOT = tmp_path
        client = as_user(api_client, fan)
        upload = SimpleUploadedFile("evidence.exe", b"MZ", content_type="application/x-msdownload")
        response = client.post("/api/disputes", {**CREATE_PAYLOAD, "evidence": [upload]}, format="multipart")
        assert response.status_code == 400
        assert response.data["code"] == "INVALID_FIELD"
        assert DisputeRow.objects.count() == 0
        assert not DisputeNotification.objects.exists()

        retry = client.post("/api/disputes", CREATE_PAYLOAD, format="json")
        assert retry.status_code == 201


@pytest.mark.django_db
class TestMyDisputes:
    """Tests for GET/PATCH/DELETE /api/disputes[/{id}]"""

    def test_list_is_scoped_to_user(self, api_client: APIClient, fan, other_fan, fan_tickets):
        fan_tickets["T-200"] = TicketInfo(id="T-200", owner_id=str(other_fan.pk), price=Decimal("10"))
        create_dispute(as_user(api_client, fan))
        create_dispute(as_user(api_client, fan), ticketId="T-101")
        create_dispute(as_user(api_client, other_fan), ticketId="T-200")

        response = as_user(api_client, fan).get("/api/disputes", {"limit": 1})
        assert response.status_code == 200
        data = response.data["data"]
        assert data["total"] == 2
        assert data["totalPages"] == 2
        assert len(data["disputes"]) == 1

    def test_list_rejects_bad_filters(self, api_client: APIClient, fan):
        response = as_user(api_client, fan).get("/api/disputes", {"status": "nope", "page": 0})
        assert response.status_code == 400

    def test_get_hides_other_users_dispute(self, api_client: APIClient, fan, other_fan, fan_tickets):
        dispute = create_dispute(as_user(api_client, fan))
        response = as_user(api_client, other_fan).get(f"/api/disputes/{dispute['id']}")
        assert response.status_code == 404

    def test_get_invalid_id(self, api_client: APIClient, fan):
        response = as_user(api_client, fan).get("/api/disputes/not-a-uuid")
        assert response.status_code == 400
        assert response.data["code"] == "INVALID_DISPUTE_ID"

    def test_update(self, api_client: APIClient, fan, fan_tickets):
        client = as_user(api_client, fan)
        dispute = create_dispute(client)
        response = client.patch(
            f"/api/disputes/{dispute['id']}", {"subject": "Updated subject"}, format="json"
        )
        assert response.status_code == 200
        assert response.data["data"]["subject"] == "Updated subject"
        assert response.data["data"]["communicationHistory"][-1]["message"] == "Dispute updated. Changed: subject"

    def test_cancel_only_while_pending(self, api_client: APIClient, fan, fan_tickets):
        client = as_user(api_client, fan)
        dispute = create_dispute(client)
        assert client.delete(f"/api/disputes/{dispute['id']}").status_code == 200
        assert DisputeRow.objects.get(pk=dispute["id"]).status == "cancelled"

        response = client.delete(f"/api/disputes/{dispute['id']}")
        assert response.status_code == 400
        assert response.data["code"] == "DISPUTE_NOT_PENDING"

    def test_update_terminal_dispute(self, api_client: APIClient, fan, fan_tickets):
        client = as_user(api_client, fan)
        dispute = create_dispute(client)
        client.delete(f"/api/disputes/{dispute['id']}")
        response = client.patch(f"/api/disputes/{dispute['id']}", {"subject": "Too late now"}, format="json")
        assert response.status_code == 400
        assert response.data["code"] == "DISPUTE_CLOSED"


@pytest.mark.django_db
class TestConversation:
    """Tests for communication, evidence and escalation endpoints"""

    def test_user_cannot_post_internal_note(self, api_client: APIClient, fan, fan_tickets):
        client = as_user(api_client, fan)
        dispute = create_dispute(client)
        response = client.post(
            f"/api/disputes/{dispute['id']}/communication",
            {"message": "psst", "isInternal": True},
            format="json",
        )
        assert response.status_code == 403

    def test_internal_notes_hidden_from_complainant(self, api_client: APIClient, fan, staff, fan_tickets):
        dispute = create_dispute(as_user(api_client, fan))
        staff_client = as_user(APIClient(), staff)
        response = staff_client.post(
            f"/api/disputes/{dispute['id']}/communication",
            {"message": "Check payment logs", "isInternal": True},
            format="json",
        )
        assert response.status_code == 200
        assert response.data["data"]["communicationHistory"][-1]["isInternal"] is True

        response = as_user(api_client, fan).get(f"/api/disputes/{dispute['id']}")
        assert all(not entry["isInternal"] for entry in response.data["data"]["communicationHistory"])

    def test_upload_evidence(self, api_client: APIClient, fan, fan_tickets, settings, tmp_path):
        settings.MEDIA_ROOT = tmp_path
        client = as_user(api_client, fan)
        dispute = create_dispute(client)
        upload = SimpleUploadedFile("statement.pdf", b"%PDF-1.4", content_type="application/pdf")
        response = client.post(
            f"/api/disputes/{dispute['id']}/evidence", {"evidence": [upload]}, format="multipart"
        )
        assert response.status_code == 200
        assert response.data["data"]["uploadedFiles"][0]["type"] == "document"
        assert len(response.data["data"]["dispute"]["evidence"]) == 1

    def test_upload_to_finished_dispute_stores_nothing(
        self, api_client: APIClient, fan, staff, fan_tickets, settings, tmp_path
    ):
        settings.MEDIA_ROOT = tmp_path
        dispute = create_dispute(as_user(api_client, fan))
        as_user(APIClient(), staff).patch(
            f"/api/disputes/admin/{dispute['id']}", {"status": "resolved"}, format="json"
        )
        upload = SimpleUploadedFile("late.png", b"\x89PNG fake", content_type="image/png")
        response = as_user(api_client, fan).post(
            f"/api/disputes/{dispute['id']}/evidence", {"evidence": [upload]}, format="multipart"
        )
        assert response.status_code == 400
        assert response.data["code"] == "DISPUTE_CLOSED"
        assert [p for p in tmp_path.rglob("*") if p.is_file()] == []

    def test_upload_without_files(self, api_client: APIClient, fan, fan_tickets):
        client = as_user(api_client, fan)
        dispute = create_dispute(client)
        response = client.post(f"/api/disputes/{dispute['id']}/evidence", {}, format="multipart")
        assert response.status_code == 400
        assert response.data["code"] == "NO_EVIDENCE"

    def test_upload_disallowed_type(self, api_client: APIClient, fan, fan_tickets, settings, tmp_path):
        settings.MEDIA_ROOT = tmp_path
        client = as_user(api_client, fan)
        dispute = create_dispute(client)
        upload = SimpleUploadedFile("run.exe", b"MZ", content_type="application/x-msdownload")
        response = client.post(
            f"/api/disputes/{dispute['id']}/evidence", {"evidence": [upload]}, format="multipart"
        )
        assert response.status_code == 400

    def test_escalate(self, api_client: APIClient, fan, fan_tickets):
        client = as_user(api_client, fan)
        dispute = create_dispute(client)
        url = f"/api/disputes/{dispute['id']}/escalate"
        for _ in range(5):
            response = client.post(url, {"reason": "No answer yet"}, format="json")
            assert response.status_code == 200
        assert response.data["data"]["escalationLevel"] == 5
        assert response.data["data"]["status"] == "escalated"

        response = client.post(url, {"reason": "No answer yet"}, format="json")
        assert response.status_code == 400
        assert response.data["code"] == "MAX_ESCALATION_REACHED"


@pytest.mark.django_db
class TestAdmin:
    """Tests for /api/disputes/admin/*"""

    def test_regular_user_forbidden(self, api_client: APIClient, fan):
        assert as_user(api_client, fan).get("/api/disputes/admin/all").status_code == 403

    def test_list_all_with_filters(self, api_client: APIClient, fan, staff, fan_tickets):
        create_dispute(as_user(api_client, fan))
        create_dispute(as_user(api_client, fan), ticketId="T-101", disputeType="technical_issue")
        response = as_user(api_client, staff).get("/api/disputes/admin/all", {"disputeType": "technical_issue"})
        assert response.status_code == 200
        assert response.data["data"]["total"] == 1

    def test_admin_update(self, api_client: APIClient, fan, staff, fan_tickets):
        dispute = create_dispute(as_user(api_client, fan))
        response = as_user(api_client, staff).patch(
            f"/api/disputes/admin/{dispute['id']}",
            {"status": "resolved", "resolution": "Refunded", "refundAmount": "25.00", "refundStatus": "processed"},
            format="json",
        )
        assert response.status_code == 200
        data = response.data["data"]
        assert data["status"] == "resolved"
        assert data["adminId"] == str(staff.pk)
        assert data["refundAmount"] == "25.00"
        assert data["resolvedAt"] is not None
        types = set(DisputeNotification.objects.values_list("type", flat=True))
        assert {"status_changed", "refund_processed"} <= types

    def test_admin_update_missing_dispute(self, api_client: APIClient, staff):
        response = as_user(api_client, staff).patch(
            f"/api/disputes/admin/{uuid4()}", {"status": "closed"}, format="json"
        )
        assert response.status_code == 404

    def test_bulk_update_requires_superuser(self, api_client: APIClient, staff):
        response = as_user(api_client, staff).patch(
            "/api/disputes/admin/bulk-update",
            {"disputeIds": [str(uuid4())], "updateData": {"priority": "low"}},
            format="json",
        )
        assert response.status_code == 403

    def test_bulk_update_partial_failure(self, api_client: APIClient, fan, superuser, fan_tickets):
        ids = [create_dispute(as_user(api_client, fan), ticketId=t)["id"] for t in ("T-100", "T-101", "T-102")]
        missing = str(uuid4())
        response = as_user(api_client, superuser).patch(
            "/api/disputes/admin/bulk-update",
            {"disputeIds": [ids[0], missing, ids[1], ids[2]], "updateData": {"status": "investigating"}},
            format="json",
        )
        assert response.status_code == 200
        data = response.data["data"]
        assert data["summary"] == {"total": 4, "successful": 3, "failed": 1}
        failed = [r for r in data["results"] if not r["success"]]
        assert failed == [{"disputeId": missing, "success": False, "error": "Dispute not found"}]
        assert set(DisputeRow.objects.values_list("status", flat=True)) == {"investigating"}

    def test_assign(self, api_client: APIClient, fan, superuser, fan_tickets):
        dispute = create_dispute(as_user(api_client, fan))
        response = as_user(api_client, superuser).post(
            f"/api/disputes/admin/{dispute['id']}/assign", {"adminId": "agent-9"}, format="json"
        )
        assert response.status_code == 200
        assert response.data["data"]["adminId"] == "agent-9"
        assert response.data["data"]["status"] == "under_review"

    def test_analytics(self, api_client: APIClient, fan, staff, fan_tickets):
        create_dispute(as_user(api_client, fan))
        create_dispute(as_user(api_client, fan), ticketId="T-101")
        response = as_user(api_client, staff).get("/api/disputes/admin/analytics")
        assert response.status_code == 200
        data = response.data["data"]
        assert data["totalDisputes"] == 2
        assert sum(data["byStatus"].values()) == 2
        assert data["escalationRate"] == 0.0
        assert data["resolutionTime"] == {"average": 0.0, "median": 0.0}

    def test_analytics_rejects_inverted_window(self, api_client: APIClient, staff):
        response = as_user(api_client, staff).get(
            "/api/disputes/admin/analytics", {"startDate": "2024-02-01", "endDate": "2024-01-01"}
        )
        assert response.status_code == 400


@pytest.mark.django_db
class TestNotifications:
    """Tests for /api/disputes/notifications*"""

    def test_inbox(self, api_client: APIClient, fan, fan_tickets):
        client = as_user(api_client, fan)
        create_dispute(client)
        response = client.get("/api/disputes/notifications")
        assert response.status_code == 200
        data = response.data["data"]
        assert data["total"] == 1
        assert data["unreadCount"] == 1
        assert data["notifications"][0]["type"] == "dispute_created"

    def test_mark_read_and_delete(self, api_client: APIClient, fan, other_fan, fan_tickets):
        client = as_user(api_client, fan)
        create_dispute(client)
        notification_id = str(DisputeNotification.objects.get().pk)

        assert client.patch(f"/api/disputes/notifications/{notification_id}/read").status_code == 200
        assert client.patch(f"/api/disputes/notifications/{notification_id}/read").status_code == 200
        assert client.get("/api/disputes/notifications").data["data"]["unreadCount"] == 0

        other = as_user(APIClient(), other_fan)
        assert other.delete(f"/api/disputes/notifications/{notification_id}").status_code == 404
        assert client.delete(f"/api/disputes/notifications/{notification_id}").status_code == 200
        assert not DisputeNotification.objects.exists()

    def test_mark_all_read(self, api_client: APIClient, fan, fan_tickets):
        client = as_user(api_client, fan)
        create_dispute(client)
        create_dispute(client, ticketId="T-101")
        response = client.patch("/api/disputes/notifications/mark-all-read")
        assert response.status_code == 200
        assert response.data["data"] == {"count": 2}
