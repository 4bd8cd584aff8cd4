"""Tests for the concrete ticket, contact and evidence collaborators.

Run with: pytest tests/test_collaborators.py -v
"""

from decimal import Decimal
from unittest import mock
from uuid import uuid4

import pytest
import requests
from django.core.files.uploadedfile import SimpleUploadedFile

from disputes.domain import DisputeId, EvidenceType
from disputes.domain.errors import InvalidFieldError, NoEvidenceError
from disputes.services import collaborators
from disputes.services.collaborators import (
    DjangoUserDirectory,
    HttpTicketLookup,
    StorageEvidenceProcessor,
    TicketInfo,
)


def fake_response(status_code=200, body=None):
    resp = mock.Mock(status_code=status_code)
    resp.json.return_value = body or {}
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return resp


class TestHttpTicketLookup:
    def test_parses_ticket(self):
        body = {"ticket_id": "T-9", "owner_id": 42, "price": "120.50"}
        with mock.patch.object(collaborators.requests, "get", return_value=fake_response(body=body)) as get:
            ticket = HttpTicketLookup(base_url="https://tickets.example.com/", timeout=2).get_ticket("T-9")
        get.assert_called_once_with("https://tickets.example.com/tickets/T-9", timeout=2)
        assert ticket == TicketInfo(id="T-9", owner_id="42", price=Decimal("120.50"))

    def test_missing_ticket(self):
        with mock.patch.object(collaborators.requests, "get", return_value=fake_response(404)):
            assert HttpTicketLookup(base_url="https://tickets.example.com").get_ticket("T-0") is None

    def test_server_error_propagates(self):
        with mock.patch.object(collaborators.requests, "get", return_value=fake_response(503)):
            with pytest.raises(requests.HTTPError):
                HttpTicketLookup(base_url="https://tickets.example.com").get_ticket("T-0")


@pytest.mark.django_db
class TestDjangoUserDirectory:
    def test_contact_from_user(self, django_user_model):
        user = django_user_model.objects.create_user(username="fan", email="fan@example.com", password="pw")
        contact = DjangoUserDirectory().get_contact(str(user.pk))
        assert contact.email == "fan@example.com"
        assert contact.phone is None

    def test_unknown_and_malformed_ids(self):
        assert DjangoUserDirectory().get_contact("999999") is None
        assert DjangoUserDirectory().get_contact("user-1") is None


class TestStorageEvidenceProcessor:
    @pytest.fixture(autouse=True)
    def media_root(self, settings, tmp_path):
        settings.MEDIA_ROOT = tmp_path
        return tmp_path

    def test_stores_files(self, media_root):
        dispute_id = DisputeId(uuid4())
        upload = SimpleUploadedFile("photo.JPG", b"jpeg-bytes", content_type="image/jpeg")
        [evidence] = StorageEvidenceProcessor().process([upload], dispute_id)
        assert evidence.type is EvidenceType.IMAGE
        assert evidence.original_name == "photo.JPG"
        assert evidence.filename.endswith(".jpg")
        assert evidence.size == len(b"jpeg-bytes")
        assert (media_root / "disputes" / str(dispute_id) / evidence.filename).exists()

    def test_requires_files(self):
        with pytest.raises(NoEvidenceError):
            StorageEvidenceProcessor().process([], DisputeId(uuid4()))

    def test_rejects_oversized_file(self):
        upload = SimpleUploadedFile("big.pdf", b"x" * 11, content_type="application/pdf")
        with pytest.raises(InvalidFieldError):
            StorageEvidenceProcessor(max_file_size=10).process([upload], DisputeId(uuid4()))

    def test_rejects_too_many_files(self):
        uploads = [SimpleUploadedFile(f"{i}.txt", b"x", content_type="text/plain") for i in range(3)]
        with pytest.raises(InvalidFieldError):
            StorageEvidenceProcessor(max_files=2).process(uploads, DisputeId(uuid4()))

    def test_nothing_stored_when_one_file_is_rejected(self, media_root):
        uploads = [
            SimpleUploadedFile("ok.txt", b"x", content_type="text/plain"),
            SimpleUploadedFile("bad.exe", b"MZ", content_type="application/x-msdownload"),
        ]
        with pytest.raises(InvalidFieldError):
            StorageEvidenceProcessor().process(uploads, DisputeId(uuid4()))
        assert not (media_root / "disputes").exists()

    def test_validate_writes_nothing(self, media_root):
        upload = SimpleUploadedFile("ok.txt", b"x", content_type="text/plain")
        StorageEvidenceProcessor().validate([upload])
        assert not (media_root / "disputes").exists()
