"""Interfaces to systems the dispute workflow depends on but does not own.

Ticket ownership, user contact details and file storage live elsewhere.
The lifecycle service only sees these interfaces; concrete classes are
chosen by dotted path in settings.DISPUTES.
"""

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import uuid4

import requests
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.files.storage import default_storage
from django.utils import timezone

from disputes.conf import dispute_setting
from disputes.domain import DisputeId, Evidence, EvidenceType
from disputes.domain.errors import InvalidFieldError, NoEvidenceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TicketInfo:
    id: str
    owner_id: str
    price: Decimal


@dataclass(frozen=True)
class Contact:
    user_id: str
    email: str | None = None
    phone: str | None = None


class TicketLookup(ABC):
    """Source of truth for ticket ownership and price."""

    @abstractmethod
    def get_ticket(self, ticket_id: str) -> TicketInfo | None:
        """Return the ticket, or None if it does not exist."""
        ...


class RecipientDirectory(ABC):
    """Resolves user IDs to contact details for channel senders."""

    @abstractmethod
    def get_contact(self, user_id: str) -> Contact | None:
        ...


class EvidenceProcessor(ABC):
    """Validates and stores uploaded files, returning evidence descriptors.

    validate() runs before the dispute is created or changed; store()
    is the only step that writes files.
    """

    @abstractmethod
    def validate(self, files: Sequence) -> None:
        ...

    @abstractmethod
    def store(self, files: Sequence, dispute_id: DisputeId) -> list[Evidence]:
        ...

    def process(self, files: Sequence, dispute_id: DisputeId) -> list[Evidence]:
        self.validate(files)
        return self.store(files, dispute_id)


class HttpTicketLookup(TicketLookup):
    """Reads tickets from the ticketing service over HTTP."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None) -> None:
        self._base_url = (base_url or dispute_setting("TICKET_SERVICE_URL")).rstrip("/")
        self._timeout = timeout or dispute_setting("TICKET_SERVICE_TIMEOUT")

    def get_ticket(self, ticket_id: str) -> TicketInfo | None:
        resp = requests.get(f"{self._base_url}/tickets/{ticket_id}", timeout=self._timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        body = resp.json()
        owner = body.get("owner_id") or body.get("user_id")
        return TicketInfo(
            id=str(body.get("ticket_id") or body.get("id") or ticket_id),
            owner_id=str(owner),
            price=Decimal(str(body.get("price", 0))),
        )


class DjangoUserDirectory(RecipientDirectory):
    """Contact details from the configured Django user model."""

    def get_contact(self, user_id: str) -> Contact | None:
        try:
            user = get_user_model().objects.filter(pk=user_id).first()
        except (ValueError, ValidationError):
            logger.warning("Malformed user id %s", user_id)
            return None
        if user is None:
            return None
        phone = getattr(user, "phone", None) or getattr(user, "phone_number", None)
        return Contact(
            user_id=str(user.pk),
            email=user.email or None,
            phone=str(phone) if phone else None,
        )


class StorageEvidenceProcessor(EvidenceProcessor):
    """Stores uploads with Django's default storage under disputes/<id>/."""

    def __init__(
        self,
        allowed_mime_types: Sequence[str] | None = None,
        max_file_size: int | None = None,
        max_files: int | None = None,
    ) -> None:
        self._allowed = set(allowed_mime_types or dispute_setting("ALLOWED_EVIDENCE_MIME_TYPES"))
        self._max_size = max_file_size or dispute_setting("MAX_EVIDENCE_FILE_SIZE")
        self._max_files = max_files or dispute_setting("MAX_EVIDENCE_FILES")

    def validate(self, files: Sequence) -> None:
        if not files:
            raise NoEvidenceError()
        if len(files) > self._max_files:
            raise InvalidFieldError("files", f"at most {self._max_files} files per upload")
        for upload in files:
            self._check(upload)

    def store(self, files: Sequence, dispute_id: DisputeId) -> list[Evidence]:
        return [self._store(upload, dispute_id) for upload in files]

    def _check(self, upload) -> None:
        if upload.content_type not in self._allowed:
            raise InvalidFieldError("files", f"File type {upload.content_type} is not allowed")
        if upload.size > self._max_size:
            raise InvalidFieldError("files", f"{upload.name} exceeds {self._max_size} bytes")

    def _store(self, upload, dispute_id: DisputeId) -> Evidence:
        file_id = str(uuid4())
        extension = os.path.splitext(upload.name)[1].lower()
        name = default_storage.save(f"disputes/{dispute_id}/{file_id}{extension}", upload)
        logger.info("Stored evidence %s for dispute %s", name, dispute_id)
        return Evidence(
            id=file_id,
            type=EvidenceType.from_mime_type(upload.content_type),
            filename=os.path.basename(name),
            original_name=upload.name,
            mime_type=upload.content_type,
            size=upload.size,
            url=default_storage.url(name),
            uploaded_at=timezone.now(),
        )
