"""Dispute settings with defaults, overridable through settings.DISPUTES."""

from decimal import Decimal
from typing import Any

from django.conf import settings

DEFAULTS: dict[str, Any] = {
    "TICKET_LOOKUP": "disputes.services.collaborators.HttpTicketLookup",
    "RECIPIENT_DIRECTORY": "disputes.services.collaborators.DjangoUserDirectory",
    "EVIDENCE_PROCESSOR": "disputes.services.collaborators.StorageEvidenceProcessor",
    "TICKET_SERVICE_URL": "http://localhost:8001",
    "TICKET_SERVICE_TIMEOUT": 5,
    "HIGH_VALUE_TICKET_PRICE": Decimal("500"),
    "REMINDER_AFTER_HOURS": 24,
    "DEFAULT_PAGE_SIZE": 10,
    "MAX_PAGE_SIZE": 100,
    "NOTIFICATION_PAGE_SIZE": 20,
    "MAX_EVIDENCE_FILES": 5,
    "MAX_EVIDENCE_FILE_SIZE": 10 * 1024 * 1024,
    "ALLOWED_EVIDENCE_MIME_TYPES": [
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "text/plain",
        "video/mp4",
        "video/mpeg",
        "audio/mpeg",
        "audio/wav",
    ],
    "WEBHOOK_URL": "",
    "PUSH_GATEWAY_URL": "",
    "CHANNEL_TIMEOUT": 5,
    "ANALYTICS_CACHE_TIMEOUT": 300,
}


def dispute_setting(name: str) -> Any:
    overrides = getattr(settings, "DISPUTES", {}) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
