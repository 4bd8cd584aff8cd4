"""Builds services from settings.DISPUTES.

Handlers and tasks call these factories instead of constructing
services themselves, so collaborators can be swapped per environment.
"""

from datetime import timedelta
from decimal import Decimal

from django.utils.module_loading import import_string

from disputes.conf import dispute_setting
from disputes.services.channels import default_channels
from disputes.services.collaborators import EvidenceProcessor, RecipientDirectory, TicketLookup
from disputes.services.dispute_service import DisputeService
from disputes.services.notification_service import NotificationService
from disputes.stores.django_store import DjangoDisputeStore, DjangoNotificationStore


def _collaborator(name: str):
    return import_string(dispute_setting(name))()


def build_ticket_lookup() -> TicketLookup:
    return _collaborator("TICKET_LOOKUP")


def build_recipient_directory() -> RecipientDirectory:
    return _collaborator("RECIPIENT_DIRECTORY")


def build_evidence_processor() -> EvidenceProcessor:
    return _collaborator("EVIDENCE_PROCESSOR")


def build_notification_service() -> NotificationService:
    return NotificationService(
        store=DjangoNotificationStore(),
        disputes=DjangoDisputeStore(),
        senders=default_channels(build_recipient_directory()),
        reminder_after=timedelta(hours=dispute_setting("REMINDER_AFTER_HOURS")),
    )


def build_dispute_service() -> DisputeService:
    return DisputeService(
        store=DjangoDisputeStore(),
        notifications=build_notification_service(),
        tickets=build_ticket_lookup(),
        high_value_price=Decimal(str(dispute_setting("HIGH_VALUE_TICKET_PRICE"))),
    )
