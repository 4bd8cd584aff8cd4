"""Pytest configuration and shared fixtures."""

import pytest
from rest_framework.test import APIClient

from disputes.domain import DisputeType, NotificationChannel
from disputes.services.dispute_service import DisputeService
from disputes.services.notification_service import NotificationService
from tests.fakes import (
    FakeClock,
    InMemoryDisputeStore,
    InMemoryNotificationStore,
    RecordingSender,
    RegistryTicketLookup,
    StaticTicketLookup,
)


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def dispute_store() -> InMemoryDisputeStore:
    return InMemoryDisputeStore()


@pytest.fixture
def notification_store() -> InMemoryNotificationStore:
    return InMemoryNotificationStore()


@pytest.fixture
def tickets() -> StaticTicketLookup:
    lookup = StaticTicketLookup()
    lookup.register("T-1", owner_id="user-1")
    lookup.register("T-2", owner_id="user-1")
    lookup.register("T-EXPENSIVE", owner_id="user-1", price="750.00")
    lookup.register("T-OTHER", owner_id="user-2")
    return lookup


@pytest.fixture
def senders() -> dict[NotificationChannel, RecordingSender]:
    return {channel: RecordingSender(channel) for channel in NotificationChannel}


@pytest.fixture
def notification_service(notification_store, dispute_store, senders, clock) -> NotificationService:
    return NotificationService(
        store=notification_store,
        disputes=dispute_store,
        senders=senders.values(),
        clock=clock,
    )


@pytest.fixture
def service(dispute_store, notification_service, tickets, clock) -> DisputeService:
    return DisputeService(
        store=dispute_store,
        notifications=notification_service,
        tickets=tickets,
        clock=clock,
    )


@pytest.fixture
def open_dispute(service):
    """A pending dispute on ticket T-1 owned by user-1."""
    return service.create_dispute(
        user_id="user-1",
        ticket_id="T-1",
        dispute_type=DisputeType.REFUND_REQUEST,
        subject="Refund please",
        description="The event was not what was advertised.",
    )


@pytest.fixture
def registry_tickets(settings):
    """Points the API at RegistryTicketLookup and clears it around the test."""
    settings.DISPUTES = {
        **settings.DISPUTES,
        "TICKET_LOOKUP": "tests.fakes.RegistryTicketLookup",
    }
    RegistryTicketLookup.tickets = {}
    yield RegistryTicketLookup.tickets
    RegistryTicketLookup.tickets = {}
