"""Unit tests for domain primitives.

These test invariants that must hold at construction time.
Run with: pytest tests/test_domain.py -v
"""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from disputes.domain import (
    CommunicationEntry,
    CommunicationType,
    DisputeId,
    DisputePriority,
    DisputeQuery,
    DisputeStatus,
    DisputeType,
    EscalationLevel,
    EvidenceType,
    Money,
    Page,
)
from disputes.domain import rules
from disputes.domain.errors import (
    ConflictError,
    DisputeNotFoundError,
    DuplicateActiveDisputeError,
    InvalidFieldError,
    NotFoundError,
)
from tests.fakes import START, make_dispute


class TestMoney:
    """Tests for Money value object."""

    def test_money_accepts_zero(self):
        assert Money(Decimal("0")).amount == Decimal("0")

    def test_money_rejects_negative_amount(self):
        with pytest.raises(ValueError):
            Money(Decimal("-0.01"))

    def test_money_str_format(self):
        """Money string representation is formatted to 2 decimal places."""
        assert str(Money(Decimal("12.5"))) == "12.50"


class TestEscalationLevel:
    def test_defaults_to_zero(self):
        assert EscalationLevel().value == 0

    @pytest.mark.parametrize("value", [-1, 6])
    def test_rejects_out_of_range(self, value):
        with pytest.raises(ValueError):
            EscalationLevel(value)

    def test_raised_stops_at_five(self):
        level = EscalationLevel(5)
        assert level.is_max
        with pytest.raises(ValueError):
            level.raised()


class TestDisputeId:
    """Tests for DisputeId value object."""

    def test_from_string_valid_uuid(self):
        value = uuid4()
        assert DisputeId.from_string(str(value)).value == value

    def test_from_string_invalid_uuid(self):
        """DisputeId.from_string raises ValueError for invalid UUID."""
        with pytest.raises(ValueError):
            DisputeId.from_string("not-a-uuid")


class TestStatuses:
    def test_terminal_statuses(self):
        terminal = {s for s in DisputeStatus if s.is_terminal}
        assert terminal == {
            DisputeStatus.RESOLVED,
            DisputeStatus.REJECTED,
            DisputeStatus.APPROVED,
            DisputeStatus.CANCELLED,
            DisputeStatus.CLOSED,
        }

    def test_cancelled_is_not_a_resolution(self):
        assert not DisputeStatus.CANCELLED.is_resolution
        assert DisputeStatus.APPROVED.is_resolution

    def test_priority_rank_follows_severity(self):
        ranks = [p.rank for p in DisputePriority]
        assert ranks == sorted(ranks)
        assert DisputePriority.CRITICAL.rank > DisputePriority.LOW.rank


class TestEvidenceType:
    @pytest.mark.parametrize(
        "mime_type, expected",
        [
            ("image/png", EvidenceType.IMAGE),
            ("video/mp4", EvidenceType.VIDEO),
            ("audio/wav", EvidenceType.AUDIO),
            ("application/pdf", EvidenceType.DOCUMENT),
            ("text/plain", EvidenceType.DOCUMENT),
            ("application/zip", EvidenceType.OTHER),
        ],
    )
    def test_from_mime_type(self, mime_type, expected):
        assert EvidenceType.from_mime_type(mime_type) is expected


class TestResolvePriority:
    def test_expensive_ticket_forces_high(self):
        priority = rules.resolve_priority(DisputePriority.LOW, DisputeType.OTHER, Decimal("500.01"))
        assert priority is DisputePriority.HIGH

    def test_fraudulent_charge_forces_high(self):
        priority = rules.resolve_priority(
            DisputePriority.CRITICAL, DisputeType.FRAUDULENT_CHARGE, Decimal("10")
        )
        assert priority is DisputePriority.HIGH

    def test_price_at_threshold_keeps_request(self):
        priority = rules.resolve_priority(DisputePriority.LOW, DisputeType.OTHER, Decimal("500"))
        assert priority is DisputePriority.LOW

    def test_defaults_to_medium(self):
        assert rules.resolve_priority(None, DisputeType.OTHER, Decimal("10")) is DisputePriority.MEDIUM


class TestFieldRules:
    def test_subject_too_short(self):
        with pytest.raises(InvalidFieldError):
            rules.validate_subject("abcd")

    def test_description_bounds(self):
        assert rules.validate_description("x" * 10) == "x" * 10
        with pytest.raises(InvalidFieldError):
            rules.validate_description("x" * 2001)

    def test_too_many_tags(self):
        with pytest.raises(InvalidFieldError):
            rules.validate_tags([f"tag{i}" for i in range(11)])

    def test_tag_too_long(self):
        with pytest.raises(InvalidFieldError):
            rules.validate_tags(["x" * 51])


class TestDisputeAggregate:
    def test_communication_sent_at_never_goes_backwards(self):
        later = START + timedelta(hours=1)
        dispute = make_dispute().with_communication(
            CommunicationEntry(type=CommunicationType.USER_MESSAGE, sender_id="u", message="a", sent_at=later)
        )
        dispute = dispute.with_communication(
            CommunicationEntry(type=CommunicationType.USER_MESSAGE, sender_id="u", message="b", sent_at=START)
        )
        sent = [entry.sent_at for entry in dispute.communication_history]
        assert sent == [later, later]
        assert dispute.last_activity_at == later

    def test_escalated_forces_status_and_appends_history(self):
        at = START + timedelta(minutes=5)
        dispute = make_dispute(status=DisputeStatus.UNDER_REVIEW).escalated("user-1", "No reply", at)
        assert dispute.status is DisputeStatus.ESCALATED
        assert dispute.escalation_level.value == 1
        assert dispute.escalation_history[-1].level == 1
        assert dispute.updated_at == at

    def test_with_status_stamps_resolved_at_once(self):
        first = START + timedelta(days=1)
        dispute = make_dispute().with_status(DisputeStatus.RESOLVED, first)
        dispute = dispute.with_status(DisputeStatus.CLOSED, first + timedelta(days=1))
        assert dispute.resolved_at == first

    def test_cancellation_does_not_stamp_resolved_at(self):
        dispute = make_dispute().with_status(DisputeStatus.CANCELLED, START)
        assert dispute.resolved_at is None


class TestQueries:
    def test_dispute_query_rejects_zero_page(self):
        with pytest.raises(ValueError):
            DisputeQuery(page=0)

    def test_offset(self):
        assert DisputeQuery(page=3, limit=10).offset == 20

    def test_total_pages_rounds_up(self):
        assert Page(items=[], total=21, page=1, limit=10).total_pages == 3
        assert Page(items=[], total=0, page=1, limit=10).total_pages == 0


class TestErrors:
    def test_error_categories(self):
        assert isinstance(DisputeNotFoundError(), NotFoundError)
        assert isinstance(DuplicateActiveDisputeError(), ConflictError)

    def test_str_includes_code(self):
        assert str(DisputeNotFoundError()) == "DISPUTE_NOT_FOUND: Dispute not found"
