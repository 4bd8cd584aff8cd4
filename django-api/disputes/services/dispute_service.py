"""Dispute service - all business logic lives here.

Services:
- Depend only on interfaces (stores, collaborators)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors

Notifications are a side effect of each state change. A notification
that cannot be created or delivered is logged and never undoes the
change that triggered it.
"""

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import uuid4

from django.utils import timezone

from disputes.domain import (
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
    Money,
    NotificationType,
    Page,
    RefundStatus,
)
from disputes.domain import rules
from disputes.domain.errors import (
    DisputeClosedError,
    DisputeNotFoundError,
    DisputeNotPendingError,
    DomainError,
    DuplicateActiveDisputeError,
    EscalationLevelDecreaseError,
    InvalidDisputeIdError,
    InvalidFieldError,
    MaxEscalationReachedError,
    NoEvidenceError,
    StaffOnlyError,
    TicketNotOwnedError,
)
from disputes.services.analytics_service import DisputeAnalytics, DisputeAnalyticsReport
from disputes.services.collaborators import TicketLookup
from disputes.services.notification_service import NotificationService
from disputes.stores.interfaces import DisputeStore

logger = logging.getLogger(__name__)

NOTIFICATION_PREVIEW_LENGTH = 100


@dataclass(frozen=True)
class DisputeChanges:
    """Fields a complainant may edit. None means unchanged."""

    subject: str | None = None
    description: str | None = None
    tags: Sequence[str] | None = None
    metadata: Mapping[str, Any] | None = None

    def changed_fields(self) -> list[str]:
        return [name for name in ("subject", "description", "tags", "metadata") if getattr(self, name) is not None]


@dataclass(frozen=True)
class AdminChanges:
    """Fields staff may set. None means unchanged."""

    status: DisputeStatus | None = None
    priority: DisputePriority | None = None
    admin_response: str | None = None
    resolution: str | None = None
    refund_amount: Decimal | None = None
    refund_status: RefundStatus | None = None
    tags: Sequence[str] | None = None
    escalation_level: int | None = None


@dataclass(frozen=True)
class BulkItemResult:
    dispute_id: str
    success: bool
    dispute: Dispute | None = None
    error: str | None = None


@dataclass(frozen=True)
class BulkUpdateResult:
    results: list[BulkItemResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if not r.success)


def parse_dispute_id(value: str) -> DisputeId:
    try:
        return DisputeId.from_string(value)
    except ValueError as exc:
        raise InvalidDisputeIdError() from exc


def _validate_metadata(metadata: Any) -> dict[str, Any]:
    if not isinstance(metadata, Mapping):
        raise InvalidFieldError("metadata", "must be an object")
    return dict(metadata)


class DisputeService:
    """Service for the dispute lifecycle."""

    def __init__(
        self,
        store: DisputeStore,
        notifications: NotificationService,
        tickets: TicketLookup,
        clock: Callable[[], datetime] = timezone.now,
        high_value_price: Decimal = rules.DEFAULT_HIGH_VALUE_PRICE,
    ) -> None:
        self._store = store
        self._notifications = notifications
        self._tickets = tickets
        self._clock = clock
        self._high_value_price = high_value_price
        self._analytics = DisputeAnalytics(store)

    # -- complainant operations ----------------------------------------------

    def create_dispute(
        self,
        user_id: str,
        ticket_id: str,
        dispute_type: DisputeType,
        subject: str,
        description: str,
        priority: DisputePriority | None = None,
        tags: Iterable[str] = (),
        metadata: Mapping[str, Any] | None = None,
    ) -> Dispute:
        """Open a dispute on a ticket the user owns.

        Raises:
            TicketNotOwnedError: If the ticket is missing or owned by someone else.
            DuplicateActiveDisputeError: If the ticket already has an open dispute.
            InvalidFieldError: If a field breaks a length or size rule.
        """
        ticket = self._tickets.get_ticket(ticket_id)
        if ticket is None or ticket.owner_id != user_id:
            raise TicketNotOwnedError()

        subject = rules.validate_subject(subject)
        description = rules.validate_description(description)
        tags = rules.validate_tags(tags)
        metadata = _validate_metadata(metadata or {})

        if self._store.find_active_for_ticket(ticket_id) is not None:
            raise DuplicateActiveDisputeError()

        now = self._clock()
        dispute = Dispute(
            id=DisputeId(uuid4()),
            ticket_id=ticket_id,
            user_id=user_id,
            dispute_type=dispute_type,
            priority=rules.resolve_priority(
                priority, dispute_type, ticket.price, self._high_value_price
            ),
            status=DisputeStatus.PENDING,
            subject=subject,
            description=description,
            tags=tags,
            metadata=metadata,
            created_at=now,
            updated_at=now,
            last_activity_at=now,
        ).with_communication(
            CommunicationEntry(
                type=CommunicationType.USER_MESSAGE,
                sender_id=user_id,
                message=f"Dispute created: {description}",
                sent_at=now,
            )
        )
        dispute = self._store.add(dispute)

        self._notify(
            dispute,
            user_id,
            NotificationType.DISPUTE_CREATED,
            title="Dispute Created Successfully",
            message=f"Your dispute for ticket #{ticket_id} has been created and is under review.",
            data={
                "disputeId": str(dispute.id),
                "ticketId": ticket_id,
                "disputeType": dispute_type.value,
            },
        )
        logger.info("Dispute created: %s by user %s", dispute.id, user_id)
        return dispute

    def get_dispute(self, dispute_id: str, requester_id: str | None = None) -> Dispute:
        """Return a dispute by ID.

        When requester_id is given, disputes owned by someone else are
        reported as not found.

        Raises:
            InvalidDisputeIdError: If the dispute_id is not a valid UUID.
            DisputeNotFoundError: If the dispute does not exist or is hidden.
        """
        dispute = self._store.get(parse_dispute_id(dispute_id))
        if dispute is None:
            raise DisputeNotFoundError()
        if requester_id is not None and dispute.user_id != requester_id:
            raise DisputeNotFoundError()
        return dispute

    def get_user_disputes(self, user_id: str, query: DisputeQuery) -> Page[Dispute]:
        return self._store.search(replace(query, user_id=user_id, admin_id=None))

    def update_dispute(self, dispute_id: str, user_id: str, changes: DisputeChanges) -> Dispute:
        """Edit subject, description, tags or metadata of an open dispute.

        Raises:
            DisputeNotFoundError: If the user has no such dispute.
            DisputeClosedError: If the dispute is in a terminal status.
            InvalidFieldError: If nothing changes or a field breaks a rule.
        """
        dispute = self.get_dispute(dispute_id, requester_id=user_id)
        if dispute.is_terminal:
            raise DisputeClosedError()
        changed = changes.changed_fields()
        if not changed:
            raise InvalidFieldError("fields", "no updatable fields supplied")

        updates: dict[str, Any] = {}
        if changes.subject is not None:
            updates["subject"] = rules.validate_subject(changes.subject)
        if changes.description is not None:
            updates["description"] = rules.validate_description(changes.description)
        if changes.tags is not None:
            updates["tags"] = rules.validate_tags(changes.tags)
        if changes.metadata is not None:
            updates["metadata"] = _validate_metadata(changes.metadata)

        now = self._clock()
        dispute = replace(dispute, **updates).with_communication(
            CommunicationEntry(
                type=CommunicationType.USER_MESSAGE,
                sender_id=user_id,
                message=f"Dispute updated. Changed: {', '.join(changed)}",
                sent_at=now,
            )
        )
        dispute = self._store.save(dispute)

        self._notify(
            dispute,
            user_id,
            NotificationType.DISPUTE_UPDATED,
            title="Dispute Updated",
            message="Your dispute has been updated successfully.",
            data={"changes": changed},
        )
        logger.info("Dispute updated: %s by user %s", dispute.id, user_id)
        return dispute

    def delete_dispute(self, dispute_id: str, user_id: str) -> None:
        """Cancel a pending dispute. Disputes are never physically deleted.

        Raises:
            DisputeNotFoundError: If the user has no such dispute.
            DisputeNotPendingError: If the dispute has left the pending status.
        """
        dispute = self.get_dispute(dispute_id, requester_id=user_id)
        if dispute.status is not DisputeStatus.PENDING:
            raise DisputeNotPendingError()

        self._store.save(dispute.with_status(DisputeStatus.CANCELLED, self._clock()))
        try:
            cancelled = self._notifications.cancel_for_dispute(dispute.id)
        except Exception:
            logger.exception("Failed to cancel notifications for dispute %s", dispute.id)
            cancelled = 0
        logger.info(
            "Dispute cancelled: %s by user %s (%d pending notifications cancelled)",
            dispute.id,
            user_id,
            cancelled,
        )

    def add_communication(
        self,
        dispute_id: str,
        actor_id: str,
        message: str,
        is_staff: bool = False,
        is_internal: bool = False,
        attachments: Sequence[str] = (),
    ) -> Dispute:
        """Append a message to the dispute conversation.

        Staff messages go to the complainant; complainant messages go to the
        assigned staff member. Internal notes are staff-only and notify nobody.
        """
        dispute = self.get_dispute(dispute_id, requester_id=None if is_staff else actor_id)
        self._ensure_mutable(dispute, is_staff)
        if is_internal and not is_staff:
            raise StaffOnlyError()
        message = rules.validate_message(message)
        attachments = tuple(attachments)
        if len(attachments) > rules.MAX_ATTACHMENTS:
            raise InvalidFieldError("attachments", f"at most {rules.MAX_ATTACHMENTS} attachments")

        recipient_id = dispute.user_id if is_staff else dispute.admin_id
        dispute = self._store.save(
            dispute.with_communication(
                CommunicationEntry(
                    type=CommunicationType.ADMIN_MESSAGE if is_staff else CommunicationType.USER_MESSAGE,
                    sender_id=actor_id,
                    recipient_id=recipient_id,
                    message=message,
                    attachments=attachments,
                    sent_at=self._clock(),
                    is_internal=is_internal,
                )
            )
        )

        if not is_internal and recipient_id and recipient_id != actor_id:
            self._notify(
                dispute,
                recipient_id,
                NotificationType.ADMIN_RESPONSE if is_staff else NotificationType.DISPUTE_UPDATED,
                title="New Message on Your Dispute",
                message=f"A new message has been added to dispute #{dispute.id}",
                data={"message": message[:NOTIFICATION_PREVIEW_LENGTH]},
            )
        return dispute

    def ensure_can_add_evidence(self, dispute_id: str, requester_id: str | None = None) -> Dispute:
        """Return the dispute if evidence may be attached to it.

        Upload handlers call this before storing any file.

        Raises:
            DisputeNotFoundError: If the dispute does not exist or is hidden.
            DisputeClosedError: If the dispute can no longer change.
        """
        dispute = self.get_dispute(dispute_id, requester_id=requester_id)
        self._ensure_mutable(dispute, is_staff=requester_id is None)
        return dispute

    def add_evidence(
        self,
        dispute_id: str,
        evidence: Sequence[Evidence],
        requester_id: str | None = None,
    ) -> Dispute:
        """Attach evidence already processed by the evidence collaborator."""
        dispute = self.ensure_can_add_evidence(dispute_id, requester_id)
        if not evidence:
            raise NoEvidenceError()
        dispute = self._store.save(dispute.with_evidence(tuple(evidence), self._clock()))
        logger.info("Added %d evidence files to dispute %s", len(evidence), dispute.id)
        return dispute

    def escalate(
        self,
        dispute_id: str,
        escalated_by: str,
        reason: str,
        escalated_to: str | None = None,
        is_staff: bool = False,
    ) -> Dispute:
        """Raise the escalation level by one and move to ESCALATED.

        Raises:
            DisputeNotFoundError: If the dispute does not exist or is hidden.
            DisputeClosedError: If the dispute can no longer change.
            MaxEscalationReachedError: If the dispute is already at level 5.
            DuplicateActiveDisputeError: If staff escalate a finished dispute
                while the ticket has another open one.
        """
        dispute = self.get_dispute(dispute_id, requester_id=None if is_staff else escalated_by)
        self._ensure_mutable(dispute, is_staff)
        if dispute.escalation_level.is_max:
            raise MaxEscalationReachedError()
        reason = rules.validate_reason(reason)
        if dispute.is_terminal:
            self._ensure_can_reopen(dispute)

        dispute = self._store.save(
            dispute.escalated(escalated_by, reason, self._clock(), escalated_to=escalated_to)
        )
        level = dispute.escalation_level.value
        self._notify(
            dispute,
            dispute.user_id,
            NotificationType.ESCALATION,
            title="Dispute Escalated",
            message=f"Your dispute has been escalated to level {level}",
            data={"escalationLevel": level, "reason": reason},
        )
        logger.info("Dispute escalated: %s to level %d", dispute.id, level)
        return dispute

    # -- staff operations ------------------------------------------------------

    def get_all_disputes(self, query: DisputeQuery) -> Page[Dispute]:
        return self._store.search(query)

    def admin_update_dispute(self, dispute_id: str, admin_id: str, changes: AdminChanges) -> Dispute:
        """Apply staff changes and assign the dispute to admin_id.

        Any status may be set from any status short of CLOSED. The first
        move into a resolution status stamps resolved_at; later moves keep it.

        Raises:
            DisputeNotFoundError: If the dispute does not exist.
            DisputeClosedError: If the dispute is closed.
            DuplicateActiveDisputeError: If reopening would leave the ticket
                with two open disputes.
            EscalationLevelDecreaseError: If the escalation level would drop.
        """
        dispute = self.get_dispute(dispute_id)
        self._ensure_mutable(dispute, is_staff=True)
        now = self._clock()
        old_status = dispute.status
        old_refund_status = dispute.refund_status

        updates: dict[str, Any] = {"admin_id": admin_id}
        if changes.priority is not None:
            updates["priority"] = changes.priority
        if changes.admin_response is not None:
            updates["admin_response"] = rules.validate_admin_text("adminResponse", changes.admin_response)
        if changes.resolution is not None:
            updates["resolution"] = rules.validate_admin_text("resolution", changes.resolution)
        if changes.refund_amount is not None:
            updates["refund_amount"] = self._money(changes.refund_amount)
        if changes.refund_status is not None:
            updates["refund_status"] = changes.refund_status
        if changes.tags is not None:
            updates["tags"] = rules.validate_tags(changes.tags)
        dispute = replace(dispute, **updates).touched(now)

        if changes.escalation_level is not None:
            dispute = self._set_escalation_level(dispute, admin_id, changes.escalation_level, now)

        if changes.status is not None and changes.status is not old_status:
            if old_status.is_terminal and not changes.status.is_terminal:
                self._ensure_can_reopen(dispute)
            dispute = dispute.with_status(changes.status, now)

        if changes.admin_response:
            dispute = dispute.with_communication(
                CommunicationEntry(
                    type=CommunicationType.ADMIN_MESSAGE,
                    sender_id=admin_id,
                    recipient_id=dispute.user_id,
                    message=changes.admin_response,
                    sent_at=now,
                )
            )
        dispute = self._store.save(dispute)

        if dispute.status is not old_status:
            self._notify(
                dispute,
                dispute.user_id,
                NotificationType.STATUS_CHANGED,
                title=f"Dispute Status Updated to {dispute.status.value}",
                message=(
                    f"Your dispute status has been changed from {old_status.value} "
                    f"to {dispute.status.value}"
                ),
                data={
                    "oldStatus": old_status.value,
                    "newStatus": dispute.status.value,
                    "adminResponse": changes.admin_response,
                },
            )
        if dispute.refund_status is RefundStatus.PROCESSED and old_refund_status is not RefundStatus.PROCESSED:
            amount = str(dispute.refund_amount) if dispute.refund_amount else None
            self._notify(
                dispute,
                dispute.user_id,
                NotificationType.REFUND_PROCESSED,
                title="Refund Processed",
                message="The refund for your dispute has been processed.",
                data={"refundAmount": amount},
            )
        logger.info("Dispute admin updated: %s by admin %s", dispute.id, admin_id)
        return dispute

    def assign_dispute(self, dispute_id: str, assigned_by: str, admin_id: str) -> Dispute:
        """Hand a dispute to a staff member and put it under review."""
        self.admin_update_dispute(dispute_id, admin_id, AdminChanges(status=DisputeStatus.UNDER_REVIEW))
        return self.add_communication(
            dispute_id,
            assigned_by,
            f"Dispute assigned to admin {admin_id}",
            is_staff=True,
            is_internal=True,
        )

    def bulk_update_disputes(
        self, dispute_ids: Iterable[str], admin_id: str, changes: AdminChanges
    ) -> BulkUpdateResult:
        """Apply the same staff changes to each dispute in turn.

        A failing dispute is recorded and the loop carries on.
        """
        results = []
        for dispute_id in dispute_ids:
            try:
                dispute = self.admin_update_dispute(dispute_id, admin_id, changes)
            except DomainError as exc:
                results.append(BulkItemResult(dispute_id=dispute_id, success=False, error=exc.message))
            except Exception:
                logger.exception("Bulk update failed for dispute %s", dispute_id)
                results.append(BulkItemResult(dispute_id=dispute_id, success=False, error="Unexpected error"))
            else:
                results.append(BulkItemResult(dispute_id=dispute_id, success=True, dispute=dispute))
        result = BulkUpdateResult(results=results)
        logger.info(
            "Bulk update by admin %s: %d successful, %d failed",
            admin_id,
            result.success_count,
            result.failure_count,
        )
        return result

    def get_dispute_analytics(
        self, start_date: datetime | None = None, end_date: datetime | None = None
    ) -> DisputeAnalyticsReport:
        return self._analytics.report(start_date, end_date)

    # -- helpers -----------------------------------------------------------------

    def _ensure_mutable(self, dispute: Dispute, is_staff: bool) -> None:
        # Complainants stop at any terminal status; staff only at CLOSED.
        if is_staff:
            if dispute.status is DisputeStatus.CLOSED:
                raise DisputeClosedError()
        elif dispute.is_terminal:
            raise DisputeClosedError()

    def _ensure_can_reopen(self, dispute: Dispute) -> None:
        # A ticket keeps at most one non-terminal dispute.
        if self._store.find_active_for_ticket(dispute.ticket_id, exclude=dispute.id):
            raise DuplicateActiveDisputeError()

    def _money(self, amount: Decimal) -> Money:
        try:
            return Money(Decimal(str(amount)))
        except (InvalidOperation, ValueError) as exc:
            raise InvalidFieldError("refundAmount", "must be a non-negative number") from exc

    def _set_escalation_level(
        self, dispute: Dispute, admin_id: str, value: int, now: datetime
    ) -> Dispute:
        try:
            level = EscalationLevel(value)
        except ValueError as exc:
            raise InvalidFieldError("escalationLevel", str(exc)) from exc
        if level.value < dispute.escalation_level.value:
            raise EscalationLevelDecreaseError()
        if level == dispute.escalation_level:
            return dispute
        entry = EscalationEntry(
            level=level.value,
            escalated_by=admin_id,
            reason="Escalation level set by staff",
            escalated_at=now,
        )
        return replace(
            dispute,
            escalation_level=level,
            escalation_history=dispute.escalation_history + (entry,),
        )

    def _notify(
        self,
        dispute: Dispute,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        data: Mapping[str, Any],
    ) -> None:
        try:
            self._notifications.create_notification(
                dispute_id=dispute.id,
                user_id=user_id,
                type=type,
                title=title[:200],
                message=message,
                data=data,
            )
        except Exception:
            logger.exception("Failed to create %s notification for dispute %s", type.value, dispute.id)
