"""Domain error codes for the disputes module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    DISPUTE_NOT_FOUND = "DISPUTE_NOT_FOUND"
    NOTIFICATION_NOT_FOUND = "NOTIFICATION_NOT_FOUND"
    INVALID_DISPUTE_ID = "INVALID_DISPUTE_ID"
    INVALID_FIELD = "INVALID_FIELD"
    NO_EVIDENCE = "NO_EVIDENCE"
    TICKET_NOT_OWNED = "TICKET_NOT_OWNED"
    STAFF_ONLY = "STAFF_ONLY"
    DUPLICATE_ACTIVE_DISPUTE = "DUPLICATE_ACTIVE_DISPUTE"
    DISPUTE_CLOSED = "DISPUTE_CLOSED"
    DISPUTE_NOT_PENDING = "DISPUTE_NOT_PENDING"
    MAX_ESCALATION_REACHED = "MAX_ESCALATION_REACHED"
    ESCALATION_LEVEL_DECREASE = "ESCALATION_LEVEL_DECREASE"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class NotFoundError(DomainError):
    """The record is absent or not visible to the requester."""


class PermissionDeniedError(DomainError):
    """The caller may not perform the operation."""


class ConflictError(DomainError):
    """The operation collides with existing state."""


class BusinessRuleError(DomainError):
    """The operation is not allowed in the record's current state."""


class ValidationError(DomainError):
    """Malformed input."""


class DisputeNotFoundError(NotFoundError):
    """Raised when a dispute is not found."""

    def __init__(self) -> None:
        super().__init__(code=ErrorCode.DISPUTE_NOT_FOUND, message="Dispute not found")


class NotificationNotFoundError(NotFoundError):
    """Raised when a notification is not found for the user."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.NOTIFICATION_NOT_FOUND,
            message="Notification not found",
        )


class InvalidDisputeIdError(ValidationError):
    """Raised when a dispute or notification ID is invalid."""

    def __init__(self) -> None:
        super().__init__(code=ErrorCode.INVALID_DISPUTE_ID, message="Invalid ID format")


class InvalidFieldError(ValidationError):
    """Raised when a field fails a length, enum or range rule."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(code=ErrorCode.INVALID_FIELD, message=f"{field}: {reason}")


class NoEvidenceError(ValidationError):
    def __init__(self) -> None:
        super().__init__(code=ErrorCode.NO_EVIDENCE, message="No files uploaded")


class TicketNotOwnedError(PermissionDeniedError):
    """Raised when the ticket is missing or belongs to someone else."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.TICKET_NOT_OWNED,
            message="Ticket not found or you don't have permission to dispute it",
        )


class StaffOnlyError(PermissionDeniedError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.STAFF_ONLY,
            message="This action is restricted to staff",
        )


class DuplicateActiveDisputeError(ConflictError):
    """Raised when the ticket already has a dispute in progress."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_ACTIVE_DISPUTE,
            message="An open dispute already exists for this ticket",
        )


class DisputeClosedError(BusinessRuleError):
    """Raised when mutating a dispute that is already in a terminal status."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.DISPUTE_CLOSED,
            message="Cannot update a closed dispute",
        )


class DisputeNotPendingError(BusinessRuleError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.DISPUTE_NOT_PENDING,
            message="Can only delete disputes in pending status",
        )


class MaxEscalationReachedError(BusinessRuleError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.MAX_ESCALATION_REACHED,
            message="Dispute has reached maximum escalation level",
        )


class EscalationLevelDecreaseError(BusinessRuleError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.ESCALATION_LEVEL_DECREASE,
            message="Escalation level cannot be lowered",
        )
