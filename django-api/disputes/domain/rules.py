"""Business rules shared by the lifecycle service and request handlers."""

from decimal import Decimal

from disputes.domain.errors import InvalidFieldError
from disputes.domain.value_objects import DisputePriority, DisputeType

SUBJECT_MIN_LENGTH = 5
SUBJECT_MAX_LENGTH = 200
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 2000
MESSAGE_MAX_LENGTH = 2000
ADMIN_TEXT_MAX_LENGTH = 2000
REASON_MAX_LENGTH = 500
MAX_TAGS = 10
TAG_MAX_LENGTH = 50
MAX_ATTACHMENTS = 5

DEFAULT_HIGH_VALUE_PRICE = Decimal("500")


def resolve_priority(
    requested: DisputePriority | None,
    dispute_type: DisputeType,
    ticket_price: Decimal,
    high_value_price: Decimal = DEFAULT_HIGH_VALUE_PRICE,
) -> DisputePriority:
    """Pick the priority for a new dispute.

    Expensive tickets and fraudulent charges are always HIGH, whatever the
    complainant asked for. Otherwise the request is honoured, defaulting
    to MEDIUM.
    """
    if ticket_price > high_value_price or dispute_type is DisputeType.FRAUDULENT_CHARGE:
        return DisputePriority.HIGH
    return requested or DisputePriority.MEDIUM


def _check_length(field: str, value: str, minimum: int, maximum: int) -> str:
    if not isinstance(value, str):
        raise InvalidFieldError(field, "must be a string")
    if len(value) < minimum:
        raise InvalidFieldError(field, f"must be at least {minimum} characters")
    if len(value) > maximum:
        raise InvalidFieldError(field, f"must be at most {maximum} characters")
    return value


def validate_subject(value: str) -> str:
    return _check_length("subject", value, SUBJECT_MIN_LENGTH, SUBJECT_MAX_LENGTH)


def validate_description(value: str) -> str:
    return _check_length("description", value, DESCRIPTION_MIN_LENGTH, DESCRIPTION_MAX_LENGTH)


def validate_message(value: str) -> str:
    return _check_length("message", value, 1, MESSAGE_MAX_LENGTH)


def validate_reason(value: str) -> str:
    return _check_length("reason", value, 1, REASON_MAX_LENGTH)


def validate_admin_text(field: str, value: str) -> str:
    return _check_length(field, value, 0, ADMIN_TEXT_MAX_LENGTH)


def validate_tags(tags) -> tuple[str, ...]:
    tags = tuple(tags)
    if len(tags) > MAX_TAGS:
        raise InvalidFieldError("tags", f"at most {MAX_TAGS} tags are allowed")
    for tag in tags:
        _check_length("tags", tag, 0, TAG_MAX_LENGTH)
    return tags
