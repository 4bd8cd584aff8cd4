"""Maps domain and framework errors onto the API error envelope.

Every error response has the shape ``{"success": false, "message": ...}``;
field validation failures add ``errors`` with the per-field detail.
"""

import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from disputes.domain.errors import (
    BusinessRuleError,
    ConflictError,
    DomainError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DOMAIN_ERROR_STATUS = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (ConflictError, status.HTTP_409_CONFLICT),
    (BusinessRuleError, status.HTTP_400_BAD_REQUEST),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
)


def status_for(error: DomainError) -> int:
    for error_type, code in DOMAIN_ERROR_STATUS:
        if isinstance(error, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def dispute_exception_handler(exc, context):
    if isinstance(exc, DomainError):
        return Response(
            {"success": False, "message": exc.message, "code": exc.code.value},
            status=status_for(exc),
        )

    response = exception_handler(exc, context)
    if response is None:
        logger.exception("Unhandled error in %s", context.get("view").__class__.__name__)
        return Response(
            {"success": False, "message": "Internal server error"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, exceptions.ValidationError):
        response.data = {"success": False, "message": "Validation failed", "errors": response.data}
    else:
        detail = response.data.get("detail", "") if isinstance(response.data, dict) else ""
        response.data = {"success": False, "message": str(detail)}
    return response
