"""Map booking workflow errors onto HTTP responses."""

from __future__ import annotations

from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler  # type: ignore

from .services import (
    AlreadyPaidError,
    ConflictError,
    ForbiddenError,
    HoldManagerError,
    InvalidRequestError,
    InvalidStateError,
    NotFoundError,
    PaymentError,
    PersistenceError,
)

ERROR_STATUS_CODES = {
    ConflictError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    AlreadyPaidError: status.HTTP_400_BAD_REQUEST,
    InvalidStateError: status.HTTP_400_BAD_REQUEST,
    InvalidRequestError: status.HTTP_400_BAD_REQUEST,
    PaymentError: status.HTTP_402_PAYMENT_REQUIRED,
    PersistenceError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def hold_manager_exception_handler(exc, context):
    """DRF exception handler that understands ``HoldManagerError``."""

    if isinstance(exc, HoldManagerError):
        for error_class, status_code in ERROR_STATUS_CODES.items():
            if isinstance(exc, error_class):
                return Response({"detail": str(exc)}, status=status_code)
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    return exception_handler(exc, context)
