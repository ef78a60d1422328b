# sales/api/responses.py

"""
API RESPONSE CONTRACT

Every POS / checkout / sales / payment-method endpoint answers with:

    {"success": true,  "data": {...}, "message": "..."}
    {"success": false, "error": {"code": "...", "message": "..."}}

Domain errors map to their stable `code`; anything unexpected becomes
UNKNOWN_ERROR with a generic message (details go to the log only).
"""

from __future__ import annotations

import functools
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from sales.services.exceptions import (
    ConsistencyError,
    IdGenerationError,
    InsufficientStockError,
    NotFoundError,
    PaymentFailedError,
    PaymentTimeoutError,
    PharmacyPOSError,
    StateError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def success_response(data=None, *, message: str = "", http_status: int = status.HTTP_200_OK):
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return Response(body, status=http_status)


def error_response(*, code: str, message: str, http_status: int, details=None):
    """
    Canonical API error response.
    """
    error = {"code": code, "message": message}
    if details:
        error["details"] = details
    return Response({"success": False, "error": error}, status=http_status)


def _status_for(exc: PharmacyPOSError) -> int:
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, StateError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, PaymentTimeoutError):
        return status.HTTP_504_GATEWAY_TIMEOUT
    if isinstance(exc, PaymentFailedError):
        return status.HTTP_402_PAYMENT_REQUIRED
    if isinstance(exc, (ValidationError, InsufficientStockError)):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, (IdGenerationError, ConsistencyError)):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


def domain_error_response(exc: PharmacyPOSError):
    details = None
    if isinstance(exc, InsufficientStockError):
        details = {
            "product": exc.product_name,
            "product_id": str(exc.product_ref) if exc.product_ref else None,
            "available": exc.available,
            "requested": exc.requested,
        }
    return error_response(
        code=exc.code,
        message=exc.message,
        http_status=_status_for(exc),
        details=details,
    )


def handles_domain_errors(view_method):
    """
    Wrap an APIView handler so no raw exception crosses the HTTP boundary.
    Request validation errors use the same contract; other DRF exceptions
    (auth, throttling, 404) keep their normal handling.
    """

    @functools.wraps(view_method)
    def wrapper(self, request, *args, **kwargs):
        try:
            return view_method(self, request, *args, **kwargs)
        except PharmacyPOSError as exc:
            logger.info(
                "Domain error",
                extra={"code": exc.code, "path": request.path, "user_id": str(request.user.pk)},
            )
            return domain_error_response(exc)
        except DjangoValidationError as exc:
            return error_response(
                code="VALIDATION_ERROR",
                message="; ".join(exc.messages),
                http_status=status.HTTP_400_BAD_REQUEST,
            )
        except DRFValidationError as exc:
            return error_response(
                code="VALIDATION_ERROR",
                message="Invalid request data",
                http_status=status.HTTP_400_BAD_REQUEST,
                details=exc.detail,
            )
        except APIException:
            raise
        except Exception:
            logger.exception("Unhandled error", extra={"path": request.path})
            return error_response(
                code="UNKNOWN_ERROR",
                message="An unexpected error occurred. Please try again.",
                http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

    return wrapper
