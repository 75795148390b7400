"""Custom exception handling to enforce the API error envelope."""

from typing import Any

from django.conf import settings
from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from audit.analyzer import InvalidConfiguration
from audit.dates import InvalidDate
from authentication.services import BlocklistUnavailable

AUTH_ERROR_MESSAGE = (
    "Authentication credentials were not provided or are invalid, "
    "token revoked, or user is inactive."
)
FORBIDDEN_MESSAGE = "You do not have permission to perform this action on this resource."


def _normalize_errors(payload: Any) -> list[Any]:
    """Convert DRF's response.data into a list for the envelope."""

    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and "detail" in payload:
        return [payload["detail"]]
    return [payload]


def _envelope_error(message: str, status_code: int) -> Response:
    return Response({"data": None, "errors": [message]}, status=status_code)


def custom_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """Wrap DRF errors in `{ "data": null, "errors": [...] }` shape.

    - Blocklist and database outages fail closed with 503.
    - Malformed audit dates are client errors (400); an unusable audit log
      directory is a server-side outage (503).
    - 401/403 messages are normalized unless DEBUG_AUTH_ERRORS is enabled.
    """

    if isinstance(exc, BlocklistUnavailable):
        return _envelope_error("Authentication service unavailable (blocklist).", status.HTTP_503_SERVICE_UNAVAILABLE)

    if isinstance(exc, DatabaseError):
        return _envelope_error("Service temporarily unavailable.", status.HTTP_503_SERVICE_UNAVAILABLE)

    if isinstance(exc, InvalidDate):
        return _envelope_error(str(exc), status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, InvalidConfiguration):
        return _envelope_error("Audit log storage unavailable.", status.HTTP_503_SERVICE_UNAVAILABLE)

    response = drf_exception_handler(exc, context)

    if response is None:
        return response

    if isinstance(exc, (AuthenticationFailed, NotAuthenticated)):
        response.status_code = status.HTTP_401_UNAUTHORIZED

    if response.status_code >= 400:
        base_errors = response.data

        if response.status_code == status.HTTP_401_UNAUTHORIZED:
            if getattr(settings, "DEBUG_AUTH_ERRORS", False):
                errors = _normalize_errors(base_errors)
            else:
                errors = [AUTH_ERROR_MESSAGE]
        elif response.status_code == status.HTTP_403_FORBIDDEN:
            # Services raise PermissionDenied with a specific reason; keep it.
            detail = getattr(exc, "detail", None)
            errors = [str(detail)] if detail else [FORBIDDEN_MESSAGE]
        else:
            errors = _normalize_errors(base_errors)

        response.data = {"data": None, "errors": errors}

    return response
