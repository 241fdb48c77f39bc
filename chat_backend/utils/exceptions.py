"""API error types and the DRF exception handler that renders them.

Every error response has the shape::

    {"status": "error", "message": "<human readable>"}

with an extra ``errors`` mapping for field-level validation failures, and a
``stackTrace`` for unexpected errors while ``DEBUG`` is on.
"""

from __future__ import annotations

import logging
import traceback
from typing import Any

from django.conf import settings
from django.db import DatabaseError
from rest_framework import exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler
from rest_framework.views import set_rollback

logger = logging.getLogger(__name__)

MASKED_MESSAGE = "Something went very wrong!"


class BadRequest(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request."
    default_code = "bad_request"


class StorageError(exceptions.APIException):
    """Persistence failure. Raised after the enclosing transaction rolled back."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Storage error."
    default_code = "storage_error"


def _first_message(detail: Any) -> str:
    if isinstance(detail, dict):
        for value in detail.values():
            return _first_message(value)
        return ""
    if isinstance(detail, list):
        return _first_message(detail[0]) if detail else ""
    return str(detail)


def api_exception_handler(exc: Exception, context: dict[str, Any]) -> Response:
    if isinstance(exc, DatabaseError):
        logger.exception("Database error while handling %s", context.get("view"))
        exc = StorageError()

    response = exception_handler(exc, context)
    if response is not None:
        detail = response.data
        body: dict[str, Any] = {"status": "error"}
        if isinstance(exc, exceptions.ValidationError) and isinstance(
            detail, (dict, list)
        ):
            body["message"] = _first_message(detail)
            body["errors"] = detail
        elif isinstance(detail, dict) and "detail" in detail:
            body["message"] = str(detail["detail"])
        else:
            body["message"] = _first_message(detail)
        response.data = body
        return response

    # Anything DRF does not know about is an unexpected server error.
    logger.exception("Unhandled error", exc_info=exc)
    set_rollback()
    body = {"status": "error"}
    if settings.DEBUG:
        body["message"] = str(exc) or exc.__class__.__name__
        body["stackTrace"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__),
        )
    else:
        body["message"] = MASKED_MESSAGE
    return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
