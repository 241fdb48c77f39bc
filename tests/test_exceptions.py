import pytest
from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework.exceptions import ValidationError

from chat_backend.utils.exceptions import MASKED_MESSAGE
from chat_backend.utils.exceptions import BadRequest
from chat_backend.utils.exceptions import api_exception_handler

pytestmark = pytest.mark.django_db


def test_api_errors_use_the_error_envelope():
    response = api_exception_handler(NotFound("No chat"), {})
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.data == {"status": "error", "message": "No chat"}


def test_bad_request():
    response = api_exception_handler(BadRequest("Nope"), {})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.data["message"] == "Nope"


def test_validation_errors_keep_field_details():
    exc = ValidationError({"title": ["title required"]})
    response = api_exception_handler(exc, {})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.data["message"] == "title required"
    assert response.data["errors"] == {"title": ["title required"]}


def test_database_errors_become_storage_errors():
    response = api_exception_handler(DatabaseError("disk full"), {})
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.data == {"status": "error", "message": "Storage error."}


def test_unexpected_errors_are_masked(settings):
    settings.DEBUG = False
    response = api_exception_handler(RuntimeError("secret detail"), {})
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.data == {"status": "error", "message": MASKED_MESSAGE}


def test_unexpected_errors_show_details_in_debug(settings):
    settings.DEBUG = True
    try:
        raise RuntimeError("secret detail")  # noqa: TRY301
    except RuntimeError as exc:
        response = api_exception_handler(exc, {})
    assert response.data["message"] == "secret detail"
    assert "RuntimeError" in response.data["stackTrace"]
