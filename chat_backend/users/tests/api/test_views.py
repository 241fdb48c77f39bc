import pytest
from rest_framework import status
from rest_framework.test import APIClient

from chat_backend.users.models import User

pytestmark = pytest.mark.django_db

ME_URL = "/api/v1/users/me/"


class TestUserViewSet:
    def test_anonymous_is_rejected(self):
        r = APIClient().get(ME_URL)
        assert r.status_code == status.HTTP_401_UNAUTHORIZED
        assert r.data["status"] == "error"

    def test_me(self, api_client, user: User):
        r = api_client.get(ME_URL)
        assert r.status_code == status.HTTP_200_OK
        assert r.data == {
            "id": user.pk,
            "name": user.name,
            "email": user.email,
            "dob": None,
            "created_at": r.data["created_at"],
        }

    def test_list_is_not_paginated(self, api_client, user, other_user):
        r = api_client.get("/api/v1/users/")
        assert r.status_code == status.HTTP_200_OK
        assert {row["id"] for row in r.data} == {user.pk, other_user.pk}

    def test_retrieve(self, api_client, other_user):
        r = api_client.get(f"/api/v1/users/{other_user.pk}/")
        assert r.status_code == status.HTTP_200_OK
        assert r.data["email"] == other_user.email

    def test_update_me(self, api_client, user: User):
        r = api_client.patch(
            ME_URL,
            {"name": "Alicia", "dob": "1990-01-02"},
            format="json",
        )
        assert r.status_code == status.HTTP_200_OK, r.content
        user.refresh_from_db()
        assert user.name == "Alicia"
        assert str(user.dob) == "1990-01-02"

    def test_update_me_password_is_hashed(self, api_client, user: User):
        r = api_client.patch(ME_URL, {"password": "N3w!Secret"}, format="json")
        assert r.status_code == status.HTTP_200_OK, r.content
        user.refresh_from_db()
        assert user.check_password("N3w!Secret")

    def test_update_me_rejects_empty_body(self, api_client):
        r = api_client.patch(ME_URL, {}, format="json")
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.data["message"] == "Please provide fields to update."

    def test_update_me_rejects_unknown_field(self, api_client, user: User):
        r = api_client.patch(ME_URL, {"is_staff": True}, format="json")
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.data["message"] == "Invalid field: is_staff"
        user.refresh_from_db()
        assert not user.is_staff

    def test_update_me_rejects_taken_email(self, api_client, other_user):
        r = api_client.patch(ME_URL, {"email": other_user.email}, format="json")
        assert r.status_code == status.HTTP_400_BAD_REQUEST

    def test_delete_me(self, api_client, user: User):
        r = api_client.delete(ME_URL)
        assert r.status_code == status.HTTP_204_NO_CONTENT
        assert not User.objects.filter(pk=user.pk).exists()
