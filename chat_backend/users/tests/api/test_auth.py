import pytest
from django.conf import settings
from rest_framework import status
from rest_framework.test import APIClient

from chat_backend.users.models import User
from tests.factories import DEFAULT_PASSWORD

pytestmark = pytest.mark.django_db

REGISTER_URL = "/api/v1/auth/register/"
LOGIN_URL = "/api/v1/auth/login/"


def register_payload(**overrides):
    data = {
        "name": "Carol",
        "email": "carol@example.com",
        "dob": "1995-04-12",
        "password": "Str0ng!Pass",
    }
    data.update(overrides)
    return data


class TestRegister:
    def test_register_creates_user_and_returns_tokens(self):
        client = APIClient()
        r = client.post(REGISTER_URL, register_payload(), format="json")
        assert r.status_code == status.HTTP_201_CREATED, r.content
        assert r.data["user"]["email"] == "carol@example.com"
        assert "password" not in r.data["user"]
        assert r.data["access"]
        assert r.data["refresh"]
        assert settings.JWT_AUTH_COOKIE in r.cookies

        user = User.objects.get(email="carol@example.com")
        assert user.check_password("Str0ng!Pass")

    @pytest.mark.parametrize(
        "password",
        ["short1!", "alllowercase1!", "NoDigits!!", "NoSpecial123", "Way2Long!Password1"],
    )
    def test_register_rejects_weak_password(self, password):
        client = APIClient()
        r = client.post(REGISTER_URL, register_payload(password=password), format="json")
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.data["status"] == "error"
        assert "password" in r.data["errors"]
        assert not User.objects.filter(email="carol@example.com").exists()

    def test_register_rejects_duplicate_email(self, user):
        client = APIClient()
        r = client.post(
            REGISTER_URL,
            register_payload(email=user.email.upper()),
            format="json",
        )
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.data["message"] == "A user with this email already exists."

    def test_register_requires_name_and_dob(self):
        client = APIClient()
        payload = register_payload()
        del payload["name"]
        del payload["dob"]
        r = client.post(REGISTER_URL, payload, format="json")
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert set(r.data["errors"]) >= {"name", "dob"}


class TestLogin:
    def test_login_with_email_sets_cookies(self, user):
        client = APIClient()
        r = client.post(
            LOGIN_URL,
            {"email": user.email, "password": DEFAULT_PASSWORD},
            format="json",
        )
        assert r.status_code == status.HTTP_200_OK, r.content
        assert r.data["user"]["id"] == user.pk
        assert r.cookies[settings.JWT_AUTH_COOKIE].value == r.data["access"]
        assert r.cookies[settings.JWT_AUTH_REFRESH_COOKIE]["httponly"]

    def test_login_with_wrong_password(self, user):
        client = APIClient()
        r = client.post(
            LOGIN_URL,
            {"email": user.email, "password": "nope"},
            format="json",
        )
        assert r.status_code == status.HTTP_401_UNAUTHORIZED
        assert r.data["status"] == "error"

    def test_access_cookie_authenticates_requests(self, user):
        client = APIClient()
        client.post(
            LOGIN_URL,
            {"email": user.email, "password": DEFAULT_PASSWORD},
            format="json",
        )
        # The test client keeps the cookies set by the login response.
        r = client.get("/api/v1/users/me/")
        assert r.status_code == status.HTTP_200_OK
        assert r.data["email"] == user.email

    def test_bearer_header_authenticates_requests(self, user):
        client = APIClient()
        login = client.post(
            LOGIN_URL,
            {"email": user.email, "password": DEFAULT_PASSWORD},
            format="json",
        )
        bare = APIClient()
        bare.credentials(HTTP_AUTHORIZATION=f"Bearer {login.data['access']}")
        r = bare.get("/api/v1/users/me/")
        assert r.status_code == status.HTTP_200_OK

    def test_logout_clears_cookies(self, user):
        client = APIClient()
        client.post(
            LOGIN_URL,
            {"email": user.email, "password": DEFAULT_PASSWORD},
            format="json",
        )
        r = client.post("/api/v1/auth/logout/")
        assert r.status_code == status.HTTP_200_OK
        assert r.data["message"] == "Logged out successfully."
        assert r.cookies[settings.JWT_AUTH_COOKIE].value == ""

        r = client.get("/api/v1/users/me/")
        assert r.status_code == status.HTTP_401_UNAUTHORIZED


def test_refresh_uses_cookie_when_body_is_empty(user):
    client = APIClient()
    client.post(
        LOGIN_URL,
        {"email": user.email, "password": DEFAULT_PASSWORD},
        format="json",
    )
    r = client.post("/api/v1/auth/jwt/refresh/", {}, format="json")
    assert r.status_code == status.HTTP_200_OK, r.content
    assert r.data["access"]
    assert r.cookies[settings.JWT_AUTH_COOKIE].value == r.data["access"]


def test_jwt_verify_endpoint(user):
    client = APIClient()
    r = client.post(
        "/api/v1/auth/jwt/create/",
        {"email": user.email, "password": DEFAULT_PASSWORD},
        format="json",
    )
    assert r.status_code == status.HTTP_200_OK, r.content
    access = r.data["access"]

    r = client.post("/api/v1/auth/jwt/verify/", {"token": access}, format="json")
    assert r.status_code == status.HTTP_200_OK

    bad = access[:-2] + "ab"
    r = client.post("/api/v1/auth/jwt/verify/", {"token": bad}, format="json")
    assert r.status_code == status.HTTP_401_UNAUTHORIZED
