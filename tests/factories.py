from __future__ import annotations

from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

if TYPE_CHECKING:
    from chat_backend.users.models import User

DEFAULT_PASSWORD = "TestPass123!"  # noqa: S105


def create_user(name: str, *, email: str | None = None, **extra) -> User:
    return get_user_model().objects.create_user(
        email=email or f"{name.lower()}@example.com",
        password=DEFAULT_PASSWORD,
        name=name,
        **extra,
    )


def client_for(user: User) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=user)
    return client
