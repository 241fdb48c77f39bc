from http import HTTPStatus

import pytest
from django.urls import reverse

from chat_backend.chats import services
from chat_backend.users.models import User


class TestUserAdmin:
    def test_changelist(self, admin_client):
        url = reverse("admin:users_user_changelist")
        response = admin_client.get(url)
        assert response.status_code == HTTPStatus.OK

    def test_search(self, admin_client):
        url = reverse("admin:users_user_changelist")
        response = admin_client.get(url, data={"q": "test"})
        assert response.status_code == HTTPStatus.OK

    def test_add(self, admin_client):
        url = reverse("admin:users_user_add")
        response = admin_client.get(url)
        assert response.status_code == HTTPStatus.OK

        response = admin_client.post(
            url,
            data={
                "email": "new-admin@example.com",
                "password1": "My_R@ndom-P@ssw0rd",
                "password2": "My_R@ndom-P@ssw0rd",
            },
        )
        assert response.status_code == HTTPStatus.FOUND
        assert User.objects.filter(email="new-admin@example.com").exists()

    def test_view_user(self, admin_client, user: User):
        url = reverse("admin:users_user_change", kwargs={"object_id": user.pk})
        response = admin_client.get(url)
        assert response.status_code == HTTPStatus.OK


@pytest.mark.django_db
def test_chat_admin_pages(admin_client, user, other_user):
    chat, _ = services.resolve_or_create_chat(user.pk, member_ids=[other_user.pk])
    services.add_message(chat, user.pk, "hello")

    for name in ("admin:chats_chat_changelist", "admin:chats_message_changelist"):
        assert admin_client.get(reverse(name)).status_code == HTTPStatus.OK
    url = reverse("admin:chats_chat_change", kwargs={"object_id": chat.pk})
    assert admin_client.get(url).status_code == HTTPStatus.OK
