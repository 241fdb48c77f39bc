from http import HTTPStatus

import pytest
from django.urls import reverse


def test_api_v1_docs_accessible_by_admin(admin_client):
    url = reverse("api-docs-v1")
    response = admin_client.get(url)
    assert response.status_code == HTTPStatus.OK


@pytest.mark.django_db
def test_api_v1_docs_not_accessible_by_anonymous_users(client):
    url = reverse("api-docs-v1")
    response = client.get(url)
    assert response.status_code in {HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN}


def test_api_v1_schema_generated_successfully(admin_client):
    url = reverse("api-schema-v1")
    response = admin_client.get(url)
    assert response.status_code == HTTPStatus.OK


def test_schema_groups_operations_by_feature(admin_client):
    response = admin_client.get(reverse("api-schema-v1"), {"format": "json"})
    assert response.status_code == HTTPStatus.OK
    schema = response.json()
    paths = schema["paths"]
    assert paths["/api/v1/chats/"]["post"]["tags"] == ["Chats"]
    assert paths["/api/v1/chats/{id}/messages/"]["get"]["tags"] == ["Messages"]
    assert paths["/api/v1/auth/login/"]["post"]["tags"] == ["Authentication"]
    assert paths["/api/v1/users/me/"]["get"]["tags"] == ["Users"]
    names = {t["name"] for t in schema["tags"]}
    assert {"Chats", "Messages", "Users", "Authentication"} <= names


def test_unknown_route_returns_json_404(client, settings):
    settings.DEBUG = False
    response = client.get("/definitely/not/here/")
    assert response.status_code == HTTPStatus.NOT_FOUND
    assert response.json() == {
        "status": "error",
        "message": "Can't find /definitely/not/here/ on this server!",
    }
