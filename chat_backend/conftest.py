import pytest

from chat_backend.users.models import User
from tests.factories import client_for
from tests.factories import create_user


@pytest.fixture
def user(db) -> User:
    return create_user("Alice")


@pytest.fixture
def other_user(db) -> User:
    return create_user("Bob")


@pytest.fixture
def api_client(user):
    return client_for(user)
