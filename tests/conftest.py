from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from tasktrack.config import Settings
from tasktrack.main import create_app

from .fakes import PASSWORD, FakeTaskRepository, FakeUserRepository, PlainHasher


@pytest.fixture()
def settings() -> Settings:
    # cheap bcrypt, one shared in-memory database per app
    return Settings(database_url="sqlite://", bcrypt_rounds=4, log_level="WARNING")


@pytest.fixture()
def client(settings):
    with TestClient(create_app(settings)) as client:
        yield client


@pytest.fixture()
def register_and_login(client):
    """Register a user and return its Authorization header."""

    def _register_and_login(username: str = "alice") -> dict:
        response = client.post(
            "/users/register",
            json={"username": username, "email": f"{username}@example.com", "password": PASSWORD},
        )
        assert response.status_code == 200, response.text
        response = client.post(
            "/users/login",
            json={"usernameOrEmail": username, "password": PASSWORD},
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _register_and_login


@pytest.fixture()
def user_repo() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture()
def task_repo() -> FakeTaskRepository:
    return FakeTaskRepository()


@pytest.fixture()
def hasher() -> PlainHasher:
    return PlainHasher()


@pytest.fixture()
def base_time() -> datetime:
    return datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture()
def days(base_time):
    return lambda n: base_time + timedelta(days=n)
