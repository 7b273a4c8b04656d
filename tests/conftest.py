# tests/conftest.py

from __future__ import annotations

from typing import Callable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from todo_api.core.config import Settings
from todo_api.main import create_app

from .fakes import FakeRedis

# In-memory SQLite; StaticPool keeps every session on the same connection,
# so the tables created at startup are visible to all requests.
TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_SECRET = "test-signing-secret-that-is-long-enough-for-hs256"


@pytest.fixture(name="settings")
def settings_fixture() -> Settings:
    return Settings(
        _env_file=None,
        database_url=TEST_DATABASE_URL,
        redis_dsn="redis://unused:6379/0",
        jwt_secret=TEST_SECRET,
        log_level="DEBUG",
    )


@pytest.fixture(name="fake_redis")
def fake_redis_fixture() -> FakeRedis:
    return FakeRedis()


@pytest.fixture(name="test_engine")
def test_engine_fixture() -> AsyncEngine:
    return create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture(name="app")
def app_fixture(settings: Settings, test_engine: AsyncEngine, fake_redis: FakeRedis) -> FastAPI:
    return create_app(settings, engine=test_engine, redis=fake_redis)


@pytest.fixture(name="client")
def client_fixture(app: FastAPI):
    # entering the client runs the lifespan (tables, cache) on one event loop
    with TestClient(app) as client:
        yield client


@pytest.fixture(name="register_user")
def register_user_fixture(client: TestClient) -> Callable[..., dict]:
    """
    Register and log in a user. Returns ``{"id", "token", "headers"}``.
    """

    def _register(username: str, password: str = "correct-horse") -> dict:
        response = client.post(
            "/register", json={"username": username, "password": password}
        )
        assert response.status_code == 201, response.text
        user_id = response.json()["id"]

        response = client.post("/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        token = response.json()["token"]

        return {
            "id": user_id,
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _register


@pytest.fixture(name="alice")
def alice_fixture(register_user) -> dict:
    return register_user("alice")


@pytest.fixture(name="bob")
def bob_fixture(register_user) -> dict:
    return register_user("bob")
