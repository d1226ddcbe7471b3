"""
Shared pytest fixtures.
"""
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from worklog.db import get_session, init_db
from worklog.main import app


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def override_db(engine) -> Iterator[None]:
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client(override_db) -> TestClient:
    return TestClient(app)


@pytest.fixture
def signup(client):
    """Factory: create an account, return {"access_token", "user", "headers"}."""

    def _signup(email: str = "ana@example.com", password: str = "secret123") -> dict:
        response = client.post("/auth/signup", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        body = response.json()
        body["headers"] = {"Authorization": f"Bearer {body['access_token']}"}
        return body

    return _signup


@pytest.fixture
def account(signup) -> dict:
    return signup()
