"""Shared fixtures: the app wired to an in-memory store."""

import os

# Never reach for a real database from the test run.
os.environ.setdefault("MONGO_URI", "mongodb://localhost:27017")
os.environ.setdefault("DB_NAME", "exercise_tracker_test")

import pytest
from fastapi.testclient import TestClient

from deps import get_store
from fakes import FakeExerciseStore
from main import app


@pytest.fixture
def store():
    return FakeExerciseStore()


@pytest.fixture
def client(store):
    """TestClient backed by the fake store (startup hooks are not run)."""
    app.dependency_overrides[get_store] = lambda: store

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def user(client):
    response = client.post("/api/users", data={"username": "fcc_test"})
    assert response.status_code == 200
    return response.json()
