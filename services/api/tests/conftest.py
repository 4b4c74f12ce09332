"""Shared fixtures for API integration tests.

Uses FastAPI TestClient (in-memory, no network) and the in-memory
identity provider, so tests run without a live server, database or
Firebase project.
"""

from __future__ import annotations

import os
import sys

import pytest

# Ensure project root is on sys.path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# Force in-memory DB and identity (no PostgreSQL or Firebase needed for tests)
os.environ.pop("DATABASE_URL", None)
os.environ.pop("FIREBASE_API_KEY", None)

CLIENT_EMAIL = "a@x.com"
ADMIN_EMAIL = "boss@devflow.io"
PASSWORD = "correct-horse"

VALID_DESCRIPTION = "A landing page with a contact form and gallery."


@pytest.fixture(autouse=True)
def _reset_in_memory_state():
    """Clear in-memory stores and accounts before each test for isolation."""
    from core.identity import set_identity_provider
    from core.identity.memory_provider import InMemoryIdentityProvider
    from services.api.app import db

    db._mem_projects.clear()
    db._mem_system_settings.clear()
    # Reset pool flag so each test starts fresh
    db._pool = None
    db._pool_init_done = False
    set_identity_provider(InMemoryIdentityProvider())
    yield
    set_identity_provider(None)


@pytest.fixture()
def identity():
    from core.identity import get_identity_provider

    return get_identity_provider()


@pytest.fixture()
def client():
    """FastAPI TestClient — no network, no server startup needed."""
    from fastapi.testclient import TestClient

    from services.api.app.main import app

    return TestClient(app)


def _signup(client, email: str) -> str:
    resp = client.post(
        "/v1/auth/signup",
        json={"email": email, "password": PASSWORD, "confirm_password": PASSWORD},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["token"]


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def client_token(client):
    return _signup(client, CLIENT_EMAIL)


@pytest.fixture()
def admin_token(client):
    return _signup(client, ADMIN_EMAIL)


@pytest.fixture()
def trial_project(client, client_token):
    """The client's first (free-trial) project."""
    resp = client.post(
        "/v1/projects",
        json={"title": "Portfolio site", "description": VALID_DESCRIPTION},
        headers=auth_header(client_token),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture()
def paid_project(client, client_token, trial_project):
    """A second project for the same client, so it is not a trial."""
    resp = client.post(
        "/v1/projects",
        json={"title": "Shop", "description": VALID_DESCRIPTION, "budget": 40},
        headers=auth_header(client_token),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
