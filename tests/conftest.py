"""Shared fixtures for the core test suite.

Provides users, project records and mocked HTTP sessions so the core
rules can be tested without the API, a database or the network.
"""

import os
import sys
from unittest.mock import MagicMock

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

os.environ.pop("DATABASE_URL", None)

from core.identity.base import User  # noqa: E402


# ---------------------------------------------------------------------------
# Users and records
# ---------------------------------------------------------------------------

@pytest.fixture
def client_user():
    return User(id="u-1", email="a@x.com", name="a")


@pytest.fixture
def other_user():
    return User(id="u-2", email="b@x.com", name="b")


@pytest.fixture
def admin_user():
    return User(id="u-9", email="boss@devflow.io", name="boss", role="admin")


@pytest.fixture
def project(client_user):
    """A stored, non-trial project owned by ``client_user``."""
    return {
        "id": "p-1",
        "user_id": client_user.id,
        "user_email": client_user.email,
        "title": "Shop",
        "description": "An online store with a product catalogue.",
        "budget": 40.0,
        "status": "PENDING",
        "payment_status": "UNPAID",
        "is_free_trial": False,
        "payment_method": None,
        "sender_name": None,
        "transaction_id": None,
    }


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

def _response(status_code=200, body=None, reason="OK"):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = status_code < 400
    resp.reason = reason
    if isinstance(body, Exception):
        resp.json.side_effect = body
    else:
        resp.json.return_value = body
    return resp


@pytest.fixture
def make_response():
    """Factory for stand-ins for ``requests.Response``."""
    return _response


@pytest.fixture
def http():
    """A mocked ``requests.Session``."""
    return MagicMock()
