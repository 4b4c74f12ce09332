"""Session/identity adapter.

Wraps the external identity provider (Firebase Authentication, or an
in-memory stand-in for local development) behind one interface.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from .base import (
    ROLE_ADMIN,
    ROLE_CLIENT,
    IdentityError,
    IdentityProvider,
    Session,
    User,
    project_user,
    resolve_role,
)

logger = logging.getLogger(__name__)

_provider: Optional[IdentityProvider] = None


def get_identity_provider() -> IdentityProvider:
    """Return the process-wide identity provider (lazy init)."""
    global _provider
    if _provider is not None:
        return _provider
    if os.environ.get("FIREBASE_API_KEY"):
        from .firebase_provider import FirebaseIdentityProvider
        _provider = FirebaseIdentityProvider()
        logger.info("Using Firebase identity provider")
    else:
        from .memory_provider import InMemoryIdentityProvider
        _provider = InMemoryIdentityProvider()
        logger.info("No FIREBASE_API_KEY set — using in-memory identity provider")
    return _provider


def set_identity_provider(provider: Optional[IdentityProvider]) -> None:
    """Swap the process-wide provider (None re-runs lazy init)."""
    global _provider
    _provider = provider


__all__ = [
    "ROLE_ADMIN",
    "ROLE_CLIENT",
    "IdentityError",
    "IdentityProvider",
    "Session",
    "User",
    "get_identity_provider",
    "project_user",
    "resolve_role",
    "set_identity_provider",
]
