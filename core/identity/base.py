"""Identity provider interface and the user projection.

The identity provider owns accounts, passwords, one-time codes and
sessions. This service only ever sees the ``User`` projection built by
``project_user``, whose role is resolved once, at projection time.
"""

from __future__ import annotations

import abc
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

ADMIN_EMAIL_DOMAIN = os.environ.get("ADMIN_EMAIL_DOMAIN", "devflow.io")
ADMIN_EMAILS = {
    e.strip().lower()
    for e in os.environ.get("ADMIN_EMAILS", "").split(",")
    if e.strip()
}

ROLE_ADMIN = "admin"
ROLE_CLIENT = "client"

MIN_PASSWORD_LENGTH = 8


@dataclass(frozen=True)
class User:
    id: str
    email: str
    name: str
    role: str = ROLE_CLIENT
    email_verified: bool = False
    avatar: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "avatar": self.avatar,
            "role": self.role,
            "email_verified": self.email_verified,
        }


@dataclass(frozen=True)
class Session:
    """An authenticated session: the bearer token plus who it belongs to."""

    token: str
    user: User
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None


class IdentityError(Exception):
    """Raised when the identity provider rejects an operation."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


def resolve_role(email: str, claims: Optional[Dict[str, Any]] = None) -> str:
    """Resolve the user's role.

    An explicit ``role`` claim from the provider wins, then the configured
    admin list. The admin email-domain suffix is the legacy fallback.
    """
    role = (claims or {}).get("role")
    if role in (ROLE_ADMIN, ROLE_CLIENT):
        return role

    normalized = (email or "").strip().lower()
    if normalized and normalized in ADMIN_EMAILS:
        return ROLE_ADMIN
    if ADMIN_EMAIL_DOMAIN and normalized.endswith("@" + ADMIN_EMAIL_DOMAIN.lower()):
        return ROLE_ADMIN
    return ROLE_CLIENT


def display_name_for(email: str, display_name: Optional[str] = None) -> str:
    if display_name:
        return display_name
    local = (email or "").split("@")[0]
    return local or "User"


def project_user(
    uid: str,
    email: str,
    display_name: Optional[str] = None,
    photo_url: Optional[str] = None,
    email_verified: bool = False,
    claims: Optional[Dict[str, Any]] = None,
) -> User:
    """Build the ``User`` projection from raw provider account data."""
    return User(
        id=uid,
        email=email or "",
        name=display_name_for(email, display_name),
        role=resolve_role(email, claims),
        email_verified=bool(email_verified),
        avatar=photo_url or None,
    )


def check_new_password(password: str, confirm_password: Optional[str] = None) -> None:
    if confirm_password is not None and password != confirm_password:
        raise IdentityError("PASSWORD_MISMATCH", "Passwords do not match.")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise IdentityError(
            "WEAK_PASSWORD",
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.",
        )


class IdentityProvider(abc.ABC):
    """Abstract base class for identity backends."""

    provider_name: str = "base"

    @abc.abstractmethod
    def sign_in(self, email: str, password: str) -> Session:
        """Email/password sign-in."""

    @abc.abstractmethod
    def sign_in_federated(self, provider_id: str, id_token: str) -> Session:
        """Sign in with a token issued by a federated provider (e.g. google.com)."""

    @abc.abstractmethod
    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> Session:
        """Create an account and return a signed-in session."""

    @abc.abstractmethod
    def sign_out(self, token: str) -> None:
        """End the session identified by ``token``."""

    @abc.abstractmethod
    def current_user(self, token: str) -> Optional[User]:
        """Return the user behind a session token, or None if it is not valid."""

    @abc.abstractmethod
    def send_password_reset(self, email: str) -> None:
        """Email a password-reset one-time code."""

    @abc.abstractmethod
    def verify_password_reset_code(self, code: str) -> str:
        """Check a reset code and return the account email it belongs to."""

    @abc.abstractmethod
    def confirm_password_reset(self, code: str, new_password: str) -> None:
        """Consume a reset code and set the new password."""

    @abc.abstractmethod
    def send_email_verification(self, token: str) -> None:
        """Email a verification one-time code to the session's user."""

    @abc.abstractmethod
    def apply_email_verification(self, code: str) -> None:
        """Consume a verification code and mark the email verified."""
