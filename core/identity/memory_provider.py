"""In-memory identity backend for local development and tests.

Accounts, sessions and one-time codes live in process memory. Emails that
a real provider would send are appended to ``outbox`` instead.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import threading
import uuid
from typing import Any, Dict, List, Optional

from .base import (
    IdentityError,
    IdentityProvider,
    Session,
    User,
    check_new_password,
    display_name_for,
    project_user,
)

logger = logging.getLogger(__name__)

RESET_PASSWORD = "resetPassword"
VERIFY_EMAIL = "verifyEmail"


def _hash_password(password: str, salt: str) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), 100_000).hex()


class InMemoryIdentityProvider(IdentityProvider):
    """Identity provider that keeps everything in memory."""

    provider_name = "memory"

    def __init__(self):
        self._lock = threading.Lock()
        self._accounts: Dict[str, Dict[str, Any]] = {}  # email -> account
        self._sessions: Dict[str, str] = {}  # token -> email
        self._codes: Dict[str, Dict[str, str]] = {}  # code -> {mode, email}
        self.outbox: List[Dict[str, str]] = []

    def reset(self) -> None:
        with self._lock:
            self._accounts.clear()
            self._sessions.clear()
            self._codes.clear()
            self.outbox.clear()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _project(self, account: Dict[str, Any]) -> User:
        return project_user(
            uid=account["uid"],
            email=account["email"],
            display_name=account.get("display_name"),
            photo_url=account.get("photo_url"),
            email_verified=account.get("email_verified", False),
            claims=account.get("claims"),
        )

    def _open_session(self, email: str) -> Session:
        token = secrets.token_hex(32)
        with self._lock:
            self._sessions[token] = email
            account = self._accounts[email]
        return Session(token=token, user=self._project(account))

    def _issue_code(self, mode: str, email: str) -> str:
        code = secrets.token_urlsafe(24)
        with self._lock:
            self._codes[code] = {"mode": mode, "email": email}
            self.outbox.append({"mode": mode, "email": email, "oob_code": code})
        logger.info("Issued %s code for %s", mode, email)
        return code

    def _peek_code(self, code: str, mode: str) -> str:
        entry = self._codes.get(code or "")
        if not entry or entry["mode"] != mode:
            raise IdentityError(
                "INVALID_OOB_CODE",
                "This link has expired or is invalid. Please request a new one.",
            )
        return entry["email"]

    def set_claims(self, email: str, claims: Dict[str, Any]) -> None:
        """Attach provider-side custom claims (e.g. ``{"role": "admin"}``)."""
        with self._lock:
            self._accounts[email.strip().lower()]["claims"] = dict(claims)

    # ------------------------------------------------------------------
    # IdentityProvider
    # ------------------------------------------------------------------

    def sign_in(self, email: str, password: str) -> Session:
        key = (email or "").strip().lower()
        account = self._accounts.get(key)
        if account is None:
            raise IdentityError("EMAIL_NOT_FOUND", "No account found with this email.")
        if not account.get("password_hash"):
            raise IdentityError("INVALID_PASSWORD", "Incorrect password.")
        if _hash_password(password, account["salt"]) != account["password_hash"]:
            raise IdentityError("INVALID_PASSWORD", "Incorrect password.")
        return self._open_session(key)

    def sign_in_federated(self, provider_id: str, id_token: str) -> Session:
        # Local mode trusts the federated token to be the account email.
        key = (id_token or "").strip().lower()
        if "@" not in key:
            raise IdentityError("INVALID_IDP_RESPONSE", "Federated sign-in failed.")
        with self._lock:
            if key not in self._accounts:
                self._accounts[key] = {
                    "uid": uuid.uuid4().hex,
                    "email": key,
                    "display_name": display_name_for(key),
                    "email_verified": True,
                    "provider_id": provider_id,
                }
        return self._open_session(key)

    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> Session:
        key = (email or "").strip().lower()
        if "@" not in key:
            raise IdentityError("INVALID_EMAIL", "Please enter a valid email address.")
        check_new_password(password)
        salt = secrets.token_hex(8)
        with self._lock:
            if key in self._accounts:
                raise IdentityError("EMAIL_EXISTS", "An account with this email already exists.")
            self._accounts[key] = {
                "uid": uuid.uuid4().hex,
                "email": key,
                "display_name": display_name_for(key, display_name),
                "email_verified": False,
                "salt": salt,
                "password_hash": _hash_password(password, salt),
            }
        logger.info("Account created for %s", key)
        return self._open_session(key)

    def sign_out(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def current_user(self, token: str) -> Optional[User]:
        email = self._sessions.get(token or "")
        if email is None:
            return None
        account = self._accounts.get(email)
        return self._project(account) if account else None

    def send_password_reset(self, email: str) -> None:
        key = (email or "").strip().lower()
        if key not in self._accounts:
            raise IdentityError("EMAIL_NOT_FOUND", "No account found with this email.")
        self._issue_code(RESET_PASSWORD, key)

    def verify_password_reset_code(self, code: str) -> str:
        return self._peek_code(code, RESET_PASSWORD)

    def confirm_password_reset(self, code: str, new_password: str) -> None:
        email = self._peek_code(code, RESET_PASSWORD)
        check_new_password(new_password)
        salt = secrets.token_hex(8)
        with self._lock:
            self._codes.pop(code, None)
            account = self._accounts[email]
            account["salt"] = salt
            account["password_hash"] = _hash_password(new_password, salt)
        logger.info("Password reset for %s", email)

    def send_email_verification(self, token: str) -> None:
        email = self._sessions.get(token or "")
        if email is None:
            raise IdentityError("INVALID_ID_TOKEN", "Your session has expired. Please sign in again.")
        self._issue_code(VERIFY_EMAIL, email)

    def apply_email_verification(self, code: str) -> None:
        email = self._peek_code(code, VERIFY_EMAIL)
        with self._lock:
            self._codes.pop(code, None)
            self._accounts[email]["email_verified"] = True
        logger.info("Email verified for %s", email)
