"""Firebase Authentication backend over the Identity Toolkit REST API.

Activated when ``FIREBASE_API_KEY`` is set. Sessions are Firebase ID
tokens; ``current_user`` resolves them with ``accounts:lookup``.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

import requests

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

IDENTITY_TOOLKIT_URL = os.environ.get(
    "FIREBASE_IDENTITY_URL", "https://identitytoolkit.googleapis.com/v1"
)
FEDERATED_REQUEST_URI = os.environ.get("FIREBASE_REQUEST_URI", "http://localhost")

# Provider error codes → messages shown to the user
_FRIENDLY_MESSAGES = {
    "EMAIL_NOT_FOUND": "No account found with this email.",
    "INVALID_PASSWORD": "Incorrect password.",
    "INVALID_LOGIN_CREDENTIALS": "Incorrect email or password.",
    "USER_DISABLED": "This account has been disabled.",
    "EMAIL_EXISTS": "An account with this email already exists.",
    "WEAK_PASSWORD": "Password is too weak.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Please try again later.",
    "EXPIRED_OOB_CODE": "This link has expired or is invalid. Please request a new one.",
    "INVALID_OOB_CODE": "This link has expired or is invalid. Please request a new one.",
    "INVALID_ID_TOKEN": "Your session has expired. Please sign in again.",
    "TOKEN_EXPIRED": "Your session has expired. Please sign in again.",
}


class FirebaseIdentityProvider(IdentityProvider):
    """Identity provider backed by Firebase Authentication."""

    provider_name = "firebase"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: int = 30,
        http: Optional[requests.Session] = None,
    ):
        self.api_key = api_key or os.environ.get("FIREBASE_API_KEY", "")
        self.base_url = (base_url or IDENTITY_TOOLKIT_URL).rstrip("/")
        self.timeout = timeout
        self.http = http or requests.Session()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _call(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise IdentityError("CONFIGURATION", "FIREBASE_API_KEY is not set")
        try:
            response = self.http.post(
                f"{self.base_url}/{endpoint}",
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Identity Toolkit request %s failed: %s", endpoint, e)
            raise IdentityError("NETWORK_ERROR", "Could not reach the authentication service.")

        if response.status_code >= 400:
            raise _error_from_response(response)
        return response.json()

    def _session_from(self, data: Dict[str, Any]) -> Session:
        token = data.get("idToken", "")
        user = self._lookup(token)
        if user is None:
            raise IdentityError("INVALID_ID_TOKEN", _FRIENDLY_MESSAGES["INVALID_ID_TOKEN"])
        expires_in = data.get("expiresIn")
        return Session(
            token=token,
            user=user,
            refresh_token=data.get("refreshToken"),
            expires_in=int(expires_in) if expires_in else None,
        )

    def _lookup(self, token: str) -> Optional[User]:
        data = self._call("accounts:lookup", {"idToken": token})
        users = data.get("users") or []
        if not users:
            return None
        account = users[0]
        claims: Dict[str, Any] = {}
        if account.get("customAttributes"):
            try:
                claims = json.loads(account["customAttributes"])
            except ValueError:
                logger.warning("Ignoring malformed custom claims for %s", account.get("localId"))
        return project_user(
            uid=account.get("localId", ""),
            email=account.get("email", ""),
            display_name=account.get("displayName"),
            photo_url=account.get("photoUrl"),
            email_verified=account.get("emailVerified", False),
            claims=claims,
        )

    # ------------------------------------------------------------------
    # IdentityProvider
    # ------------------------------------------------------------------

    def sign_in(self, email: str, password: str) -> Session:
        data = self._call(
            "accounts:signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._session_from(data)

    def sign_in_federated(self, provider_id: str, id_token: str) -> Session:
        data = self._call(
            "accounts:signInWithIdp",
            {
                "postBody": f"id_token={id_token}&providerId={provider_id}",
                "requestUri": FEDERATED_REQUEST_URI,
                "returnSecureToken": True,
                "returnIdpCredential": True,
            },
        )
        return self._session_from(data)

    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> Session:
        data = self._call(
            "accounts:signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        updated = self._call(
            "accounts:update",
            {
                "idToken": data["idToken"],
                "displayName": display_name_for(email, display_name),
                "returnSecureToken": True,
            },
        )
        data["idToken"] = updated.get("idToken") or data["idToken"]
        logger.info("Account created for %s", email)
        return self._session_from(data)

    def sign_out(self, token: str) -> None:
        # ID tokens are stateless; the client simply discards it.
        logger.debug("Sign-out requested; nothing to revoke for ID tokens")

    def current_user(self, token: str) -> Optional[User]:
        if not token:
            return None
        try:
            return self._lookup(token)
        except IdentityError as e:
            if e.code in ("INVALID_ID_TOKEN", "TOKEN_EXPIRED", "USER_NOT_FOUND"):
                return None
            raise

    def send_password_reset(self, email: str) -> None:
        self._call("accounts:sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})

    def verify_password_reset_code(self, code: str) -> str:
        data = self._call("accounts:resetPassword", {"oobCode": code})
        return data.get("email", "")

    def confirm_password_reset(self, code: str, new_password: str) -> None:
        check_new_password(new_password)
        self._call("accounts:resetPassword", {"oobCode": code, "newPassword": new_password})

    def send_email_verification(self, token: str) -> None:
        self._call("accounts:sendOobCode", {"requestType": "VERIFY_EMAIL", "idToken": token})

    def apply_email_verification(self, code: str) -> None:
        self._call("accounts:update", {"oobCode": code})


def _error_from_response(response: requests.Response) -> IdentityError:
    """Map an Identity Toolkit error body to an ``IdentityError``."""
    try:
        message = response.json().get("error", {}).get("message", "")
    except ValueError:
        message = ""
    # Messages look like "WEAK_PASSWORD : Password should be at least 6 characters"
    code = message.split(":")[0].strip() or f"HTTP_{response.status_code}"
    friendly = _FRIENDLY_MESSAGES.get(code) or message or "An authentication error occurred"
    return IdentityError(code, friendly)
