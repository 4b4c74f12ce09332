"""Authentication endpoints and the session dependencies used by other routers.

Sessions are bearer tokens issued by the identity provider. The unified
``/auth/action`` handler consumes the one-time codes (``oobCode``) that the
provider emails for password resets and email verification.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from core.identity import IdentityError, User, get_identity_provider
from core.identity.base import check_new_password
from shared.schemas import AuthActionResponse, SessionResponse, UserResponse

logger = logging.getLogger(__name__)
router = APIRouter()

RESET_PASSWORD = "resetPassword"
VERIFY_EMAIL = "verifyEmail"

_UNAUTHORIZED_CODES = {
    "EMAIL_NOT_FOUND", "INVALID_PASSWORD", "INVALID_LOGIN_CREDENTIALS",
    "INVALID_ID_TOKEN", "TOKEN_EXPIRED", "USER_DISABLED",
}
_UPSTREAM_CODES = {"NETWORK_ERROR", "CONFIGURATION"}


# -------------------------------------------------------------------
# Session dependencies
# -------------------------------------------------------------------

def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=401,
            detail={"code": "AUTH_REQUIRED", "message": "Please sign in to continue."},
        )
    return authorization[7:]


def get_session_token(authorization: Optional[str] = Header(default=None)) -> str:
    return _bearer_token(authorization)


def get_current_user(token: str = Depends(get_session_token)) -> User:
    """Resolve the bearer token to the signed-in user."""
    try:
        user = get_identity_provider().current_user(token)
    except IdentityError as e:
        raise _identity_http_error(e)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "INVALID_SESSION", "message": "Your session has expired. Please sign in again."},
        )
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(
            status_code=403,
            detail={"code": "ADMIN_ONLY", "message": "Administrator access required."},
        )
    return user


def _identity_http_error(e: IdentityError) -> HTTPException:
    if e.code in _UNAUTHORIZED_CODES:
        status = 401
    elif e.code in _UPSTREAM_CODES:
        status = 502
    else:
        status = 400
    return HTTPException(status_code=status, detail={"code": e.code, "message": e.message})


def _session_response(session) -> dict:
    return {
        "token": session.token,
        "token_type": "bearer",
        "expires_in": session.expires_in,
        "user": session.user.to_dict(),
    }


# -------------------------------------------------------------------
# Sign in / up / out
# -------------------------------------------------------------------

class _SignInBody(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class _FederatedSignInBody(BaseModel):
    provider_id: str = Field(default="google.com")
    id_token: str = Field(..., min_length=1)


class _SignUpBody(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    confirm_password: str


class _PasswordResetBody(BaseModel):
    email: str = Field(..., min_length=3)


class _ActionConfirmBody(BaseModel):
    mode: str = RESET_PASSWORD
    oob_code: str = Field(..., alias="oobCode", min_length=1)
    new_password: str
    confirm_password: str

    model_config = {"populate_by_name": True}


@router.post("/auth/signin", response_model=SessionResponse)
def sign_in(body: _SignInBody):
    try:
        session = get_identity_provider().sign_in(body.email, body.password)
    except IdentityError as e:
        raise _identity_http_error(e)
    logger.info("User %s signed in", session.user.id)
    return _session_response(session)


@router.post("/auth/signin/federated", response_model=SessionResponse)
def sign_in_federated(body: _FederatedSignInBody):
    try:
        session = get_identity_provider().sign_in_federated(body.provider_id, body.id_token)
    except IdentityError as e:
        raise _identity_http_error(e)
    logger.info("User %s signed in via %s", session.user.id, body.provider_id)
    return _session_response(session)


@router.post("/auth/signup", response_model=SessionResponse, status_code=201)
def sign_up(body: _SignUpBody):
    if body.password != body.confirm_password:
        raise HTTPException(
            status_code=422,
            detail={"code": "PASSWORD_MISMATCH", "message": "Passwords do not match"},
        )
    try:
        session = get_identity_provider().sign_up(body.email, body.password)
    except IdentityError as e:
        raise _identity_http_error(e)
    return _session_response(session)


@router.post("/auth/signout")
def sign_out(token: str = Depends(get_session_token)):
    get_identity_provider().sign_out(token)
    return {"status": "signed_out"}


@router.get("/auth/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return user.to_dict()


@router.post("/auth/password-reset")
def request_password_reset(body: _PasswordResetBody):
    try:
        get_identity_provider().send_password_reset(body.email)
    except IdentityError as e:
        raise _identity_http_error(e)
    return {
        "status": "sent",
        "message": "A secure reset link has been sent to your inbox.",
    }


@router.post("/auth/verification")
def send_verification(
    token: str = Depends(get_session_token),
    user: User = Depends(get_current_user),
):
    if user.email_verified:
        return {"status": "already_verified"}
    try:
        get_identity_provider().send_email_verification(token)
    except IdentityError as e:
        if e.code == "TOO_MANY_ATTEMPTS_TRY_LATER":
            raise HTTPException(status_code=429, detail={"code": e.code, "message": e.message})
        raise _identity_http_error(e)
    return {"status": "sent"}


# -------------------------------------------------------------------
# Unified one-time-code handler
# -------------------------------------------------------------------

def _action_error(code: str, message: str) -> HTTPException:
    return HTTPException(status_code=400, detail={"code": code, "message": message})


@router.get("/auth/action", response_model=AuthActionResponse, response_model_exclude_none=True)
def auth_action(
    mode: Optional[str] = Query(default=None),
    oob_code: Optional[str] = Query(default=None, alias="oobCode"),
):
    """Handle a link from a provider email.

    ``resetPassword`` only checks the code and reports the account email;
    the new password is set with ``POST /auth/action``. ``verifyEmail``
    consumes the code immediately. Any failure is terminal for the link.
    """
    if not oob_code or not mode:
        raise _action_error(
            "INVALID_ACTION_LINK",
            "Invalid request. Please check your email for the correct link.",
        )
    if mode not in (RESET_PASSWORD, VERIFY_EMAIL):
        raise _action_error("UNSUPPORTED_ACTION", "Unsupported action mode.")

    provider = get_identity_provider()
    try:
        if mode == RESET_PASSWORD:
            email = provider.verify_password_reset_code(oob_code)
            return {"mode": mode, "status": "awaiting_new_password", "email": email}
        provider.apply_email_verification(oob_code)
        return {"mode": mode, "status": "email_verified"}
    except IdentityError as e:
        logger.warning("Auth action %s rejected: %s", mode, e.code)
        raise _action_error(
            "EXPIRED_ACTION_LINK",
            "This link has expired or is invalid. Please request a new one.",
        )


@router.post("/auth/action", response_model=AuthActionResponse, response_model_exclude_none=True)
def confirm_auth_action(body: _ActionConfirmBody):
    """Set a new password using a ``resetPassword`` code."""
    if body.mode != RESET_PASSWORD:
        raise _action_error("UNSUPPORTED_ACTION", "Unsupported action mode.")
    try:
        check_new_password(body.new_password, body.confirm_password)
    except IdentityError as e:
        raise HTTPException(status_code=422, detail={"code": e.code, "message": e.message})

    try:
        get_identity_provider().confirm_password_reset(body.oob_code, body.new_password)
    except IdentityError as e:
        raise _action_error(e.code, e.message or "Failed to reset password.")
    return {"mode": RESET_PASSWORD, "status": "password_updated"}


def _legacy_redirect(request: Request) -> RedirectResponse:
    target = request.url_for("auth_action").path
    if request.url.query:
        target = f"{target}?{request.url.query}"
    return RedirectResponse(url=target, status_code=307)


@router.get("/auth/reset-password", include_in_schema=False)
def legacy_reset_password(request: Request):
    return _legacy_redirect(request)


@router.get("/auth/verify-email", include_in_schema=False)
def legacy_verify_email(request: Request):
    return _legacy_redirect(request)
