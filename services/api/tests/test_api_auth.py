"""Sign-in, session and one-time-code action tests."""

PASSWORD = "correct-horse"


def _h(token):
    return {"Authorization": f"Bearer {token}"}


def _signup(client, email="new@x.com", password=PASSWORD, confirm=None):
    return client.post(
        "/v1/auth/signup",
        json={"email": email, "password": password, "confirm_password": confirm or password},
    )


# ---------------------------------------------------------------------------
# Sign up / in / out
# ---------------------------------------------------------------------------

def test_signup_returns_session(client):
    resp = _signup(client)
    assert resp.status_code == 201
    data = resp.json()
    assert data["token"]
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == "new@x.com"
    assert data["user"]["role"] == "client"
    assert data["user"]["name"] == "new"


def test_signup_password_mismatch(client):
    resp = _signup(client, password="password-one", confirm="password-two")
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "PASSWORD_MISMATCH"


def test_signup_weak_password(client):
    resp = _signup(client, password="short")
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "WEAK_PASSWORD"


def test_signup_duplicate_email(client):
    _signup(client)
    resp = _signup(client)
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "EMAIL_EXISTS"


def test_signin_round_trip(client):
    _signup(client)
    resp = client.post("/v1/auth/signin", json={"email": "new@x.com", "password": PASSWORD})
    assert resp.status_code == 200
    me = client.get("/v1/auth/me", headers=_h(resp.json()["token"]))
    assert me.status_code == 200
    assert me.json()["email"] == "new@x.com"


def test_signin_unknown_email(client):
    resp = client.post("/v1/auth/signin", json={"email": "ghost@x.com", "password": PASSWORD})
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "EMAIL_NOT_FOUND"


def test_signin_wrong_password(client):
    _signup(client)
    resp = client.post("/v1/auth/signin", json={"email": "new@x.com", "password": "nope-nope"})
    assert resp.status_code == 401
    assert resp.json()["detail"]["message"] == "Incorrect password."


def test_federated_signin_creates_verified_account(client):
    resp = client.post(
        "/v1/auth/signin/federated",
        json={"provider_id": "google.com", "id_token": "g@x.com"},
    )
    assert resp.status_code == 200
    assert resp.json()["user"]["email_verified"] is True


def test_signout_invalidates_token(client):
    token = _signup(client).json()["token"]
    assert client.post("/v1/auth/signout", headers=_h(token)).json() == {"status": "signed_out"}
    resp = client.get("/v1/auth/me", headers=_h(token))
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "INVALID_SESSION"


def test_missing_bearer_token(client):
    resp = client.get("/v1/auth/me")
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "AUTH_REQUIRED"


def test_admin_role_from_domain(client):
    resp = _signup(client, email="boss@devflow.io")
    assert resp.json()["user"]["role"] == "admin"


def test_admin_role_from_claim(client, identity):
    token = _signup(client, email="ops@x.com").json()["token"]
    identity.set_claims("ops@x.com", {"role": "admin"})
    assert client.get("/v1/auth/me", headers=_h(token)).json()["role"] == "admin"


# ---------------------------------------------------------------------------
# Password reset through the unified action handler
# ---------------------------------------------------------------------------

def test_password_reset_flow(client, identity):
    _signup(client)
    resp = client.post("/v1/auth/password-reset", json={"email": "new@x.com"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "sent"
    code = identity.outbox[-1]["oob_code"]

    resp = client.get("/v1/auth/action", params={"mode": "resetPassword", "oobCode": code})
    assert resp.status_code == 200
    assert resp.json() == {
        "mode": "resetPassword",
        "status": "awaiting_new_password",
        "email": "new@x.com",
    }

    resp = client.post(
        "/v1/auth/action",
        json={
            "mode": "resetPassword",
            "oobCode": code,
            "new_password": "brand-new-pass",
            "confirm_password": "brand-new-pass",
        },
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "password_updated"

    signin = client.post(
        "/v1/auth/signin", json={"email": "new@x.com", "password": "brand-new-pass"},
    )
    assert signin.status_code == 200


def test_password_reset_code_is_single_use(client, identity):
    _signup(client)
    client.post("/v1/auth/password-reset", json={"email": "new@x.com"})
    code = identity.outbox[-1]["oob_code"]
    body = {
        "oobCode": code,
        "new_password": "brand-new-pass",
        "confirm_password": "brand-new-pass",
    }
    assert client.post("/v1/auth/action", json=body).status_code == 200
    resp = client.post("/v1/auth/action", json=body)
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVALID_OOB_CODE"


def test_password_reset_confirm_mismatch(client, identity):
    _signup(client)
    client.post("/v1/auth/password-reset", json={"email": "new@x.com"})
    code = identity.outbox[-1]["oob_code"]
    resp = client.post(
        "/v1/auth/action",
        json={"oobCode": code, "new_password": "brand-new-pass", "confirm_password": "other-pass"},
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["message"] == "Passwords do not match."


def test_password_reset_confirm_too_short(client, identity):
    _signup(client)
    client.post("/v1/auth/password-reset", json={"email": "new@x.com"})
    code = identity.outbox[-1]["oob_code"]
    resp = client.post(
        "/v1/auth/action",
        json={"oobCode": code, "new_password": "short", "confirm_password": "short"},
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "WEAK_PASSWORD"


def test_password_reset_unknown_email(client):
    resp = client.post("/v1/auth/password-reset", json={"email": "ghost@x.com"})
    assert resp.status_code == 401


# ---------------------------------------------------------------------------
# Email verification
# ---------------------------------------------------------------------------

def test_email_verification_flow(client, identity):
    token = _signup(client).json()["token"]
    resp = client.post("/v1/auth/verification", headers=_h(token))
    assert resp.json() == {"status": "sent"}
    code = identity.outbox[-1]["oob_code"]

    resp = client.get("/v1/auth/action", params={"mode": "verifyEmail", "oobCode": code})
    assert resp.status_code == 200
    assert resp.json() == {"mode": "verifyEmail", "status": "email_verified"}

    assert client.get("/v1/auth/me", headers=_h(token)).json()["email_verified"] is True
    again = client.post("/v1/auth/verification", headers=_h(token))
    assert again.json() == {"status": "already_verified"}


def test_action_missing_code(client):
    resp = client.get("/v1/auth/action", params={"mode": "verifyEmail"})
    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert detail["code"] == "INVALID_ACTION_LINK"
    assert "check your email" in detail["message"]


def test_action_missing_mode(client):
    resp = client.get("/v1/auth/action", params={"oobCode": "abc"})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVALID_ACTION_LINK"


def test_action_unsupported_mode(client):
    resp = client.get("/v1/auth/action", params={"mode": "recoverEmail", "oobCode": "abc"})
    assert resp.status_code == 400
    assert resp.json()["detail"]["message"] == "Unsupported action mode."


def test_action_expired_code(client):
    resp = client.get("/v1/auth/action", params={"mode": "verifyEmail", "oobCode": "stale"})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "EXPIRED_ACTION_LINK"


def test_reset_code_rejected_for_verify_mode(client, identity):
    _signup(client)
    client.post("/v1/auth/password-reset", json={"email": "new@x.com"})
    code = identity.outbox[-1]["oob_code"]
    resp = client.get("/v1/auth/action", params={"mode": "verifyEmail", "oobCode": code})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "EXPIRED_ACTION_LINK"


def test_legacy_routes_redirect_to_action(client):
    for path in ("/v1/auth/reset-password", "/v1/auth/verify-email"):
        resp = client.get(path, params={"mode": "verifyEmail", "oobCode": "abc"}, follow_redirects=False)
        assert resp.status_code == 307
        location = resp.headers["location"]
        assert location.startswith("/v1/auth/action?")
        assert "oobCode=abc" in location
