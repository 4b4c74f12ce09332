"""Dashboard, request form and project submission tests."""

VALID_DESCRIPTION = "A landing page with a contact form and gallery."


def _h(token):
    return {"Authorization": f"Bearer {token}"}


def _submit(client, token, **body):
    payload = {"title": "Site", "description": VALID_DESCRIPTION}
    payload.update(body)
    return client.post("/v1/projects", json=payload, headers=_h(token))


def test_projects_require_sign_in(client):
    assert client.get("/v1/dashboard").status_code == 401
    assert client.post("/v1/projects", json={}).status_code == 401


def test_request_form_offers_free_trial_to_new_user(client, client_token):
    resp = client.get("/v1/projects/request-form", headers=_h(client_token))
    assert resp.status_code == 200
    data = resp.json()
    assert data["eligible_for_free_trial"] is True
    assert data["project_count"] == 0
    assert data["contact_email"] == "a@x.com"
    assert data["default_budget"] == 50
    assert data["min_budget"] == 10
    assert data["max_budget"] == 100


def test_first_project_is_free_trial(client, client_token):
    resp = _submit(client, client_token, budget=80)
    assert resp.status_code == 201
    data = resp.json()
    assert data["is_free_trial"] is True
    assert data["budget"] == 0
    assert data["payment_status"] == "PAID"
    assert data["status"] == "PENDING"
    assert data["user_email"] == "a@x.com"
    assert data["contact_email"] == "a@x.com"


def test_second_project_is_not_free_trial(client, client_token, trial_project):
    form = client.get("/v1/projects/request-form", headers=_h(client_token)).json()
    assert form["eligible_for_free_trial"] is False
    assert form["project_count"] == 1

    resp = _submit(client, client_token, budget=40, contact_email="team@x.com")
    assert resp.status_code == 201
    data = resp.json()
    assert data["is_free_trial"] is False
    assert data["budget"] == 40
    assert data["payment_status"] == "UNPAID"
    assert data["contact_email"] == "team@x.com"


def test_budget_defaults_when_omitted(client, client_token, trial_project):
    resp = _submit(client, client_token)
    assert resp.status_code == 201
    assert resp.json()["budget"] == 50


def test_description_of_19_chars_rejected(client, client_token):
    resp = _submit(client, client_token, description="x" * 19)
    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert detail["code"] == "INVALID_REQUEST"
    assert detail["field"] == "description"
    # Nothing written, so the trial is still available.
    assert client.get("/v1/dashboard", headers=_h(client_token)).json()["projects"] == []


def test_description_of_20_chars_accepted(client, client_token):
    resp = _submit(client, client_token, description="x" * 20)
    assert resp.status_code == 201


def test_empty_title_rejected(client, client_token):
    resp = _submit(client, client_token, title="   ")
    assert resp.status_code == 422
    assert resp.json()["detail"]["field"] == "title"


def test_budget_out_of_range_rejected(client, client_token, trial_project):
    for budget in (9, 101):
        resp = _submit(client, client_token, budget=budget)
        assert resp.status_code == 422
        assert resp.json()["detail"]["field"] == "budget"


def test_budget_bounds_accepted(client, client_token, trial_project):
    assert _submit(client, client_token, budget=10).json()["budget"] == 10
    assert _submit(client, client_token, budget=100).json()["budget"] == 100


def test_trial_ignores_out_of_range_budget(client, client_token):
    resp = _submit(client, client_token, budget=500)
    assert resp.status_code == 201
    assert resp.json()["budget"] == 0


def test_dashboard_lists_only_own_projects(client, client_token, trial_project):
    other = client.post(
        "/v1/auth/signup",
        json={"email": "b@x.com", "password": "correct-horse", "confirm_password": "correct-horse"},
    ).json()["token"]
    _submit(client, other)

    mine = client.get("/v1/dashboard", headers=_h(client_token)).json()
    assert [p["id"] for p in mine["projects"]] == [trial_project["id"]]
    assert mine["email_verified"] is False


def test_dashboard_newest_first(client, client_token, trial_project, paid_project):
    projects = client.get("/v1/dashboard", headers=_h(client_token)).json()["projects"]
    assert [p["id"] for p in projects] == [paid_project["id"], trial_project["id"]]


def test_get_project(client, client_token, trial_project):
    resp = client.get(f"/v1/projects/{trial_project['id']}", headers=_h(client_token))
    assert resp.status_code == 200
    assert resp.json()["title"] == "Portfolio site"


def test_get_project_not_found(client, client_token):
    resp = client.get("/v1/projects/nonexistent-id", headers=_h(client_token))
    assert resp.status_code == 404
    detail = resp.json()["detail"]
    assert detail["code"] == "PROJECT_NOT_FOUND"
    assert detail["return_to"] == "/dashboard"


def test_get_project_of_other_user_forbidden(client, trial_project):
    other = client.post(
        "/v1/auth/signup",
        json={"email": "b@x.com", "password": "correct-horse", "confirm_password": "correct-horse"},
    ).json()["token"]
    resp = client.get(f"/v1/projects/{trial_project['id']}", headers=_h(other))
    assert resp.status_code == 403


def test_admin_can_view_any_project(client, admin_token, trial_project):
    resp = client.get(f"/v1/projects/{trial_project['id']}", headers=_h(admin_token))
    assert resp.status_code == 200
