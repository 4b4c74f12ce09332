"""Public portfolio endpoint tests."""

from unittest.mock import MagicMock, patch

from services.api.app import db


def _sites(n):
    return [{"id": f"s{i}", "name": f"site-{i}", "url": f"http://site-{i}.netlify.app"} for i in range(n)]


def _patch_hosting(sites=None, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = status_code < 400
    resp.reason = "OK" if resp.ok else "Unauthorized"
    resp.json.return_value = sites if sites is not None else {}
    session = MagicMock()
    session.get.return_value = resp
    return patch("core.hosting.requests.Session", return_value=session), session


def _configure(token="tok", hidden=()):
    db.save_portfolio_settings(
        {"hosting_token": token, "hidden_site_ids": list(hidden)}, actor_role="admin",
    )


def test_portfolio_without_token_is_empty(client):
    resp = client.get("/v1/portfolio")
    assert resp.status_code == 200
    assert resp.json() == {"sites": [], "total": 0, "show_all": False, "error": None}


def test_portfolio_needs_no_sign_in(client):
    _configure()
    patcher, _ = _patch_hosting(_sites(1))
    with patcher:
        assert client.get("/v1/portfolio").status_code == 200


def test_portfolio_preview_shows_first_three(client):
    _configure()
    patcher, session = _patch_hosting(_sites(5))
    with patcher:
        resp = client.get("/v1/portfolio")
    data = resp.json()
    assert [s["id"] for s in data["sites"]] == ["s0", "s1", "s2"]
    assert data["total"] == 5
    headers = session.get.call_args.kwargs["headers"]
    assert headers == {"Authorization": "Bearer tok"}


def test_portfolio_show_all(client):
    _configure()
    patcher, _ = _patch_hosting(_sites(5))
    with patcher:
        resp = client.get("/v1/portfolio", params={"show_all": "true"})
    data = resp.json()
    assert len(data["sites"]) == 5
    assert data["show_all"] is True


def test_portfolio_hides_hidden_sites(client):
    _configure(hidden=["s0", "s2"])
    patcher, _ = _patch_hosting(_sites(5))
    with patcher:
        resp = client.get("/v1/portfolio", params={"show_all": "true"})
    data = resp.json()
    assert [s["id"] for s in data["sites"]] == ["s1", "s3", "s4"]
    assert data["total"] == 3


def test_portfolio_invalid_token_reports_error(client):
    _configure(token="bad")
    patcher, _ = _patch_hosting(status_code=401)
    with patcher:
        resp = client.get("/v1/portfolio")
    assert resp.status_code == 200
    data = resp.json()
    assert data["sites"] == []
    assert data["error"]["code"] == "INVALID_TOKEN"
    assert data["error"]["message"] == "Unauthorized: Invalid Netlify Access Token."


def test_portfolio_unexpected_payload_reports_error(client):
    _configure()
    patcher, _ = _patch_hosting({"sites": []})
    with patcher:
        resp = client.get("/v1/portfolio")
    assert resp.status_code == 200
    data = resp.json()
    assert data["sites"] == []
    assert data["error"]["code"] == "HOSTING_ERROR"


def test_portfolio_settings_permission_denied_falls_back(client):
    with patch.object(db, "get_portfolio_settings", side_effect=db.StorePermissionError()):
        resp = client.get("/v1/portfolio")
    assert resp.status_code == 200
    assert resp.json()["sites"] == []
