"""Health & root endpoint tests."""

import inspect

from fastapi.routing import APIRoute

from services.api.app.main import app


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert "version" in data


def test_root(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "DevFlow" in resp.json()["message"]


def test_v1_handlers_run_in_threadpool():
    # Store, LLM, Netlify and identity calls are all blocking
    routes = [r for r in app.routes if isinstance(r, APIRoute) and r.path.startswith("/v1")]
    assert routes
    blocking_on_loop = [r.path for r in routes if inspect.iscoroutinefunction(r.endpoint)]
    assert blocking_on_loop == []
