"""HTTP tests for the relay app."""

import pytest
from fastapi.testclient import TestClient

from main import app, get_config, get_session
from conftest import FakeResponse, FakeSession


@pytest.fixture
def client(config):
    session = FakeSession()
    app.dependency_overrides[get_config] = lambda: config
    app.dependency_overrides[get_session] = lambda: session
    client = TestClient(app)
    client.fake_session = session
    yield client
    app.dependency_overrides.clear()


def test_liveness(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.text == "OK"
    assert r.headers["content-type"].startswith("text/plain")
    assert client.fake_session.gets == []
    assert client.fake_session.posts == []


def test_post_relays_form_fields(client):
    r = client.post("/", data={"entry.1": "hello", "entry.2": "world"})
    assert r.status_code == 200
    assert r.text == "OK"

    _, data, _ = client.fake_session.posts[0]
    assert data["entry.1"] == "hello"
    assert data["entry.2"] == "world"
    assert data["fbzx"] == "abc123"


def test_post_error_still_returns_200(client):
    client.fake_session.submit = FakeResponse(500, "server error")
    r = client.post("/", data={"entry.1": "x"})
    assert r.status_code == 200
    assert r.text == "ERR: upstream 500: server error"


def test_post_token_not_found(client):
    client.fake_session.view = FakeResponse(200, "<html></html>")
    r = client.post("/", data={"entry.1": "x"})
    assert r.text == "ERR: token not found"
    assert client.fake_session.posts == []


def test_post_repeated_fields(client):
    client.post("/", data={"entry.9": ["a", "b"]})
    _, data, _ = client.fake_session.posts[0]
    assert data["entry.9"] == ["a", "b"]


def test_cors_preflight(client):
    r = client.options("/", headers={
        "Origin": "https://example.org",
        "Access-Control-Request-Method": "POST",
    })
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == "*"
