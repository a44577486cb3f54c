"""Tests for the Flask API blueprint."""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from cookiejar_api.config import JarConfig
from cookiejar_api.factory import create_app


@pytest.fixture
def app(jar_path):
    return create_app(JarConfig(path=jar_path))


@pytest.fixture
def client(app):
    return app.test_client()


def test_list_empty(client):
    response = client.get("/api/cookies")
    assert response.status_code == 200
    assert response.get_json() == {}


def test_put_save_and_read_back(client, jar_path):
    response = client.put("/api/cookies/example.com/sid", json={"Name": "sid", "Value": "abc"})
    assert response.status_code == 201

    response = client.post("/api/cookies/save")
    assert response.status_code == 200
    assert response.get_json()["count"] == 1

    payload = json.loads(jar_path.read_text())
    assert payload["example.com"]["sid"]["Value"] == "abc"

    response = client.get("/api/cookies/example.com")
    assert response.get_json()["sid"]["Value"] == "abc"


def test_keys_may_contain_slashes(client, app):
    response = client.put("/api/cookies/a.com/a.com;/app;sid", json={"Name": "sid", "Path": "/app"})
    assert response.status_code == 201
    assert app.config["COOKIE_STORE"].get("a.com", "a.com;/app;sid").path == "/app"


def test_unknown_domain_is_404(client):
    assert client.get("/api/cookies/nowhere.com").status_code == 404


def test_put_rejects_bad_records(client):
    assert client.put("/api/cookies/a.com/k", json=["not", "a", "record"]).status_code == 400
    response = client.put("/api/cookies/a.com/k", json={"Value": "no name"})
    assert response.status_code == 400
    assert "error" in response.get_json()


def test_delete(client):
    client.put("/api/cookies/a.com/k", json={"Name": "k"})
    assert client.delete("/api/cookies/a.com/k").status_code == 200
    assert client.delete("/api/cookies/a.com/k").status_code == 404


def test_reload_picks_up_external_changes(client, jar_path):
    jar_path.write_text(json.dumps({"b.com": {"k": {"Name": "k", "Value": "disk"}}}))

    response = client.post("/api/cookies/reload")

    assert response.status_code == 200
    assert response.get_json()["count"] == 1
    assert client.get("/api/cookies").get_json()["b.com"]["k"]["Value"] == "disk"


def test_corrupt_file_on_reload_is_400(client, jar_path):
    jar_path.write_text("{broken")
    response = client.post("/api/cookies/reload")
    assert response.status_code == 400
    assert response.get_json()["path"] == str(jar_path)


def test_save_without_path_is_409(client, app):
    app.config["COOKIE_STORE"].path = None
    assert client.post("/api/cookies/save").status_code == 409


def test_fetch_goes_through_http_client(client, app, jar_path):
    http = app.config["HTTP_CLIENT"]

    def fake_request(method, url, **kwargs):
        http.session.cookies.set("sid", "xyz", domain="example.com", path="/")
        return MagicMock(status_code=204)

    with patch.object(http.session, "request", side_effect=fake_request):
        response = client.post("/api/fetch", json={"url": "https://example.com/"})

    assert response.get_json() == {"status": 204, "cookies": 1}
    assert jar_path.exists()


def test_fetch_requires_url(client):
    assert client.post("/api/fetch", json={}).status_code == 400


def test_fetch_network_error_is_502(client, app):
    http = app.config["HTTP_CLIENT"]
    with patch.object(http.session, "request", side_effect=requests.ConnectionError("down")):
        response = client.post("/api/fetch", json={"url": "https://example.com/"})
    assert response.status_code == 502


def test_reload_drops_cookies_from_the_session(client, app, jar_path):
    http = app.config["HTTP_CLIENT"]

    def set_sid(method, url, **kwargs):
        http.session.cookies.set("sid", "xyz", domain="example.com", path="/")
        return MagicMock(status_code=200)

    with patch.object(http.session, "request", side_effect=set_sid):
        client.post("/api/fetch", json={"url": "https://example.com/"})

    jar_path.write_text(json.dumps({"b.com": {"k": {"Name": "k", "Domain": "b.com", "Value": "disk"}}}))
    client.post("/api/cookies/reload")

    with patch.object(http.session, "request", return_value=MagicMock(status_code=200)):
        client.post("/api/fetch", json={"url": "https://b.com/"})

    listing = client.get("/api/cookies").get_json()
    assert "example.com" not in listing
    assert "b.com" in listing
    assert http.session.cookies.get("sid") is None
