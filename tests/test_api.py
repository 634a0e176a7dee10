"""Tests for the entry point, error envelopes and configuration."""

from fastapi import status
from fastapi.testclient import TestClient

from music_catalog.core.config import Settings
from music_catalog.core.database import Database
from music_catalog.core.errors import StorageError


def test_root_lists_collections(client):
    response = client.get("/")
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["data"]["resources"] == ["albums", "artists", "tracks", "concerts"]
    assert body["links"]["concerts"]["href"] == "http://testserver/concerts"


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_unknown_route_envelope(client):
    response = client.get("/labels")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {
        "error": "Resource not found",
        "links": {
            "self": {"href": "http://testserver/labels", "rel": "self"},
            "collection": {"href": "http://testserver/labels", "rel": "collection"},
        },
    }


def test_method_not_allowed(client):
    response = client.put("/albums")
    assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
    assert "error" in response.json()
    assert "self" in response.json()["links"]


def test_storage_error_becomes_500(client, monkeypatch):
    async def broken_fetch_many(self, statement, params=None):
        raise StorageError()

    monkeypatch.setattr(Database, "fetch_many", broken_fetch_many)
    response = client.get("/artists")
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["error"] == "Database operation failed"
    assert response.json()["links"]["self"]["href"] == "http://testserver/artists"


def test_unhandled_error_is_generic(app):
    @app.get("/boom")
    async def boom():
        raise RuntimeError("secret details")

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/boom")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["error"] == "Internal Server Error"
    assert "secret" not in response.text


def test_each_app_has_its_own_store(app, album_payload):
    with TestClient(app) as client:
        client.post("/albums", json=album_payload)
        assert len(client.get("/albums").json()["data"]) == 1

    from music_catalog.main import create_app

    with TestClient(create_app(Settings())) as client:
        assert client.get("/albums").json()["data"] == []


def test_port_setting(monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    assert Settings().PORT == 3000
    monkeypatch.setenv("PORT", "8080")
    assert Settings().PORT == 8080
