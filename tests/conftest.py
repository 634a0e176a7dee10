import os

import pytest
from fastapi.testclient import TestClient

# Every application under test gets its own in-memory store
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from music_catalog.core.config import Settings  # noqa: E402
from music_catalog.main import create_app  # noqa: E402


@pytest.fixture
def app():
    return create_app(Settings())


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def album_payload():
    return {"title": "OK Computer", "genre": "Rock", "releaseYear": 1997}


@pytest.fixture
def artist_payload():
    return {
        "name": "Radiohead",
        "biography": "English rock band formed in Abingdon.",
        "socialMediaLinks": {"twitter": "https://twitter.com/radiohead"},
    }


@pytest.fixture
def album(client, album_payload):
    response = client.post("/albums", json=album_payload)
    assert response.status_code == 201
    return response.json()["data"]


@pytest.fixture
def artist(client, artist_payload):
    response = client.post("/artists", json=artist_payload)
    assert response.status_code == 201
    return response.json()["data"]


@pytest.fixture
def make_track(client):
    def _make(album_id, artist_id, number=1, title=None, duration=240):
        response = client.post(
            "/tracks",
            json={
                "title": title or f"Track {number}",
                "trackNumber": number,
                "durationSeconds": duration,
                "albumId": album_id,
                "artistId": artist_id,
            },
        )
        assert response.status_code == 201, response.json()
        return response.json()["data"]
    return _make
