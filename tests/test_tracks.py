"""Tests for the tracks resource."""

from fastapi import status

from music_catalog.core.database import Transaction
from music_catalog.routers.tracks import TrackResource


def test_create_track(client, album, artist):
    response = client.post(
        "/tracks",
        json={
            "title": "Lucky",
            "trackNumber": 11,
            "durationSeconds": 259,
            "albumId": album["id"],
            "artistId": artist["id"],
        },
    )
    assert response.status_code == status.HTTP_201_CREATED
    track = response.json()["data"]
    assert track == {
        "id": track["id"],
        "title": "Lucky",
        "trackNumber": 11,
        "durationSeconds": 259,
        "albumId": album["id"],
        "artistId": artist["id"],
    }
    links = response.json()["links"]
    assert links["album"]["href"] == f"http://testserver/albums/{album['id']}"
    assert links["artist"]["href"] == f"http://testserver/artists/{artist['id']}"
    assert response.headers["location"] == f"http://testserver/tracks/{track['id']}"


def test_get_track_matches_created(client, album, artist, make_track):
    track = make_track(album["id"], artist["id"], number=4, title="Exit Music")
    response = client.get(f"/tracks/{track['id']}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"] == track


def test_missing_album_and_artist_rejected(client):
    response = client.post(
        "/tracks",
        json={"title": "Ghost", "trackNumber": 1, "durationSeconds": 100, "albumId": 5, "artistId": 6},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "Album not found" in response.json()["error"]
    assert "Artist not found" in response.json()["error"]
    assert client.get("/tracks").json()["data"] == []


def test_missing_album_only(client, artist):
    response = client.post(
        "/tracks",
        json={"title": "Ghost", "trackNumber": 1, "durationSeconds": 100, "albumId": 5, "artistId": artist["id"]},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Album not found"
    assert client.get("/tracks").json()["data"] == []


def test_required_fields(client):
    response = client.post("/tracks", json={})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    error = response.json()["error"]
    for message in (
        "Valid track number is required",
        "Title is required",
        "Valid duration in seconds is required",
        "Album ID is required",
        "Artist ID is required",
    ):
        assert message in error


def test_non_positive_numbers(client, album, artist):
    response = client.post(
        "/tracks",
        json={"title": "Zero", "trackNumber": 0, "durationSeconds": -5, "albumId": album["id"], "artistId": artist["id"]},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Valid track number is required, Valid duration in seconds is required"


def test_patch_moves_track_to_other_album(client, album, artist, make_track):
    other = client.post("/albums", json={"title": "Kid A", "genre": "Electronic", "releaseYear": 2000}).json()["data"]
    track = make_track(album["id"], artist["id"])

    response = client.patch(f"/tracks/{track['id']}", json={"albumId": other["id"]})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["albumId"] == other["id"]
    assert client.get(f"/albums/{other['id']}/tracks").json()["data"][0]["id"] == track["id"]


def test_patch_to_missing_artist(client, album, artist, make_track):
    track = make_track(album["id"], artist["id"])
    response = client.patch(f"/tracks/{track['id']}", json={"artistId": 404})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Artist not found"


def test_delete_track(client, album, artist, make_track):
    track = make_track(album["id"], artist["id"])
    assert client.delete(f"/tracks/{track['id']}").status_code == status.HTTP_204_NO_CONTENT
    assert client.delete(f"/tracks/{track['id']}").status_code == status.HTTP_404_NOT_FOUND
    assert client.get(f"/albums/{album['id']}").status_code == status.HTTP_200_OK


def test_integers_beyond_storage_range(client, album, artist):
    response = client.post(
        "/tracks",
        json={"title": "Huge", "trackNumber": 10**20, "durationSeconds": 100,
              "albumId": album["id"], "artistId": 10**20},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Valid track number is required, Artist not found"
    assert client.get("/tracks").json()["data"] == []


def test_id_beyond_storage_range(client):
    for method in ("get", "delete"):
        response = getattr(client, method)("/tracks/100000000000000000000")
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "item_id" in response.json()["error"]


def test_create_checks_and_inserts_in_one_transaction(client, album, artist, monkeypatch):
    used = []
    check_references = TrackResource.check_references
    perform_create = TrackResource.perform_create

    async def recording_check(self, tx, data):
        used.append(tx)
        return await check_references(self, tx, data)

    async def recording_create(self, tx, data):
        used.append(tx)
        return await perform_create(self, tx, data)

    monkeypatch.setattr(TrackResource, "check_references", recording_check)
    monkeypatch.setattr(TrackResource, "perform_create", recording_create)

    response = client.post(
        "/tracks",
        json={"title": "Airbag", "trackNumber": 1, "durationSeconds": 284,
              "albumId": album["id"], "artistId": artist["id"]},
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert len(used) == 2
    assert isinstance(used[0], Transaction)
    assert used[0] is used[1]
