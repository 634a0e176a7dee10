"""Tests for the request schemas and their error messages."""

from datetime import datetime, timedelta, timezone

import pytest

from music_catalog.core.errors import ValidationError
from music_catalog.core.resource import validate_payload
from music_catalog.models import ConcertArtistRole
from music_catalog.routers.concerts import format_start_time, to_storage_time
from music_catalog.schemas.catalog import (
    AlbumCreate,
    AlbumUpdate,
    ArtistCreate,
    ConcertArtistCreate,
    ConcertCreate,
    TimeRange,
)


class TestAlbumSchemas:

    def test_create_uses_column_names(self):
        album = validate_payload(AlbumCreate, {"title": " Kid A ", "genre": "Electronic", "releaseYear": 2000})
        assert album.model_dump() == {"title": "Kid A", "genre": "Electronic", "release_year": 2000}

    def test_update_fields_are_optional(self):
        update = validate_payload(AlbumUpdate, {"genre": "Art Rock"})
        assert update.model_fields_set == {"genre"}

    def test_update_rejects_explicit_null(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(AlbumUpdate, {"title": None})
        assert exc_info.value.errors == ["Title is required"]

    def test_snake_case_keys_are_not_accepted(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(AlbumCreate, {"title": "X", "genre": "Y", "release_year": 2000})
        assert exc_info.value.errors == ["Release year is required"]


class TestArtistSchemas:

    def test_every_bad_url_is_reported(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(
                ArtistCreate,
                {"name": "X", "biography": "Y", "socialMediaLinks": {"a": "ftp://a", "b": 5, "c": "https://c"}},
            )
        assert exc_info.value.message == "Invalid URL for a, Invalid URL for b"


class TestConcertSchemas:

    def test_start_time_keeps_offset(self):
        concert = validate_payload(ConcertCreate, {"startTime": "2025-06-01T22:00:00+02:00", "durationMinutes": 60})
        assert concert.start_time.utcoffset() == timedelta(hours=2)
        assert concert.duration_minutes == 60.0

    def test_artist_entries(self):
        concert = validate_payload(
            ConcertCreate,
            {"startTime": "2025-06-01T20:00:00Z", "durationMinutes": 45,
             "artists": [{"artistId": 3, "role": "support"}]},
        )
        assert concert.artists[0].artist_id == 3
        assert concert.artists[0].role is ConcertArtistRole.SUPPORT

    def test_artist_entry_problems(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(
                ConcertCreate,
                {"startTime": "2025-06-01T20:00:00Z", "durationMinutes": 45,
                 "artists": ["x", {"role": "primary"}, {"artistId": 2, "role": "drummer"}]},
            )
        assert exc_info.value.message == (
            "Each artist must be an object with artistId and role, "
            "Each artist must have a valid artistId, "
            "Invalid artist role: drummer"
        )

    def test_duplicate_artist_entries(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(
                ConcertCreate,
                {"startTime": "2025-06-01T20:00:00Z", "durationMinutes": 45,
                 "artists": [{"artistId": 2, "role": "primary"}, {"artistId": 2, "role": "support"}]},
            )
        assert exc_info.value.message == "Artist 2 is listed more than once"

    def test_concert_artist_requires_both_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(ConcertArtistCreate, {})
        assert exc_info.value.errors == ["Artist ID and role are required"]

    def test_time_range_requires_both_bounds(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(TimeRange, {"start": "2025-06-01T00:00:00", "end": ""})
        assert exc_info.value.errors == ["Both start and end times are required"]


class TestStartTimeStorage:

    def test_aware_time_round_trips(self):
        original = datetime(2025, 6, 1, 22, 0, tzinfo=timezone(timedelta(hours=2)))
        stored, offset = to_storage_time(original)
        assert stored == datetime(2025, 6, 1, 20, 0)
        assert offset == 7200
        assert format_start_time(stored, offset) == "2025-06-01T22:00:00+02:00"

    def test_naive_time_is_kept(self):
        stored, offset = to_storage_time(datetime(2025, 6, 1, 20, 0))
        assert offset is None
        assert format_start_time(stored, offset) == "2025-06-01T20:00:00"
