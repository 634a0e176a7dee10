"""
Request schemas for catalog resources.

Each resource has a ``*Create`` schema, used for POST and PUT, where every
required field must be present, and a ``*Update`` schema for PATCH where
omitted fields are left alone. Field validators raise the client-facing
messages; ``core.errors.error_messages`` turns them into the 400 body.
"""
from datetime import date, datetime
from typing import Annotated, Dict, List, Optional

import pydantic
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StringConstraints,
    field_validator,
    model_validator,
)

from music_catalog.core.database import INTEGER_MAX
from music_catalog.core.errors import error_messages
from music_catalog.models import ConcertArtistRole

MIN_RELEASE_YEAR = 1900

Text = Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=1)]
PositiveInt = Annotated[int, Field(strict=True, ge=1, le=INTEGER_MAX)]
PositiveNumber = Annotated[float, Field(strict=True, gt=0, allow_inf_nan=False)]
SocialUrl = Annotated[str, StringConstraints(strict=True, pattern=r"^https?://")]


def _check(value, handler, required: str, invalid: Optional[str] = None):
    """Run the field's own validation, reporting any failure with our message."""
    if value is None:
        raise ValueError(required)
    try:
        return handler(value)
    except pydantic.ValidationError:
        raise ValueError(invalid or required) from None


# Albums

class AlbumBase(BaseModel):
    """Fields shared by album schemas."""
    title: Optional[Text] = None
    genre: Optional[Text] = None
    release_year: Optional[StrictInt] = Field(None, alias="releaseYear", description="Between 1900 and the current year")

    @field_validator("title", mode="wrap")
    @classmethod
    def validate_title(cls, v, handler):
        return _check(v, handler, "Title is required")

    @field_validator("genre", mode="wrap")
    @classmethod
    def validate_genre(cls, v, handler):
        return _check(v, handler, "Genre is required")

    @field_validator("release_year", mode="wrap")
    @classmethod
    def validate_release_year(cls, v, handler):
        year = _check(v, handler, "Release year is required", "Invalid release year")
        if not MIN_RELEASE_YEAR <= year <= date.today().year:
            raise ValueError("Invalid release year")
        return year


class AlbumCreate(AlbumBase):
    """Schema for creating or replacing an album."""
    model_config = ConfigDict(validate_default=True)


class AlbumUpdate(AlbumBase):
    """Schema for partially updating an album."""
    pass


# Artists

class ArtistBase(BaseModel):
    """Fields shared by artist schemas."""
    name: Optional[Text] = None
    biography: Optional[Text] = None
    social_media_links: Optional[Dict[str, SocialUrl]] = Field(
        None,
        alias="socialMediaLinks",
        description="Platform name -> http(s) URL",
    )

    @field_validator("name", mode="wrap")
    @classmethod
    def validate_name(cls, v, handler):
        return _check(v, handler, "Name is required")

    @field_validator("biography", mode="wrap")
    @classmethod
    def validate_biography(cls, v, handler):
        return _check(v, handler, "Biography is required")

    @field_validator("social_media_links", mode="wrap")
    @classmethod
    def validate_social_media_links(cls, v, handler):
        if v is None:
            return None
        try:
            return handler(v)
        except pydantic.ValidationError as exc:
            platforms = [str(err["loc"][0]) for err in exc.errors() if err["loc"]]
        if not platforms:
            raise ValueError("Social media links must be provided as an object")
        raise ValueError(", ".join(f"Invalid URL for {platform}" for platform in dict.fromkeys(platforms)))


class ArtistCreate(ArtistBase):
    """Schema for creating or replacing an artist."""
    model_config = ConfigDict(validate_default=True)


class ArtistUpdate(ArtistBase):
    """Schema for partially updating an artist."""
    pass


# Tracks

class TrackBase(BaseModel):
    """Fields shared by track schemas."""
    track_number: Optional[PositiveInt] = Field(None, alias="trackNumber")
    title: Optional[Text] = None
    duration_seconds: Optional[PositiveInt] = Field(None, alias="durationSeconds")
    album_id: Optional[PositiveInt] = Field(None, alias="albumId")
    artist_id: Optional[PositiveInt] = Field(None, alias="artistId")

    @field_validator("track_number", mode="wrap")
    @classmethod
    def validate_track_number(cls, v, handler):
        return _check(v, handler, "Valid track number is required")

    @field_validator("title", mode="wrap")
    @classmethod
    def validate_title(cls, v, handler):
        return _check(v, handler, "Title is required")

    @field_validator("duration_seconds", mode="wrap")
    @classmethod
    def validate_duration_seconds(cls, v, handler):
        return _check(v, handler, "Valid duration in seconds is required")

    @field_validator("album_id", mode="wrap")
    @classmethod
    def validate_album_id(cls, v, handler):
        return _check(v, handler, "Album ID is required", "Album not found")

    @field_validator("artist_id", mode="wrap")
    @classmethod
    def validate_artist_id(cls, v, handler):
        return _check(v, handler, "Artist ID is required", "Artist not found")


class TrackCreate(TrackBase):
    """Schema for creating or replacing a track."""
    model_config = ConfigDict(validate_default=True)


class TrackUpdate(TrackBase):
    """Schema for partially updating a track."""
    pass


# Concerts

class ConcertArtistEntry(BaseModel):
    """An artist billed in the body of a new concert."""
    model_config = ConfigDict(validate_default=True)

    artist_id: Optional[PositiveInt] = Field(None, alias="artistId")
    role: Optional[ConcertArtistRole] = None

    @model_validator(mode="before")
    @classmethod
    def require_object(cls, data):
        if not isinstance(data, dict):
            raise ValueError("Each artist must be an object with artistId and role")
        return data

    @field_validator("artist_id", mode="wrap")
    @classmethod
    def validate_artist_id(cls, v, handler):
        return _check(v, handler, "Each artist must have a valid artistId")

    @field_validator("role", mode="wrap")
    @classmethod
    def validate_role(cls, v, handler):
        return _check(v, handler, f"Invalid artist role: {v}")


class ConcertBase(BaseModel):
    """Fields shared by concert schemas."""
    start_time: Optional[datetime] = Field(None, alias="startTime", description="ISO-8601, offset kept")
    duration_minutes: Optional[PositiveNumber] = Field(None, alias="durationMinutes")

    @field_validator("start_time", mode="wrap")
    @classmethod
    def validate_start_time(cls, v, handler):
        return _check(v, handler, "Start time is required", "Invalid start time format")

    @field_validator("duration_minutes", mode="wrap")
    @classmethod
    def validate_duration_minutes(cls, v, handler):
        return _check(v, handler, "Duration must be a positive number")


class ConcertReplace(ConcertBase):
    """Schema for replacing a concert; billing is managed separately."""
    model_config = ConfigDict(validate_default=True)


class ConcertCreate(ConcertReplace):
    """Schema for creating a concert, optionally with its artists."""
    artists: Optional[List[ConcertArtistEntry]] = None

    @field_validator("artists", mode="wrap")
    @classmethod
    def validate_artists(cls, v, handler):
        if v is None:
            return None
        try:
            entries = handler(v)
        except pydantic.ValidationError as exc:
            errors = exc.errors()
            if any(not err["loc"] for err in errors):
                raise ValueError("Artists must be an array") from None
            raise ValueError(", ".join(error_messages(errors))) from None

        seen = set()
        duplicates = []
        for entry in entries:
            if entry.artist_id in seen and entry.artist_id not in duplicates:
                duplicates.append(entry.artist_id)
            seen.add(entry.artist_id)
        if duplicates:
            raise ValueError(", ".join(f"Artist {artist_id} is listed more than once" for artist_id in duplicates))
        return entries


class ConcertUpdate(ConcertBase):
    """Schema for partially updating a concert."""
    pass


class ConcertArtistCreate(BaseModel):
    """Schema for billing an artist at an existing concert."""
    model_config = ConfigDict(validate_default=True)

    artist_id: Optional[PositiveInt] = Field(None, alias="artistId")
    role: Optional[ConcertArtistRole] = None

    @field_validator("artist_id", mode="wrap")
    @classmethod
    def validate_artist_id(cls, v, handler):
        return _check(v, handler, "Artist ID and role are required", "Artist ID must be a positive integer")

    @field_validator("role", mode="wrap")
    @classmethod
    def validate_role(cls, v, handler):
        return _check(v, handler, "Artist ID and role are required", f"Invalid artist role: {v}")


class TimeRange(BaseModel):
    """Inclusive bounds of a concert search."""
    start: datetime
    end: datetime

    @field_validator("start", mode="wrap")
    @classmethod
    def validate_start(cls, v, handler):
        return _check(v or None, handler, "Both start and end times are required", "Invalid start time format")

    @field_validator("end", mode="wrap")
    @classmethod
    def validate_end(cls, v, handler):
        return _check(v or None, handler, "Both start and end times are required", "Invalid end time format")
