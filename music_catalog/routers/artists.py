"""
Artists Router

Artist CRUD plus read-only views of an artist's tracks and concerts.
"""

import json
import logging
from typing import Annotated, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import select

from music_catalog.core.database import Database, Row, get_db
from music_catalog.core.resource import Entity, ItemId, ResourceHandler, register_resource_routes
from music_catalog.models import Artist, Concert, ConcertArtist, Track
from music_catalog.routers.concerts import concerts as concert_handler
from music_catalog.routers.tracks import tracks as track_handler
from music_catalog.schemas.catalog import ArtistBase, ArtistCreate, ArtistUpdate
from music_catalog.schemas.envelope import Links, base_url, envelope, link

logger = logging.getLogger(__name__)


def dump_social_links(links: Dict[str, str]) -> str:
    return json.dumps(links, sort_keys=True)


def load_social_links(raw: str) -> Dict[str, str]:
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except ValueError:
        logger.warning("Discarding unreadable social media links: %r", raw)
        return {}
    return value if isinstance(value, dict) else {}


class ArtistResource(ResourceHandler):
    name = "artist"
    path = "artists"
    model = Artist
    create_schema = ArtistCreate
    update_schema = ArtistUpdate
    fields = {
        "name": "name",
        "biography": "biography",
        "socialMediaLinks": "social_media_links",
    }

    def to_row(self, data: ArtistBase) -> Row:
        row = super().to_row(data)
        if "social_media_links" in row:
            row["social_media_links"] = dump_social_links(row["social_media_links"] or {})
        return row

    async def serialize(self, db: Database, row: Row) -> Entity:
        entity = await super().serialize(db, row)
        entity["socialMediaLinks"] = load_social_links(row["social_media_links"])
        return entity

    def relation_links(self, root: str, entity: Entity) -> Links:
        href = self.item_url(root, entity["id"])
        return {
            "tracks": link(f"{href}/tracks", "tracks", method="GET"),
            "concerts": link(f"{href}/concerts", "concerts", method="GET"),
        }


artists = ArtistResource()

router = APIRouter(prefix="/artists", tags=["artists"])
register_resource_routes(router, artists)


@router.get("/{artist_id}/tracks")
async def list_artist_tracks(
    artist_id: ItemId,
    request: Request,
    db: Annotated[Database, Depends(get_db)],
) -> JSONResponse:
    """List the tracks an artist performs."""
    await artists.require_row(db, artist_id, "Artist not found")
    table = Track.__table__
    rows = await db.fetch_many(
        select(table)
        .where(table.c.artist_id == artist_id)
        .order_by(table.c.album_id, table.c.track_number)
    )
    data = [await track_handler.serialize(db, row) for row in rows]

    root = base_url(request)
    links = {
        "self": link(f"{artists.item_url(root, artist_id)}/tracks", "self"),
        "artist": link(artists.item_url(root, artist_id), "artist"),
    }
    return JSONResponse(envelope(data, links))


@router.get("/{artist_id}/concerts")
async def list_artist_concerts(
    artist_id: ItemId,
    request: Request,
    db: Annotated[Database, Depends(get_db)],
) -> JSONResponse:
    """List the concerts an artist is billed at, by start time."""
    await artists.require_row(db, artist_id, "Artist not found")
    concert_table = Concert.__table__
    link_table = ConcertArtist.__table__
    rows = await db.fetch_many(
        select(concert_table)
        .join(link_table, link_table.c.concert_id == concert_table.c.id)
        .where(link_table.c.artist_id == artist_id)
        .order_by(concert_table.c.start_time)
    )
    data = [await concert_handler.serialize(db, row) for row in rows]

    root = base_url(request)
    links = {
        "self": link(f"{artists.item_url(root, artist_id)}/concerts", "self"),
        "artist": link(artists.item_url(root, artist_id), "artist"),
    }
    return JSONResponse(envelope(data, links))
