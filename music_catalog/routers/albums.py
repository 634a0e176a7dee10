"""
Albums Router

Album CRUD plus the nested tracks collection of each album.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import delete, select

from music_catalog.core.conditional import quote_etag
from music_catalog.core.database import Database, Transaction, get_db
from music_catalog.core.errors import ValidationError
from music_catalog.core.resource import (
    Entity,
    ItemId,
    ResourceHandler,
    read_payload,
    register_resource_routes,
    validate_payload,
)
from music_catalog.models import Album, Track
from music_catalog.routers.tracks import tracks as track_handler
from music_catalog.schemas.catalog import AlbumCreate, AlbumUpdate
from music_catalog.schemas.envelope import Links, base_url, envelope, link

logger = logging.getLogger(__name__)


class AlbumResource(ResourceHandler):
    name = "album"
    path = "albums"
    model = Album
    create_schema = AlbumCreate
    update_schema = AlbumUpdate
    fields = {
        "title": "title",
        "genre": "genre",
        "releaseYear": "release_year",
    }

    async def delete_dependents(self, tx: Transaction, item_id: int) -> None:
        result = await tx.execute(delete(Track.__table__).where(Track.__table__.c.album_id == item_id))
        logger.info("Removing %d track(s) with album %s", result.rows_affected, item_id)

    def relation_links(self, root: str, entity: Entity) -> Links:
        tracks_href = f"{self.item_url(root, entity['id'])}/tracks"
        return {
            "tracks": link(tracks_href, "tracks", method="GET"),
            "addTrack": link(tracks_href, "create", method="POST"),
        }

    def tracks_collection_links(self, root: str, album_id: int) -> Links:
        tracks_href = f"{self.item_url(root, album_id)}/tracks"
        return {
            "self": link(tracks_href, "self"),
            "album": link(self.item_url(root, album_id), "album"),
            "addTrack": link(tracks_href, "create", method="POST"),
        }


albums = AlbumResource()

router = APIRouter(prefix="/albums", tags=["albums"])
register_resource_routes(router, albums)


@router.get("/{album_id}/tracks")
async def list_album_tracks(
    album_id: ItemId,
    request: Request,
    db: Annotated[Database, Depends(get_db)],
) -> JSONResponse:
    """List an album's tracks ordered by track number."""
    await albums.require_row(db, album_id, "Album not found")
    table = Track.__table__
    rows = await db.fetch_many(
        select(table)
        .where(table.c.album_id == album_id)
        .order_by(table.c.track_number, table.c.id)
    )
    data = [await track_handler.serialize(db, row) for row in rows]
    return JSONResponse(envelope(data, albums.tracks_collection_links(base_url(request), album_id)))


@router.post("/{album_id}/tracks", status_code=status.HTTP_201_CREATED)
async def add_album_track(
    album_id: ItemId,
    request: Request,
    db: Annotated[Database, Depends(get_db)],
) -> JSONResponse:
    """
    Add a track to an album.

    The album comes from the path; any albumId in the body is ignored.
    The referenced artist must exist.
    """
    payload = await read_payload(request)
    payload["albumId"] = album_id

    async with db.transaction() as tx:
        await albums.require_row(tx, album_id, "Album not found")
        data = validate_payload(track_handler.create_schema, payload)
        errors = await track_handler.check_references(tx, data)
        if errors:
            raise ValidationError(errors)
        track_id = await track_handler.perform_create(tx, data)

    row = await track_handler.require_row(db, track_id)
    track = await track_handler.serialize(db, row)
    links = track_handler.item_links(base_url(request), track)
    logger.info("Added track %s to album %s", track_id, album_id)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=envelope(track, links),
        headers={"Location": links["self"].href, "ETag": quote_etag(row["etag"])},
    )
