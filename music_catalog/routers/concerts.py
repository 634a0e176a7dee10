"""
Concerts Router

Concert CRUD, time-range search and management of the artists billed
at each concert.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated, Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import delete, insert, select

from music_catalog.core.conditional import quote_etag
from music_catalog.core.database import Database, Row, Transaction, get_db
from music_catalog.core.errors import NotFoundError, ValidationError
from music_catalog.core.resource import (
    Entity,
    ItemId,
    ResourceHandler,
    read_payload,
    register_resource_routes,
    row_exists,
    validate_payload,
)
from music_catalog.models import Artist, Concert, ConcertArtist
from music_catalog.schemas.catalog import (
    ConcertArtistCreate,
    ConcertBase,
    ConcertCreate,
    ConcertReplace,
    ConcertUpdate,
    TimeRange,
)
from music_catalog.schemas.envelope import Links, base_url, envelope, link

logger = logging.getLogger(__name__)


def to_storage_time(value: datetime) -> Tuple[datetime, Optional[int]]:
    """Split a start time into naive UTC and its UTC offset in seconds (None when naive)."""
    offset = value.utcoffset()
    if offset is None:
        return value, None
    return value.astimezone(timezone.utc).replace(tzinfo=None), int(offset.total_seconds())


def format_start_time(start_time: datetime, utc_offset_seconds: Optional[int]) -> str:
    """ISO-8601 start time in the offset it was given with."""
    if utc_offset_seconds is None:
        return start_time.isoformat()
    zone = timezone(timedelta(seconds=utc_offset_seconds))
    return start_time.replace(tzinfo=timezone.utc).astimezone(zone).isoformat()


class ConcertResource(ResourceHandler):
    name = "concert"
    path = "concerts"
    model = Concert
    create_schema = ConcertCreate
    replace_schema = ConcertReplace
    update_schema = ConcertUpdate
    fields = {
        "startTime": "start_time",
        "durationMinutes": "duration_minutes",
    }

    async def check_references(self, tx: Transaction, data: ConcertBase) -> List[str]:
        errors = []
        for entry in getattr(data, "artists", None) or []:
            if not await row_exists(tx, Artist, entry.artist_id):
                errors.append(f"Artist {entry.artist_id} not found")
        return errors

    def to_row(self, data: ConcertBase) -> Row:
        row = super().to_row(data)
        if "start_time" in row:
            row["start_time"], row["utc_offset_seconds"] = to_storage_time(row["start_time"])
        return row

    async def perform_create(self, tx: Transaction, data: ConcertCreate) -> int:
        result = await tx.execute(insert(self.table).values(**self.to_row(data)))
        concert_id = result.inserted_id
        for entry in data.artists or []:
            await tx.execute(
                insert(ConcertArtist.__table__).values(
                    concert_id=concert_id,
                    artist_id=entry.artist_id,
                    role=entry.role.value,
                )
            )
        return concert_id

    async def fetch_artists(self, db, concert_id: int) -> List[Dict[str, Any]]:
        link_table = ConcertArtist.__table__
        artist_table = Artist.__table__
        rows = await db.fetch_many(
            select(
                link_table.c.artist_id.label("artistId"),
                artist_table.c.name.label("artistName"),
                link_table.c.role,
            )
            .join(artist_table, artist_table.c.id == link_table.c.artist_id)
            .where(link_table.c.concert_id == concert_id)
            .order_by(link_table.c.artist_id)
        )
        return rows

    async def serialize(self, db: Database, row: Row) -> Entity:
        entity = await super().serialize(db, row)
        entity["startTime"] = format_start_time(row["start_time"], row["utc_offset_seconds"])
        duration = row["duration_minutes"]
        entity["durationMinutes"] = int(duration) if float(duration).is_integer() else duration
        entity["artists"] = await self.fetch_artists(db, row["id"])
        return entity

    def relation_links(self, root: str, entity: Entity) -> Links:
        artists_href = f"{self.item_url(root, entity['id'])}/artists"
        return {
            "addArtist": link(artists_href, "addArtist", method="POST"),
            "artists": link(artists_href, "artists", method="GET"),
        }

    def artists_collection_links(self, root: str, concert_id: int) -> Links:
        artists_href = f"{self.item_url(root, concert_id)}/artists"
        return {
            "self": link(artists_href, "self"),
            "concert": link(self.item_url(root, concert_id), "concert"),
            "addArtist": link(artists_href, "addArtist", method="POST"),
        }


concerts = ConcertResource()

router = APIRouter(prefix="/concerts", tags=["concerts"])


# Registered ahead of the generic /{item_id} routes so it is matched first
@router.get("/byTimeRange")
async def list_concerts_by_time_range(
    request: Request,
    db: Annotated[Database, Depends(get_db)],
    start: Annotated[Optional[str], Query()] = None,
    end: Annotated[Optional[str], Query()] = None,
) -> JSONResponse:
    """List concerts whose start time falls within [start, end]."""
    bounds = validate_payload(TimeRange, {"start": start, "end": end})
    range_start, _ = to_storage_time(bounds.start)
    range_end, _ = to_storage_time(bounds.end)

    table = concerts.table
    rows = await db.fetch_many(
        select(table)
        .where(table.c.start_time.between(range_start, range_end))
        .order_by(table.c.start_time, table.c.id)
    )
    data = [await concerts.serialize(db, row) for row in rows]
    root = base_url(request)
    links = concerts.collection_links(root)
    links["self"] = link(str(request.url), "self")
    links["collection"] = link(concerts.collection_url(root), "collection")
    return JSONResponse(envelope(data, links))


register_resource_routes(router, concerts)


async def _concert_response(request: Request, db: Database, concert_id: int, status_code: int) -> JSONResponse:
    row = await concerts.require_row(db, concert_id, "Concert not found")
    concert = await concerts.serialize(db, row)
    return JSONResponse(
        status_code=status_code,
        content=envelope(concert, concerts.item_links(base_url(request), concert)),
        headers={"ETag": quote_etag(row["etag"])},
    )


@router.get("/{concert_id}/artists")
async def list_concert_artists(
    concert_id: ItemId,
    request: Request,
    db: Annotated[Database, Depends(get_db)],
) -> JSONResponse:
    """List the artists billed at a concert with their roles."""
    await concerts.require_row(db, concert_id, "Concert not found")
    data = await concerts.fetch_artists(db, concert_id)
    return JSONResponse(envelope(data, concerts.artists_collection_links(base_url(request), concert_id)))


@router.post("/{concert_id}/artists", status_code=status.HTTP_201_CREATED)
async def add_concert_artist(
    concert_id: ItemId,
    request: Request,
    db: Annotated[Database, Depends(get_db)],
) -> JSONResponse:
    """
    Bill an artist at a concert.

    Body: {"artistId": int, "role": "primary" | "support" | "opening_act"}.
    An artist can only be linked to a concert once.
    """
    data = validate_payload(ConcertArtistCreate, await read_payload(request))

    link_table = ConcertArtist.__table__
    async with db.transaction() as tx:
        await concerts.require_row(tx, concert_id, "Concert not found")
        if not await row_exists(tx, Artist, data.artist_id):
            raise NotFoundError("Artist not found")

        existing = await tx.fetch_one(
            select(link_table.c.artist_id).where(
                link_table.c.concert_id == concert_id,
                link_table.c.artist_id == data.artist_id,
            )
        )
        if existing is not None:
            raise ValidationError("Artist is already in this concert")

        await tx.execute(
            insert(link_table).values(concert_id=concert_id, artist_id=data.artist_id, role=data.role.value)
        )

    logger.info("Added artist %s to concert %s as %s", data.artist_id, concert_id, data.role.value)
    return await _concert_response(request, db, concert_id, status.HTTP_201_CREATED)


@router.delete("/{concert_id}/artists/{artist_id}")
async def remove_concert_artist(
    concert_id: ItemId,
    artist_id: ItemId,
    request: Request,
    db: Annotated[Database, Depends(get_db)],
) -> JSONResponse:
    """Remove an artist from a concert; responds with the updated concert."""
    link_table = ConcertArtist.__table__
    async with db.transaction() as tx:
        await concerts.require_row(tx, concert_id, "Concert not found")
        result = await tx.execute(
            delete(link_table).where(
                link_table.c.concert_id == concert_id,
                link_table.c.artist_id == artist_id,
            )
        )
        if result.rows_affected == 0:
            raise NotFoundError("Artist not found in this concert")

    logger.info("Removed artist %s from concert %s", artist_id, concert_id)
    return await _concert_response(request, db, concert_id, status.HTTP_200_OK)
