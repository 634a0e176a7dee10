"""
Tracks Router

Tracks belong to one album and are performed by one artist.
"""

from typing import List

from fastapi import APIRouter

from music_catalog.core.database import Transaction
from music_catalog.core.resource import Entity, ResourceHandler, register_resource_routes, row_exists
from music_catalog.models import Album, Artist, Track
from music_catalog.schemas.catalog import TrackBase, TrackCreate, TrackUpdate
from music_catalog.schemas.envelope import Links, link


class TrackResource(ResourceHandler):
    name = "track"
    path = "tracks"
    model = Track
    create_schema = TrackCreate
    update_schema = TrackUpdate
    fields = {
        "title": "title",
        "trackNumber": "track_number",
        "durationSeconds": "duration_seconds",
        "albumId": "album_id",
        "artistId": "artist_id",
    }

    async def check_references(self, tx: Transaction, data: TrackBase) -> List[str]:
        errors = []
        if data.album_id is not None and not await row_exists(tx, Album, data.album_id):
            errors.append("Album not found")
        if data.artist_id is not None and not await row_exists(tx, Artist, data.artist_id):
            errors.append("Artist not found")
        return errors

    def relation_links(self, root: str, entity: Entity) -> Links:
        return {
            "album": link(f"{root}/albums/{entity['albumId']}", "album", method="GET"),
            "artist": link(f"{root}/artists/{entity['artistId']}", "artist", method="GET"),
        }


tracks = TrackResource()

router = APIRouter(prefix="/tracks", tags=["tracks"])
register_resource_routes(router, tracks)
