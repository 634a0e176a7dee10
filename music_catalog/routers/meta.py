"""
Meta Router

Entry point listing the catalog collections, and a health check.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from music_catalog.routers.albums import albums
from music_catalog.routers.artists import artists
from music_catalog.routers.concerts import concerts
from music_catalog.routers.tracks import tracks
from music_catalog.schemas.envelope import Links, base_url, envelope, link

router = APIRouter(tags=["meta"])

RESOURCES = (albums, artists, tracks, concerts)


@router.get("/")
async def api_root(request: Request) -> JSONResponse:
    """Describe the available collections."""
    root = base_url(request)
    links: Links = {"self": link(f"{root}/", "self")}
    for handler in RESOURCES:
        links[handler.path] = link(handler.collection_url(root), handler.path, method="GET")
    data = {
        "message": "Available endpoints: " + ", ".join(f"/{handler.path}" for handler in RESOURCES),
        "resources": [handler.path for handler in RESOURCES],
    }
    return JSONResponse(envelope(data, links))


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
