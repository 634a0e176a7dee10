"""
Music Catalog - FastAPI Application

CRUD API over albums, artists, tracks and concerts with hypermedia links
and version-tag checks.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from music_catalog import __version__
from music_catalog.core.config import Settings, get_settings
from music_catalog.core.database import Database
from music_catalog.core.errors import install_error_handlers
from music_catalog.routers.albums import router as albums_router
from music_catalog.routers.artists import router as artists_router
from music_catalog.routers.concerts import router as concerts_router
from music_catalog.routers.meta import router as meta_router
from music_catalog.routers.tracks import router as tracks_router

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application. Each call gets its own storage handle."""
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Handle startup and shutdown events."""
        db = Database(settings.DATABASE_URL, echo=settings.SQL_ECHO)
        await db.create_schema()
        app.state.db = db
        yield
        # Cleanup on shutdown
        await db.dispose()

    app = FastAPI(
        title="Music Catalog",
        description="CRUD API for albums, artists, tracks and concerts",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["ETag", "Location"],
    )

    install_error_handlers(app)

    # Include routers
    app.include_router(meta_router)
    app.include_router(albums_router)
    app.include_router(artists_router)
    app.include_router(tracks_router)
    app.include_router(concerts_router)

    return app


app = create_app()
