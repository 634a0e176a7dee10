"""Artist model."""
from typing import TYPE_CHECKING, List

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from music_catalog.core.database import Base
from music_catalog.models._mixins import VersionedMixin

if TYPE_CHECKING:
    from music_catalog.models.concert_artist import ConcertArtist
    from music_catalog.models.track import Track


class Artist(VersionedMixin, Base):
    """Performer of tracks and concerts."""

    __tablename__ = "artists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    biography: Mapped[str] = mapped_column(Text, nullable=False)

    # JSON object of platform -> URL, stored as text
    social_media_links: Mapped[str] = mapped_column(Text, nullable=False, default="{}")

    # Relationships
    tracks: Mapped[List["Track"]] = relationship(
        "Track",
        back_populates="artist",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    concert_links: Mapped[List["ConcertArtist"]] = relationship(
        "ConcertArtist",
        back_populates="artist",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Artist {self.id} name={self.name}>"
