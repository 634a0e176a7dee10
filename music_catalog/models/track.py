"""Track model."""
from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from music_catalog.core.database import Base
from music_catalog.models._mixins import VersionedMixin


class Track(VersionedMixin, Base):
    """A track on an album, performed by one artist."""

    __tablename__ = "tracks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    track_number: Mapped[int] = mapped_column(Integer, nullable=False)
    duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False)

    album_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("albums.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    artist_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("artists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Relationships
    album = relationship("Album", back_populates="tracks")
    artist = relationship("Artist", back_populates="tracks")

    def __repr__(self) -> str:
        return f"<Track {self.id} album_id={self.album_id} number={self.track_number}>"
