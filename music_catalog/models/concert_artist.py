"""Association between concerts and the artists performing at them."""
from enum import Enum

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from music_catalog.core.database import Base


class ConcertArtistRole(str, Enum):
    """Billing of an artist at a concert."""
    PRIMARY = "primary"
    SUPPORT = "support"
    OPENING_ACT = "opening_act"


class ConcertArtist(Base):
    """
    Links an artist to a concert with a role.

    The (concert_id, artist_id) pair is the primary key, so an artist
    appears at most once per concert.
    """

    __tablename__ = "concert_artists"

    concert_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("concerts.id", ondelete="CASCADE"),
        primary_key=True,
    )
    artist_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("artists.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    role: Mapped[str] = mapped_column(
        String(20),
        default=ConcertArtistRole.PRIMARY.value,
        nullable=False,
    )

    # Relationships
    concert = relationship("Concert", back_populates="artist_links")
    artist = relationship("Artist", back_populates="concert_links")

    def __repr__(self) -> str:
        return f"<ConcertArtist concert_id={self.concert_id} artist_id={self.artist_id} role={self.role}>"
