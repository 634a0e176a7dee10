"""Concert model."""
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, Float, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from music_catalog.core.database import Base
from music_catalog.models._mixins import VersionedMixin

if TYPE_CHECKING:
    from music_catalog.models.concert_artist import ConcertArtist


class Concert(VersionedMixin, Base):
    """A scheduled performance with one or more artists."""

    __tablename__ = "concerts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Naive UTC, with the offset the client sent (null for naive input)
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    utc_offset_seconds: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    duration_minutes: Mapped[float] = mapped_column(Float, nullable=False)

    # Relationships
    artist_links: Mapped[List["ConcertArtist"]] = relationship(
        "ConcertArtist",
        back_populates="concert",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Concert {self.id} start={self.start_time}>"
