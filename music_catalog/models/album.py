"""Album model."""
from typing import TYPE_CHECKING, List

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from music_catalog.core.database import Base
from music_catalog.models._mixins import VersionedMixin

if TYPE_CHECKING:
    from music_catalog.models.track import Track


class Album(VersionedMixin, Base):
    """A release owning zero or more tracks."""

    __tablename__ = "albums"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    genre: Mapped[str] = mapped_column(String(100), nullable=False)
    release_year: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    tracks: Mapped[List["Track"]] = relationship(
        "Track",
        back_populates="album",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Album {self.id} title={self.title}>"
