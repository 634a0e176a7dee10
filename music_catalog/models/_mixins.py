"""Columns shared by every catalog entity."""
import secrets
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column


def new_etag() -> str:
    """Random opaque version tag."""
    return secrets.token_hex(8)


class VersionedMixin:
    """Version tag plus created/updated timestamps."""

    etag: Mapped[str] = mapped_column(
        String(32),
        default=new_etag,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )
