"""SQLAlchemy ORM models."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Return an aware UTC timestamp for row defaults and TTL cut-offs."""
    return datetime.now(tz=timezone.utc)


class Base(DeclarativeBase):
    """Base declarative class."""


class TempFileModel(Base):
    """Filesystem path considered transient until an allocation supersedes it."""

    __tablename__ = "temp_file"

    path: Mapped[str] = mapped_column(String(512), primary_key=True)
    tracked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class ImageAllocModel(Base):
    __tablename__ = "image_alloc"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    fingerprint: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    md5: Mapped[str | None] = mapped_column(String(32))
    payload_json: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
