"""SQLAlchemy ORM models backing the persistent state."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base


def default_catalog_settings() -> dict[str, bool]:
    return {"movies": True, "series": True, "all": True}


class Group(Base):
    """A group sharing one watch-list."""

    __tablename__ = "groups"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(120))
    password_hash: Mapped[str] = mapped_column(Text)
    catalog_settings: Mapped[dict[str, Any] | None] = mapped_column(
        JSON, default=default_catalog_settings, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )

    entries: Mapped[list["ContentEntry"]] = relationship(
        back_populates="group", cascade="all, delete-orphan", passive_deletes=True
    )


class ContentEntry(Base):
    """A movie or series on a group's list."""

    __tablename__ = "content"
    __table_args__ = (
        UniqueConstraint("group_id", "imdb_id", name="uq_content_group_imdb"),
        CheckConstraint("type IN ('movie', 'series')", name="ck_content_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("groups.id", ondelete="CASCADE"), index=True
    )
    imdb_id: Mapped[str] = mapped_column(String(16))
    title: Mapped[str] = mapped_column(String(255))
    type: Mapped[str] = mapped_column(String(16))
    poster_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    genres: Mapped[str | None] = mapped_column(Text, nullable=True)
    added_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )

    group: Mapped[Group] = relationship(back_populates="entries")
