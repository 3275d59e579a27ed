"""Persistent storage for groups and their content lists."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import ContentEntry, Group, default_catalog_settings
from ..errors import DuplicateEntryError
from ..models import CONTENT_TYPES
from ..utils import split_genres

logger = logging.getLogger(__name__)

UNIQUE_CONTENT_CONSTRAINT = "uq_content_group_imdb"


@dataclass
class GroupState:
    """Snapshot of a stored group."""

    id: str
    name: str
    password_hash: str
    catalog_settings: dict[str, Any] = field(default_factory=default_catalog_settings)
    created_at: datetime | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "catalog_settings": self.catalog_settings,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class StoredContent:
    """Snapshot of one entry on a group's list."""

    id: int
    group_id: str
    imdb_id: str
    title: str
    type: str
    poster_url: str | None = None
    genres: str | None = None
    added_at: datetime | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "group_id": self.group_id,
            "imdb_id": self.imdb_id,
            "title": self.title,
            "type": self.type,
            "poster_url": self.poster_url,
            "genres": self.genres,
            "added_at": self.added_at.isoformat() if self.added_at else None,
        }

    def to_meta(self) -> dict[str, Any]:
        """Return a Stremio-compatible meta preview."""

        meta: dict[str, Any] = {
            "id": self.imdb_id,
            "type": self.type,
            "name": self.title,
            "genres": split_genres(self.genres),
        }
        if self.poster_url:
            meta["poster"] = self.poster_url
        return meta


class CatalogStore:
    """Data access for groups and content entries.

    Each call runs in its own session; the ``(group_id, imdb_id)`` unique
    constraint is the authority on duplicates.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create_group(
        self, group_id: str, name: str, password_hash: str
    ) -> GroupState:
        async with self._session_factory() as session:
            group = Group(
                id=group_id,
                name=name,
                password_hash=password_hash,
                catalog_settings=default_catalog_settings(),
                created_at=datetime.utcnow(),
            )
            session.add(group)
            await session.commit()
            return self._group_to_state(group)

    async def get_group(self, group_id: str) -> GroupState | None:
        async with self._session_factory() as session:
            group = await session.get(Group, group_id)
            if group is None:
                return None
            return self._group_to_state(group)

    async def update_catalog_settings(
        self, group_id: str, catalog_settings: dict[str, Any]
    ) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                update(Group)
                .where(Group.id == group_id)
                .values(catalog_settings=catalog_settings)
            )
            await session.commit()
            return result.rowcount or 0

    async def get_entry_by_imdb_id(
        self, group_id: str, imdb_id: str
    ) -> StoredContent | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ContentEntry).where(
                    ContentEntry.group_id == group_id,
                    ContentEntry.imdb_id == imdb_id,
                )
            )
            entry = result.scalar_one_or_none()
            return self._entry_to_state(entry) if entry is not None else None

    async def get_entry(self, entry_id: int, group_id: str) -> StoredContent | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ContentEntry).where(
                    ContentEntry.id == entry_id,
                    ContentEntry.group_id == group_id,
                )
            )
            entry = result.scalar_one_or_none()
            return self._entry_to_state(entry) if entry is not None else None

    async def insert_entry(
        self,
        group_id: str,
        imdb_id: str,
        title: str,
        content_type: str,
        poster_url: str | None = None,
        genres: str | None = None,
    ) -> StoredContent:
        """Insert a new entry, raising :class:`DuplicateEntryError` on conflict."""

        async with self._session_factory() as session:
            entry = ContentEntry(
                group_id=group_id,
                imdb_id=imdb_id,
                title=title,
                type=content_type,
                poster_url=poster_url,
                genres=genres,
                added_at=datetime.utcnow(),
            )
            session.add(entry)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                if self._is_unique_violation(exc):
                    logger.info(
                        "Unique constraint rejected %s for group %s", imdb_id, group_id
                    )
                    raise DuplicateEntryError(group_id, imdb_id) from exc
                raise
            return self._entry_to_state(entry)

    async def delete_entry(self, entry_id: int, group_id: str) -> int:
        """Delete an entry scoped to its group and return the removed count."""

        async with self._session_factory() as session:
            result = await session.execute(
                delete(ContentEntry).where(
                    ContentEntry.id == entry_id,
                    ContentEntry.group_id == group_id,
                )
            )
            await session.commit()
            return result.rowcount or 0

    async def list_entries(
        self, group_id: str, content_type: str | None = None
    ) -> list[StoredContent]:
        """Return a group's entries, newest first, optionally filtered by type."""

        statement = select(ContentEntry).where(ContentEntry.group_id == group_id)
        if content_type in CONTENT_TYPES:
            statement = statement.where(ContentEntry.type == content_type)
        statement = statement.order_by(
            ContentEntry.added_at.desc(), ContentEntry.id.desc()
        )
        async with self._session_factory() as session:
            result = await session.execute(statement)
            return [self._entry_to_state(entry) for entry in result.scalars()]

    @staticmethod
    def _is_unique_violation(exc: IntegrityError) -> bool:
        original = getattr(exc, "orig", None)
        if getattr(original, "sqlstate", None) == "23505":
            return True
        message = str(original or exc)
        return (
            "UNIQUE constraint failed" in message
            or UNIQUE_CONTENT_CONSTRAINT in message
        )

    @staticmethod
    def _group_to_state(group: Group) -> GroupState:
        settings = group.catalog_settings
        if not isinstance(settings, dict):
            settings = default_catalog_settings()
        return GroupState(
            id=group.id,
            name=group.name,
            password_hash=group.password_hash,
            catalog_settings=dict(settings),
            created_at=group.created_at,
        )

    @staticmethod
    def _entry_to_state(entry: ContentEntry) -> StoredContent:
        return StoredContent(
            id=entry.id,
            group_id=entry.group_id,
            imdb_id=entry.imdb_id,
            title=entry.title,
            type=entry.type,
            poster_url=entry.poster_url,
            genres=entry.genres,
            added_at=entry.added_at,
        )
