"""Adding, removing and probing content on a group's shared list."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..errors import (
    ContentNotFound,
    DuplicateEntryError,
    GroupNotFound,
    InvalidFormat,
    UnresolvedContent,
)
from ..identifiers import KitsuReference, parse_content_id, parse_stream_id
from ..models import ResolvedMetadata
from .notifications import GroupNotifier, content_added_event, content_removed_event
from .resolver import MetadataResolver
from .store import CatalogStore, GroupState, StoredContent

logger = logging.getLogger(__name__)


class AddStatus(str, Enum):
    ADDED = "added"
    DUPLICATE = "duplicate"


@dataclass
class AddOutcome:
    """Result of :meth:`ContentService.add_content`."""

    status: AddStatus
    message: str
    entry: StoredContent | None = None
    info: ResolvedMetadata | None = None

    @property
    def is_duplicate(self) -> bool:
        return self.status is AddStatus.DUPLICATE

    @property
    def title(self) -> str | None:
        if self.info is not None:
            return self.info.title
        if self.entry is not None:
            return self.entry.title
        return None

    def to_payload(self) -> dict[str, Any]:
        return {
            "success": self.status is AddStatus.ADDED,
            "message": self.message,
            "info": self.info.to_payload() if self.info is not None else None,
            "isDuplicate": self.is_duplicate,
        }


@dataclass
class ContentPreview:
    """Metadata looked up for the web UI before anything is stored."""

    info: ResolvedMetadata
    original_id: str
    resolved_imdb_id: str

    def to_payload(self) -> dict[str, Any]:
        return {
            **self.info.to_payload(),
            "originalId": self.original_id,
            "resolvedImdbId": self.resolved_imdb_id,
        }


@dataclass
class StreamProbe:
    """Read-only answer to "is this title already on the list?"."""

    group: GroupState
    content_id: str
    existing: StoredContent | None = None


def duplicate_message(title: str) -> str:
    return f'"{title}" is already in the group list.'


class ContentService:
    """Orchestrates parsing, resolution, storage and notification.

    No lock is held across the steps of :meth:`add_content`; concurrent
    requests for the same title are arbitrated by the store's unique
    constraint.
    """

    def __init__(
        self,
        resolver: MetadataResolver,
        store: CatalogStore,
        notifier: GroupNotifier,
    ):
        self._resolver = resolver
        self._store = store
        self._notifier = notifier

    async def add_content(self, group_id: str, raw_identifier: str | None) -> AddOutcome:
        """Add a title to the group's list, reporting duplicates instead of merging."""

        reference = parse_content_id(raw_identifier)
        if reference is None:
            raise InvalidFormat(
                f'Invalid content ID format: "{raw_identifier or ""}". '
                "Use IMDB format (tt1234567) or Kitsu ID (12345)."
            )

        imdb_id = await self._resolver.resolve_reference(reference)
        if not imdb_id:
            raise UnresolvedContent(
                f"Could not find IMDB match for Kitsu anime {reference.id}. "
                "This anime might not be available on IMDB."
            )
        if isinstance(reference, KitsuReference):
            logger.info("Resolved Kitsu %s to %s", reference.id, imdb_id)

        group = await self._store.get_group(group_id)
        if group is None:
            raise GroupNotFound()

        existing = await self._store.get_entry_by_imdb_id(group_id, imdb_id)
        if existing is not None:
            logger.info("%s already in group %s", imdb_id, group_id)
            return AddOutcome(
                status=AddStatus.DUPLICATE,
                message=duplicate_message(existing.title),
                entry=existing,
            )

        info = await self._resolver.resolve_imdb(imdb_id)

        try:
            entry = await self._store.insert_entry(
                group_id,
                imdb_id,
                info.title,
                info.type,
                info.poster,
                info.genres,
            )
        except DuplicateEntryError:
            logger.info(
                "Concurrent add of %s to group %s detected at insert", imdb_id, group_id
            )
            winner = await self._store.get_entry_by_imdb_id(group_id, imdb_id)
            title = winner.title if winner is not None else info.title
            return AddOutcome(
                status=AddStatus.DUPLICATE,
                message=duplicate_message(title),
                entry=winner,
            )

        logger.info("Added %s (%s) to group %s", info.title, imdb_id, group_id)
        await self._notifier.publish(group_id, content_added_event(group_id, info))
        return AddOutcome(
            status=AddStatus.ADDED,
            message=f'"{info.title}" was added to the group.',
            entry=entry,
            info=info,
        )

    async def remove_content(self, group_id: str, entry_id: int) -> StoredContent:
        """Delete one entry from the group's list and announce it."""

        group = await self._store.get_group(group_id)
        if group is None:
            raise GroupNotFound()

        entry = await self._store.get_entry(entry_id, group_id)
        if entry is None:
            raise ContentNotFound()

        removed = await self._store.delete_entry(entry_id, group_id)
        if removed == 0:
            raise ContentNotFound("Content not found or already deleted")

        logger.info("Removed %s (%s) from group %s", entry.title, entry.imdb_id, group_id)
        await self._notifier.publish(
            group_id,
            content_removed_event(group_id, entry.id, entry.title, entry.type),
        )
        return entry

    async def list_content(
        self, group_id: str, content_type: str | None = None
    ) -> list[StoredContent]:
        return await self._store.list_entries(group_id, content_type)

    async def preview(self, raw_identifier: str | None) -> ContentPreview:
        """Resolve metadata for an identifier without storing anything."""

        reference = parse_content_id(raw_identifier)
        if reference is None:
            raise InvalidFormat("Invalid content ID format.")
        imdb_id = await self._resolver.resolve_reference(reference)
        if not imdb_id:
            raise UnresolvedContent("Could not find IMDB match for this anime.")
        info = await self._resolver.resolve_imdb(imdb_id)
        return ContentPreview(
            info=info,
            original_id=str(raw_identifier),
            resolved_imdb_id=imdb_id,
        )

    async def probe_stream(self, group_id: str, stream_id: str) -> StreamProbe | None:
        """Check whether the title behind a Stremio id is already listed.

        Returns ``None`` when the id cannot be parsed. Kitsu ids are
        resolved best-effort; an unresolved one is reported as absent.
        """

        group = await self._store.get_group(group_id)
        if group is None:
            raise GroupNotFound()

        reference = parse_stream_id(stream_id)
        if reference is None:
            return None

        probe = StreamProbe(group=group, content_id=reference.content_id)
        imdb_id = await self._resolver.resolve_reference(reference)
        if imdb_id:
            probe.existing = await self._store.get_entry_by_imdb_id(group_id, imdb_id)
        return probe
