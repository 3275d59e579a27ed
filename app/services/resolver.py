"""Resolve parsed references to IMDb ids and canonical metadata."""

from __future__ import annotations

import logging

import httpx

from ..errors import DependencyUnavailable
from ..identifiers import ImdbReference, ParsedReference
from ..models import ResolvedMetadata
from .kitsu import KitsuClient
from .omdb import OMDbClient

logger = logging.getLogger(__name__)


class MetadataResolver:
    """Combine OMDb and Kitsu lookups behind one interface."""

    def __init__(self, omdb_client: OMDbClient, kitsu_client: KitsuClient):
        self._omdb = omdb_client
        self._kitsu = kitsu_client

    async def resolve_imdb(self, imdb_id: str) -> ResolvedMetadata:
        """Fetch metadata for a confirmed IMDb id; failures propagate."""

        return await self._omdb.fetch_title(imdb_id)

    async def resolve_kitsu_to_imdb(self, kitsu_id: str) -> str | None:
        """Best-effort mapping of a Kitsu anime id to an IMDb id.

        Tries an exact OMDb title/year lookup first and falls back to a
        free-text search on the title. Every failure yields ``None``.
        """

        try:
            anime = await self._kitsu.fetch_anime(kitsu_id)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Kitsu lookup for %s failed: %s", kitsu_id, exc)
            return None
        if anime is None:
            return None

        logger.info("Resolving Kitsu %s (%s, %s)", kitsu_id, anime.title, anime.year)
        try:
            imdb_id = await self._omdb.lookup_imdb_id(anime.title, year=anime.year)
            if imdb_id:
                logger.info("Kitsu %s matched %s by title", kitsu_id, imdb_id)
                return imdb_id

            imdb_id = await self._omdb.search_imdb_id(anime.title)
        except DependencyUnavailable as exc:
            logger.warning("OMDb lookup for Kitsu %s failed: %s", kitsu_id, exc)
            return None

        if imdb_id:
            logger.info("Kitsu %s matched %s by search", kitsu_id, imdb_id)
        else:
            logger.info("No IMDb match for Kitsu %s", kitsu_id)
        return imdb_id

    async def resolve_reference(self, reference: ParsedReference) -> str | None:
        """Return the IMDb id behind ``reference``."""

        if isinstance(reference, ImdbReference):
            return reference.id
        return await self.resolve_kitsu_to_imdb(reference.id)
