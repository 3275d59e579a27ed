"""Client for the Kitsu anime catalog API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class KitsuAnime:
    """The fields needed to find an anime on OMDb."""

    id: str
    title: str
    year: int | None = None


class KitsuClient:
    """Thin wrapper around ``GET /anime/{id}``."""

    def __init__(self, http_client: httpx.AsyncClient):
        self._client = http_client

    async def fetch_anime(self, kitsu_id: str) -> KitsuAnime | None:
        """Return the anime's canonical title and start year.

        ``None`` means Kitsu does not know the id or the record has no
        usable title. Transport failures propagate as ``httpx.HTTPError``.
        """

        response = await self._client.get(
            f"/anime/{kitsu_id}",
            headers={"Accept": "application/vnd.api+json"},
        )
        if response.status_code == 404:
            logger.info("Kitsu anime %s not found", kitsu_id)
            return None
        response.raise_for_status()

        payload = response.json()
        data = payload.get("data") if isinstance(payload, dict) else None
        attributes = data.get("attributes") if isinstance(data, dict) else None
        if not isinstance(attributes, dict):
            return None

        title = self._extract_title(attributes)
        if not title:
            return None
        return KitsuAnime(
            id=str(kitsu_id),
            title=title,
            year=self._extract_year(attributes.get("startDate")),
        )

    @staticmethod
    def _extract_title(attributes: dict[str, Any]) -> str | None:
        titles = attributes.get("titles")
        if not isinstance(titles, dict):
            titles = {}
        for candidate in (
            attributes.get("canonicalTitle"),
            titles.get("en"),
            titles.get("en_jp"),
        ):
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
        return None

    @staticmethod
    def _extract_year(value: object) -> int | None:
        if not isinstance(value, str) or len(value) < 4:
            return None
        try:
            return int(value[:4])
        except ValueError:
            return None
