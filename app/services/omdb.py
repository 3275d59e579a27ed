"""Client for the OMDb (Open Movie Database) HTTP API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import Settings
from ..errors import DependencyUnavailable, MetadataNotFound
from ..models import ResolvedMetadata, normalize_content_type
from ..utils import na_to_none

logger = logging.getLogger(__name__)


class OMDbClient:
    """Resolve IMDb identifiers and titles against OMDb."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    async def fetch_title(self, imdb_id: str) -> ResolvedMetadata:
        """Return canonical metadata for ``imdb_id``.

        Raises :class:`MetadataNotFound` when OMDb has no such title and
        :class:`DependencyUnavailable` when OMDb cannot be queried.
        """

        data = await self._request({"i": imdb_id})
        if not self._is_success(data):
            message = str(data.get("Error") or "Movie/Series not found on OMDb")
            logger.info("OMDb has no record for %s: %s", imdb_id, message)
            raise MetadataNotFound(message)

        return ResolvedMetadata(
            imdb_id=str(data.get("imdbID") or imdb_id),
            title=str(data.get("Title") or imdb_id),
            type=normalize_content_type(data.get("Type")),
            poster=na_to_none(data.get("Poster")),
            genres=na_to_none(data.get("Genre")),
            year=na_to_none(data.get("Year")),
            plot=na_to_none(data.get("Plot")),
            rating=na_to_none(data.get("imdbRating")),
        )

    async def lookup_imdb_id(self, title: str, *, year: int | None = None) -> str | None:
        """Return the IMDb id of an exact title (and year) match, if any."""

        params: dict[str, Any] = {"t": title}
        if year:
            params["y"] = year
        data = await self._request(params)
        if self._is_success(data):
            return self._clean_imdb_id(data.get("imdbID"))
        return None

    async def search_imdb_id(self, title: str) -> str | None:
        """Return the IMDb id of the first free-text search hit, if any."""

        data = await self._request({"s": title})
        if not self._is_success(data):
            return None
        results = data.get("Search") or []
        if not isinstance(results, list):
            return None
        for result in results:
            if isinstance(result, dict):
                return self._clean_imdb_id(result.get("imdbID"))
        return None

    async def _request(self, params: dict[str, Any]) -> dict[str, Any]:
        api_key = self._settings.omdb_api_key
        if not api_key:
            raise DependencyUnavailable("OMDb API key is not configured")

        query = {**params, "apikey": api_key}
        try:
            response = await self._client.get("/", params=query)
        except httpx.HTTPError as exc:
            logger.warning("OMDb request %s failed: %s", params, exc)
            raise DependencyUnavailable("Unable to reach OMDb") from exc

        if response.status_code == 401 or response.status_code >= 500:
            logger.warning(
                "OMDb rejected request %s (%s): %s",
                params,
                response.status_code,
                response.text,
            )
            raise DependencyUnavailable(
                f"OMDb request failed with status {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise DependencyUnavailable("OMDb returned an invalid response") from exc
        if not isinstance(data, dict):
            raise DependencyUnavailable("OMDb returned an invalid response")
        return data

    @staticmethod
    def _is_success(data: dict[str, Any]) -> bool:
        return str(data.get("Response", "")).lower() == "true"

    @staticmethod
    def _clean_imdb_id(value: object) -> str | None:
        if not isinstance(value, str):
            return None
        value = value.strip()
        if value.startswith("tt") and value[2:].isdigit():
            return value
        return None
