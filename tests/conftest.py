"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest


# Ensure the application package is importable when running tests without an
# editable install. This mirrors the expected runtime layout where ``app`` sits
# at the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.config import Settings  # noqa: E402
from app.database import Database  # noqa: E402
from app.services.kitsu import KitsuClient  # noqa: E402
from app.services.omdb import OMDbClient  # noqa: E402
from app.services.resolver import MetadataResolver  # noqa: E402


OMDB_BASE_URL = "https://omdb.test"
KITSU_BASE_URL = "https://kitsu.test/api/edge"

OMDB_TITLES: dict[str, dict[str, str]] = {
    "tt0111161": {
        "Title": "The Shawshank Redemption",
        "Year": "1994",
        "Type": "movie",
        "Poster": "https://img.example.com/shawshank.jpg",
        "Genre": "Drama",
        "Plot": "Two imprisoned men bond over a number of years.",
        "imdbRating": "9.3",
    },
    "tt0903747": {
        "Title": "Breaking Bad",
        "Year": "2008–2013",
        "Type": "series",
        "Poster": "N/A",
        "Genre": "Crime, Drama, Thriller",
        "Plot": "N/A",
        "imdbRating": "9.5",
    },
    "tt0213338": {
        "Title": "Cowboy Bebop",
        "Year": "1998–1999",
        "Type": "series",
        "Poster": "https://img.example.com/bebop.jpg",
        "Genre": "Animation, Action, Adventure",
        "Plot": "Bounty hunters chase criminals across the solar system.",
        "imdbRating": "8.9",
    },
    "tt2560140": {
        "Title": "Attack on Titan",
        "Year": "2013–2023",
        "Type": "series",
        "Poster": "https://img.example.com/aot.jpg",
        "Genre": "Animation, Action, Adventure",
        "Plot": "N/A",
        "imdbRating": "9.1",
    },
}

KITSU_ANIME: dict[str, dict[str, Any]] = {
    "1": {"canonicalTitle": "Cowboy Bebop", "startDate": "1998-04-03"},
    "7442": {"canonicalTitle": "Attack on Titan", "startDate": "2013-04-07"},
    "99999": {"canonicalTitle": "Completely Unknown Anime", "startDate": "2020-01-01"},
}

# Exact ``?t=`` lookups only know Cowboy Bebop; Attack on Titan needs ``?s=``.
OMDB_EXACT_TITLES = {("cowboy bebop", "1998"): "tt0213338"}
OMDB_SEARCH_RESULTS = {
    "attack on titan": [
        {"Title": "Attack on Titan", "Year": "2013–2023", "imdbID": "tt2560140"},
        {"Title": "Attack on Titan: Part 1", "Year": "2015", "imdbID": "tt2072230"},
    ]
}


class FakeMetadataService:
    """Answers OMDb and Kitsu requests from the fixtures above."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.offline = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.offline:
            raise httpx.ConnectError("connection refused", request=request)
        if request.url.host == "kitsu.test":
            return self._kitsu(request)
        return self._omdb(request)

    @property
    def title_lookups(self) -> list[str]:
        """IMDb ids requested through ``?i=``."""

        return [
            request.url.params["i"]
            for request in self.requests
            if request.url.host == "omdb.test" and "i" in request.url.params
        ]

    def _kitsu(self, request: httpx.Request) -> httpx.Response:
        kitsu_id = request.url.path.rsplit("/", 1)[-1]
        anime = KITSU_ANIME.get(kitsu_id)
        if anime is None:
            return httpx.Response(404, json={"errors": [{"title": "Record not found"}]})
        return httpx.Response(
            200, json={"data": {"id": kitsu_id, "type": "anime", "attributes": anime}}
        )

    def _omdb(self, request: httpx.Request) -> httpx.Response:
        params = request.url.params
        if params.get("apikey") != "test-key":
            return httpx.Response(
                401, json={"Response": "False", "Error": "Invalid API key!"}
            )
        if "i" in params:
            imdb_id = params["i"]
            record = OMDB_TITLES.get(imdb_id)
            if record is None:
                return httpx.Response(
                    200, json={"Response": "False", "Error": "Incorrect IMDb ID."}
                )
            return httpx.Response(
                200, json={**record, "imdbID": imdb_id, "Response": "True"}
            )
        if "t" in params:
            key = (params["t"].lower(), params.get("y", ""))
            imdb_id = OMDB_EXACT_TITLES.get(key)
            if imdb_id is None:
                return httpx.Response(
                    200, json={"Response": "False", "Error": "Movie not found!"}
                )
            return httpx.Response(
                200,
                json={**OMDB_TITLES[imdb_id], "imdbID": imdb_id, "Response": "True"},
            )
        if "s" in params:
            results = OMDB_SEARCH_RESULTS.get(params["s"].lower())
            if not results:
                return httpx.Response(
                    200, json={"Response": "False", "Error": "Movie not found!"}
                )
            return httpx.Response(
                200,
                json={
                    "Search": results,
                    "totalResults": str(len(results)),
                    "Response": "True",
                },
            )
        return httpx.Response(
            200, json={"Response": "False", "Error": "Incorrect IMDb ID."}
        )


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, OMDB_API_KEY="test-key")  # type: ignore[call-arg]


@pytest.fixture
def metadata_service() -> FakeMetadataService:
    return FakeMetadataService()


@pytest.fixture
def make_resolver(
    test_settings: Settings, metadata_service: FakeMetadataService
) -> Callable[..., MetadataResolver]:
    """Return a factory building a resolver backed by ``httpx.MockTransport``."""

    def _make(
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
    ) -> MetadataResolver:
        transport = httpx.MockTransport(handler or metadata_service)
        omdb_client = httpx.AsyncClient(transport=transport, base_url=OMDB_BASE_URL)
        kitsu_client = httpx.AsyncClient(transport=transport, base_url=KITSU_BASE_URL)
        return MetadataResolver(
            OMDbClient(test_settings, omdb_client), KitsuClient(kitsu_client)
        )

    return _make


@pytest.fixture
def database(tmp_path: Path) -> Database:
    """File-backed SQLite database; tests create tables and dispose it."""

    return Database(f"sqlite+aiosqlite:///{tmp_path / 'groups.db'}")
