"""Normalisation of user and Stremio supplied content identifiers.

Three surface forms are accepted: a raw identifier (``tt0111161`` or
``12345``), a URL (IMDb title pages and Kitsu anime pages) and Stremio's
composite stream ids (``tt0111161:1:2``, ``kitsu:12345:1:1``). All of them
collapse into a single :data:`ParsedReference`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Union

IMDB_ID_RE = re.compile(r"^tt\d+$")
IMDB_URL_RE = re.compile(r"imdb\.com/title/(tt\d+)", re.IGNORECASE)
IMDB_TOKEN_RE = re.compile(r"(?<![A-Za-z0-9])(tt\d+)")
KITSU_COMPOSITE_RE = re.compile(r"^kitsu:?(\d+)(?::.*)?$", re.IGNORECASE)
KITSU_URL_RE = re.compile(r"kitsu\.(?:io|app)/anime/(\d+)", re.IGNORECASE)
DIGITS_RE = re.compile(r"^\d+$")


@dataclass(frozen=True, slots=True)
class ImdbReference:
    id: str

    kind: Literal["imdb"] = "imdb"

    @property
    def content_id(self) -> str:
        return self.id


@dataclass(frozen=True, slots=True)
class KitsuReference:
    id: str

    kind: Literal["kitsu"] = "kitsu"

    @property
    def content_id(self) -> str:
        return self.id


ParsedReference = Union[ImdbReference, KitsuReference]


def parse_content_id(raw: str | None) -> ParsedReference | None:
    """Classify ``raw`` as an IMDb or Kitsu reference, or return ``None``."""

    if raw is None:
        return None
    value = str(raw).strip()
    if not value:
        return None

    if IMDB_ID_RE.match(value):
        return ImdbReference(value)

    match = IMDB_URL_RE.search(value) or IMDB_TOKEN_RE.search(value)
    if match:
        return ImdbReference(match.group(1))

    match = KITSU_COMPOSITE_RE.match(value)
    if match:
        return KitsuReference(match.group(1))

    if DIGITS_RE.match(value):
        return KitsuReference(value)

    match = KITSU_URL_RE.search(value)
    if match:
        return KitsuReference(match.group(1))

    return None


def strip_stream_suffix(raw: str) -> str:
    """Return the title-level id of a Stremio stream id.

    Season and episode segments are dropped, as is the ``kitsu`` prefix:
    ``tt0111161:1:2`` becomes ``tt0111161`` and ``kitsu:12345:1:1`` becomes
    ``12345``.
    """

    value = raw.strip()
    lowered = value.lower()
    if lowered.startswith("kitsu:"):
        value = value[len("kitsu:"):]
    elif re.match(r"^kitsu\d", lowered):
        value = value[len("kitsu"):]
    return value.split(":", 1)[0]


def parse_stream_id(raw: str | None) -> ParsedReference | None:
    """Parse a Stremio stream/meta id into a title-level reference."""

    if raw is None:
        return None
    return parse_content_id(strip_stream_suffix(str(raw)))
