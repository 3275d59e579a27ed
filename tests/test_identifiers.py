"""Identifier parsing tests."""

from __future__ import annotations

import pytest

from app.identifiers import (
    ImdbReference,
    KitsuReference,
    parse_content_id,
    parse_stream_id,
    strip_stream_suffix,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("tt0111161", ImdbReference("tt0111161")),
        ("  tt0111161  ", ImdbReference("tt0111161")),
        ("https://www.imdb.com/title/tt0111161/", ImdbReference("tt0111161")),
        ("https://m.imdb.com/title/tt0903747/?ref_=nv_sr_1", ImdbReference("tt0903747")),
        ("tt0111161:1:2", ImdbReference("tt0111161")),
        ("kitsu:12345", KitsuReference("12345")),
        ("kitsu:12345:1:1", KitsuReference("12345")),
        ("KITSU:7442", KitsuReference("7442")),
        ("12345", KitsuReference("12345")),
        ("https://kitsu.io/anime/7442", KitsuReference("7442")),
        ("https://kitsu.app/anime/1/episodes", KitsuReference("1")),
    ],
)
def test_parse_content_id_accepts_known_forms(raw, expected) -> None:
    assert parse_content_id(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [None, "", "   ", "abc", "the shawshank redemption", "https://kitsu.io/anime/cowboy-bebop", "att0111161"],
)
def test_parse_content_id_rejects_unknown_forms(raw) -> None:
    assert parse_content_id(raw) is None


def test_reference_kind_and_content_id() -> None:
    imdb = parse_content_id("tt0111161")
    kitsu = parse_content_id("kitsu:1")

    assert imdb is not None and imdb.kind == "imdb"
    assert kitsu is not None and kitsu.kind == "kitsu"
    assert kitsu.content_id == "1"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("tt0111161", "tt0111161"),
        ("tt0903747:2:5", "tt0903747"),
        ("kitsu:12345:1:1", "12345"),
        ("kitsu12345", "12345"),
    ],
)
def test_strip_stream_suffix(raw, expected) -> None:
    assert strip_stream_suffix(raw) == expected


def test_parse_stream_id() -> None:
    assert parse_stream_id("tt0903747:1:1") == ImdbReference("tt0903747")
    assert parse_stream_id("kitsu:1:1:1") == KitsuReference("1")
    assert parse_stream_id("mal:20") is None
    assert parse_stream_id(None) is None
