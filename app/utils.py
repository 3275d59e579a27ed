"""Utility helpers for the Stremio Groups service."""

from __future__ import annotations

import secrets


def generate_group_id(length: int = 8) -> str:
    """Return a short random hexadecimal group identifier."""

    return secrets.token_hex((length + 1) // 2)[:length]


def split_genres(value: str | None) -> list[str]:
    """Split a comma-joined genre string into trimmed names."""

    if not value:
        return []
    return [genre.strip() for genre in value.split(",") if genre.strip()]


def na_to_none(value: object) -> str | None:
    """Map OMDb's ``"N/A"`` sentinel (and blanks) to ``None``."""

    if value is None:
        return None
    text = str(value).strip()
    if not text or text.upper() == "N/A":
        return None
    return text
