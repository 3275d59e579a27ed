"""Pydantic models describing metadata and request payloads."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

ContentType = Literal["movie", "series"]

CONTENT_TYPES: tuple[str, ...] = ("movie", "series")


def normalize_content_type(value: object) -> ContentType:
    """Collapse any upstream type label to ``movie`` or ``series``."""

    if isinstance(value, str) and value.strip().lower() == "series":
        return "series"
    return "movie"


class ResolvedMetadata(BaseModel):
    """Canonical metadata for a title as reported by OMDb."""

    model_config = ConfigDict(populate_by_name=True)

    imdb_id: str = Field(serialization_alias="imdbId")
    title: str
    type: ContentType
    poster: str | None = None
    genres: str | None = None
    year: str | None = None
    plot: str | None = None
    rating: str | None = Field(
        default=None,
        validation_alias=AliasChoices("rating", "imdbRating"),
        serialization_alias="imdbRating",
    )

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON shape shared with the web UI and WebSocket clients."""

        return self.model_dump(mode="json", by_alias=True)


class CatalogSettings(BaseModel):
    """Which catalogs a group exposes through its Stremio manifest."""

    model_config = ConfigDict(extra="allow")

    movies: bool = True
    series: bool = True
    all: bool = True

    @classmethod
    def from_stored(cls, value: object) -> "CatalogSettings":
        if isinstance(value, dict):
            return cls.model_validate(value)
        return cls()


class CreateGroupRequest(BaseModel):
    name: str = ""
    password: str = ""

    @field_validator("name", "password", mode="before")
    @classmethod
    def _coerce_text(cls, value: object) -> str:
        if value is None:
            return ""
        return str(value)


class JoinGroupRequest(BaseModel):
    password: str = ""


class AddContentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content_id: str | None = Field(
        default=None, validation_alias=AliasChoices("contentId", "content_id")
    )

    @field_validator("content_id", mode="before")
    @classmethod
    def _coerce_number(cls, value: object) -> object:
        # Kitsu ids may arrive as JSON numbers.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class UpdateSettingsRequest(BaseModel):
    catalog_settings: CatalogSettings | None = None
