"""Configuration settings behaviour tests."""

from __future__ import annotations

import pytest

from app.config import Settings


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.server_port == 3000
    assert settings.group_id_length == 8
    assert settings.database_url.startswith("sqlite+aiosqlite://")
    assert str(settings.omdb_api_url).startswith("https://www.omdbapi.com")


def test_log_level_is_case_insensitive() -> None:
    settings = Settings(_env_file=None, LOG_LEVEL="debug")

    assert settings.log_level == "DEBUG"


def test_unknown_log_level_raises() -> None:
    with pytest.raises(ValueError, match="LOG_LEVEL"):
        Settings(_env_file=None, LOG_LEVEL="chatty")


def test_blank_omdb_key_is_treated_as_missing() -> None:
    settings = Settings(_env_file=None, OMDB_API_KEY="   ")

    assert settings.omdb_api_key is None


def test_public_base_strips_trailing_slash() -> None:
    settings = Settings(_env_file=None, PUBLIC_BASE_URL="https://groups.example.com/")

    assert settings.public_base == "https://groups.example.com"


def test_group_id_length_bounds() -> None:
    with pytest.raises(ValueError):
        Settings(_env_file=None, GROUP_ID_LENGTH=4)
