from app.models import (
    AddContentRequest,
    CatalogSettings,
    CreateGroupRequest,
    ResolvedMetadata,
    normalize_content_type,
)


def test_normalize_content_type():
    assert normalize_content_type("series") == "series"
    assert normalize_content_type("Series ") == "series"
    assert normalize_content_type("movie") == "movie"
    assert normalize_content_type("episode") == "movie"
    assert normalize_content_type(None) == "movie"


def test_resolved_metadata_payload_uses_wire_names():
    info = ResolvedMetadata.model_validate(
        {
            "imdb_id": "tt0111161",
            "title": "The Shawshank Redemption",
            "type": "movie",
            "imdbRating": "9.3",
        }
    )

    payload = info.to_payload()

    assert payload["imdbId"] == "tt0111161"
    assert payload["imdbRating"] == "9.3"
    assert payload["poster"] is None


def test_catalog_settings_from_stored():
    assert CatalogSettings.from_stored(None).model_dump() == {
        "movies": True,
        "series": True,
        "all": True,
    }
    settings = CatalogSettings.from_stored({"movies": False, "series": True, "all": True})
    assert settings.movies is False


def test_request_models_accept_aliases():
    assert AddContentRequest.model_validate({"contentId": "tt0111161"}).content_id == "tt0111161"
    assert AddContentRequest.model_validate({"content_id": "12345"}).content_id == "12345"
    assert AddContentRequest.model_validate({}).content_id is None
    assert CreateGroupRequest.model_validate({"name": None}).name == ""


def test_add_content_request_coerces_numbers():
    assert AddContentRequest.model_validate({"contentId": 12345}).content_id == "12345"
