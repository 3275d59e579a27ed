"""Error types shared by the services and the HTTP layer."""

from __future__ import annotations


class GroupsError(Exception):
    """Base error carrying the HTTP status the API layer should answer with."""

    status_code: int = 500
    default_message = "Unexpected error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequest(GroupsError):
    """Raised when a request payload is missing required fields."""

    status_code = 400
    default_message = "Invalid request"


class InvalidFormat(GroupsError):
    """Raised when a content identifier cannot be parsed."""

    status_code = 400
    default_message = (
        "Invalid content ID format (use tt123456 for IMDB or 12345 for Kitsu)."
    )


class InvalidCredentials(GroupsError):
    status_code = 401
    default_message = "Invalid password"


class GroupNotFound(GroupsError):
    status_code = 404
    default_message = "Group not found"


class ContentNotFound(GroupsError):
    status_code = 404
    default_message = "Content not found"


class UnresolvedContent(GroupsError):
    """Raised when a Kitsu identifier has no IMDB counterpart."""

    status_code = 404
    default_message = (
        "Could not resolve Kitsu anime to IMDB. Try using the IMDB ID instead."
    )


class MetadataNotFound(GroupsError):
    """Raised when OMDb has no record for an IMDB identifier."""

    status_code = 404
    default_message = "Movie/Series not found on OMDb"


class DependencyUnavailable(GroupsError):
    """Raised when an upstream metadata service cannot be reached."""

    status_code = 502
    default_message = "Metadata service is unavailable"


class DuplicateEntryError(GroupsError):
    """Raised by the store when the (group, imdb_id) constraint rejects an insert."""

    status_code = 409
    default_message = "Content already exists in this group"

    def __init__(self, group_id: str, imdb_id: str):
        self.group_id = group_id
        self.imdb_id = imdb_id
        super().__init__(f"{imdb_id} already exists in group {group_id}")
