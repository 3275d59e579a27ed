"""Group creation, password checks and catalog settings."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from ..errors import GroupNotFound, InvalidCredentials, InvalidRequest
from ..models import CatalogSettings
from ..utils import generate_group_id
from .store import CatalogStore, GroupState

logger = logging.getLogger(__name__)

PASSWORD_HASH_METHOD = "pbkdf2:sha256"


class GroupService:
    """Manage groups on top of the catalog store."""

    def __init__(self, store: CatalogStore, *, id_length: int = 8):
        self._store = store
        self._id_length = id_length
        self._max_id_attempts = 5

    async def create_group(self, name: str, password: str) -> GroupState:
        name = (name or "").strip()
        if not name or not password:
            raise InvalidRequest("Name and password are required")

        password_hash = generate_password_hash(password, method=PASSWORD_HASH_METHOD)
        for attempt in range(1, self._max_id_attempts + 1):
            group_id = generate_group_id(self._id_length)
            try:
                group = await self._store.create_group(group_id, name, password_hash)
            except IntegrityError:
                logger.warning(
                    "Group id collision on %s (attempt %d)", group_id, attempt
                )
                continue
            logger.info("Created group %s (%s)", group.id, group.name)
            return group
        raise RuntimeError("Unable to allocate a unique group id")

    async def get_group(self, group_id: str) -> GroupState:
        group = await self._store.get_group(group_id)
        if group is None:
            raise GroupNotFound()
        return group

    async def verify_password(self, group_id: str, password: str) -> GroupState:
        group = await self.get_group(group_id)
        if not password or not check_password_hash(group.password_hash, password):
            raise InvalidCredentials()
        return group

    async def update_catalog_settings(
        self, group_id: str, catalog_settings: CatalogSettings | None
    ) -> dict[str, Any]:
        if catalog_settings is None:
            raise InvalidRequest("Catalog settings are required")
        await self.get_group(group_id)
        payload = catalog_settings.model_dump()
        await self._store.update_catalog_settings(group_id, payload)
        return payload
