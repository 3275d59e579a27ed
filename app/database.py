"""Database utilities for the Stremio Groups service."""

from __future__ import annotations

from sqlalchemy import MetaData, event, inspect, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base with consistent naming conventions."""

    metadata = MetaData()


DEFAULT_CATALOG_SETTINGS_SQL = '\'{"movies": true, "series": true, "all": true}\''


class Database:
    """Thin wrapper managing the SQLAlchemy async engine and sessions."""

    def __init__(self, database_url: str):
        self._engine: AsyncEngine = create_async_engine(database_url, future=True)
        if self._engine.dialect.name == "sqlite":
            event.listen(self._engine.sync_engine, "connect", _set_sqlite_pragma)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self._engine, expire_on_commit=False
        )

    async def create_all(self) -> None:
        """Create database tables if they do not yet exist."""

        # Register the mapped tables on the shared metadata.
        from . import db_models  # noqa: F401

        async with self._engine.begin() as connection:
            await connection.run_sync(Base.metadata.create_all)
            await connection.run_sync(self._apply_schema_migrations)

    @staticmethod
    def _apply_schema_migrations(sync_connection) -> None:
        """Ensure newly introduced columns are available on existing tables."""

        inspector = inspect(sync_connection)
        if "groups" not in inspector.get_table_names():
            return

        existing_columns = {
            column["name"] for column in inspector.get_columns("groups")
        }
        if "catalog_settings" not in existing_columns:
            sync_connection.execute(
                text("ALTER TABLE groups ADD COLUMN catalog_settings JSON")
            )
            sync_connection.execute(
                text(
                    "UPDATE groups SET catalog_settings = "
                    f"{DEFAULT_CATALOG_SETTINGS_SQL} WHERE catalog_settings IS NULL"
                )
            )

    async def dispose(self) -> None:
        """Dispose of the underlying database engine."""

        await self._engine.dispose()


def _set_sqlite_pragma(dbapi_connection, connection_record) -> None:
    # SQLite leaves foreign keys off per connection; ON DELETE CASCADE needs them.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA busy_timeout=30000")
    cursor.close()
