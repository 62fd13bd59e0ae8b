"""Database utilities for the podscout scraper."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy import MetaData, inspect, text
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


class Database:
    """Thin wrapper managing the SQLAlchemy async engine and sessions."""

    def __init__(self, database_url: str, *, schema: str | None = None):
        engine_kwargs: dict[str, Any] = {"future": True}
        if schema:
            engine_kwargs["execution_options"] = {
                "schema_translate_map": {None: schema}
            }
        self._schema = schema
        self._engine: AsyncEngine = create_async_engine(database_url, **engine_kwargs)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self._engine, expire_on_commit=False
        )

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def dialect_name(self) -> str:
        return self._engine.dialect.name

    async def create_all(self) -> None:
        """Create database tables if they do not yet exist."""

        from . import db_models  # noqa: F401  registers the mapped tables

        async with self._engine.begin() as connection:
            await connection.run_sync(Base.metadata.create_all)
            await connection.run_sync(self._apply_schema_migrations)

    def _apply_schema_migrations(self, sync_connection) -> None:
        """Ensure columns and indexes added after the first release exist."""

        inspector = inspect(sync_connection)
        table_names = inspector.get_table_names(schema=self._schema)
        if "profiles" not in table_names:
            return

        table = f"{self._schema}.profiles" if self._schema else "profiles"
        existing_columns = {
            column["name"]
            for column in inspector.get_columns("profiles", schema=self._schema)
        }

        def _ensure_column(name: str, ddl_type: str = "TEXT") -> None:
            if name in existing_columns:
                return
            sync_connection.execute(
                text(f"ALTER TABLE {table} ADD COLUMN {name} {ddl_type}")
            )
            existing_columns.add(name)

        for column in ("url", "links", "category", "search_id", "episode_description"):
            _ensure_column(column)
        _ensure_column("created_at", "TIMESTAMP")

        # SQLite qualifies the index name, not the table, with the schema.
        if self._schema and sync_connection.dialect.name == "sqlite":
            index_ddl = f"{self._schema}.profiles_url_key ON profiles (url)"
        else:
            index_ddl = f"profiles_url_key ON {table} (url)"
        sync_connection.execute(text(f"CREATE UNIQUE INDEX IF NOT EXISTS {index_ddl}"))

    async def dispose(self) -> None:
        """Dispose of the underlying database engine."""

        await self._engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Provide a transactional scope around a series of operations."""

        async with self.session_factory() as session:
            yield session
