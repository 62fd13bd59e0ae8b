"""Persistence gateway for profiles, search queries and search results."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable

from sqlalchemy import Select, select, text, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql import Executable

from ..database import Database
from ..db_models import ProfileRecord, SearchQueryRecord, SearchResultRecord
from ..models import PendingItem, SearchResult, ShowProfile

logger = logging.getLogger(__name__)

_INSERT_BUILDERS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class Repository:
    """Reads pending work and writes scraped records, one transaction per record."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        dialect_name: str,
        pending_profiles_sql: str | None = None,
    ) -> None:
        if dialect_name not in _INSERT_BUILDERS:
            raise ValueError(f"Unsupported database dialect: {dialect_name}")
        self._session_factory = session_factory
        self._insert = _INSERT_BUILDERS[dialect_name]
        self._pending_profiles_sql = pending_profiles_sql

    @classmethod
    def for_database(
        cls, database: Database, *, pending_profiles_sql: str | None = None
    ) -> "Repository":
        return cls(
            database.session_factory,
            dialect_name=database.dialect_name,
            pending_profiles_sql=pending_profiles_sql,
        )

    async def fetch_pending_profiles(self) -> list[PendingItem]:
        """Return profile URLs (with their search id) that have not been scraped."""

        async with self._session_factory() as session:
            if self._pending_profiles_sql:
                result = await session.execute(text(self._pending_profiles_sql))
            else:
                result = await session.execute(self._default_pending_profiles())
            rows = result.all()

        return _pending_items((row[0], row[1] if len(row) > 1 else None) for row in rows)

    @staticmethod
    def _default_pending_profiles() -> Select[Any]:
        scraped = select(ProfileRecord.url).where(ProfileRecord.url.is_not(None))
        return (
            select(SearchResultRecord.url, SearchResultRecord.search_id)
            .where(SearchResultRecord.url.not_in(scraped))
            .order_by(SearchResultRecord.id)
        )

    async def fetch_pending_queries(self) -> list[PendingItem]:
        """Return search queries that have never been run, keyed by their id."""

        statement = (
            select(SearchQueryRecord.query, SearchQueryRecord.id)
            .where(SearchQueryRecord.searched_at.is_(None))
            .order_by(SearchQueryRecord.id)
        )
        async with self._session_factory() as session:
            rows = (await session.execute(statement)).all()
        return _pending_items((row[0], row[1]) for row in rows)

    async def add_search_queries(self, queries: Iterable[str]) -> int:
        """Queue search terms for the next search run."""

        records = [
            SearchQueryRecord(query=query.strip())
            for query in queries
            if isinstance(query, str) and query.strip()
        ]
        if not records:
            return 0
        async with self._session_factory() as session:
            try:
                session.add_all(records)
                await session.commit()
            except SQLAlchemyError:
                await session.rollback()
                raise
        logger.info("Queued %s search quer%s", len(records), "y" if len(records) == 1 else "ies")
        return len(records)

    async def save_profile(self, profile: ShowProfile) -> None:
        """Insert ``profile`` unless its URL is already stored."""

        await self._insert_ignoring_duplicates(ProfileRecord, profile.to_row())

    async def save_search_result(self, result: SearchResult) -> None:
        await self._insert_ignoring_duplicates(SearchResultRecord, result.to_row())

    async def mark_query_searched(self, query_id: str) -> None:
        statement = (
            update(SearchQueryRecord)
            .where(SearchQueryRecord.id == int(query_id))
            .values(searched_at=datetime.utcnow())
        )
        await self._execute_in_transaction(statement)

    async def _insert_ignoring_duplicates(
        self, model: type[ProfileRecord] | type[SearchResultRecord], values: dict[str, Any]
    ) -> None:
        statement = (
            self._insert(model)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["url"])
        )
        await self._execute_in_transaction(statement)

    async def _execute_in_transaction(self, statement: Executable) -> None:
        async with self._session_factory() as session:
            try:
                await session.execute(statement)
                await session.commit()
            except SQLAlchemyError:
                await session.rollback()
                raise


def _pending_items(rows: Iterable[tuple[Any, Any]]) -> list[PendingItem]:
    items: list[PendingItem] = []
    for value, aux_key in rows:
        cleaned = value.strip() if isinstance(value, str) else ""
        if not cleaned:
            continue
        items.append(PendingItem(value=cleaned, aux_key=aux_key))
    return items
