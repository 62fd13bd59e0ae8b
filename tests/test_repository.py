"""Tests for the persistence gateway against a temporary SQLite database."""

from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import func, select

from podscout.database import Database
from podscout.db_models import ProfileRecord, SearchQueryRecord, SearchResultRecord
from podscout.models import PendingItem, SearchResult, ShowProfile
from podscout.services.repository import Repository


async def _open(tmp_path: Path, **kwargs) -> tuple[Database, Repository]:
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'podscout.db'}")
    await database.create_all()
    return database, Repository.for_database(database, **kwargs)


async def _count(database: Database, model) -> int:
    async with database.session() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


def _profile(url: str, **overrides) -> ShowProfile:
    values = {"show_name": "Show", "host_name": "Host", "url": url}
    values.update(overrides)
    return ShowProfile(**values)


@pytest.mark.anyio("asyncio")
async def test_save_profile_ignores_duplicate_urls(tmp_path: Path) -> None:
    database, repository = await _open(tmp_path)
    try:
        await repository.save_profile(_profile("https://open.spotify.com/show/a", search_id="7"))
        await repository.save_profile(
            _profile("https://open.spotify.com/show/a", show_name="Changed")
        )

        assert await _count(database, ProfileRecord) == 1
        async with database.session() as session:
            record = (await session.execute(select(ProfileRecord))).scalar_one()
        assert record.show_name == "Show"
        assert record.search_id == "7"
        assert record.episode_description is None
        assert record.created_at is not None
    finally:
        await database.dispose()


@pytest.mark.anyio("asyncio")
async def test_search_queue_round_trip(tmp_path: Path) -> None:
    database, repository = await _open(tmp_path)
    try:
        assert await repository.add_search_queries(["crime", "  ", "history "]) == 2

        pending = await repository.fetch_pending_queries()
        assert [item.value for item in pending] == ["crime", "history"]
        assert all(item.aux_key and item.aux_key.isdigit() for item in pending)

        await repository.mark_query_searched(pending[0].aux_key)

        remaining = await repository.fetch_pending_queries()
        assert [item.value for item in remaining] == ["history"]
        assert await _count(database, SearchQueryRecord) == 2
    finally:
        await database.dispose()


@pytest.mark.anyio("asyncio")
async def test_pending_profiles_are_unscraped_search_results(tmp_path: Path) -> None:
    database, repository = await _open(tmp_path)
    try:
        for url, search_id in [
            ("https://open.spotify.com/show/a", "1"),
            ("https://open.spotify.com/show/b", None),
            ("https://open.spotify.com/show/a", "2"),
        ]:
            await repository.save_search_result(
                SearchResult(query="q", url=url, search_id=search_id)
            )
        assert await _count(database, SearchResultRecord) == 2

        await repository.save_profile(_profile("https://open.spotify.com/show/b"))

        pending = await repository.fetch_pending_profiles()
        assert pending == [PendingItem(value="https://open.spotify.com/show/a", aux_key="1")]
    finally:
        await database.dispose()


@pytest.mark.anyio("asyncio")
async def test_pending_profiles_sql_override(tmp_path: Path) -> None:
    database, _ = await _open(tmp_path)
    repository = Repository.for_database(
        database,
        pending_profiles_sql=(
            "select '  https://open.spotify.com/show/x ' as url, 42 as search_id "
            "union all select '', 1"
        ),
    )
    try:
        pending = await repository.fetch_pending_profiles()
    finally:
        await database.dispose()

    assert pending == [PendingItem(value="https://open.spotify.com/show/x", aux_key="42")]


def test_unsupported_dialect_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unsupported database dialect"):
        Repository(None, dialect_name="mysql")  # type: ignore[arg-type]
