"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest


# Ensure the package is importable when running tests without an editable
# install. This mirrors the expected runtime layout where ``podscout`` sits at
# the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


def build_settings(**overrides: Any):
    """Return a settings object with defaults suitable for tests."""

    from podscout.config import Settings

    base: dict[str, Any] = {
        "SPOTIFY_AUTHORIZATION": "access-token",
        "SPOTIFY_CLIENT_TOKEN": "client-token",
    }
    base.update(overrides)
    return Settings(_env_file=None, **base)  # type: ignore[arg-type]


def show_payload(**podcast_overrides: Any) -> dict[str, Any]:
    """Return a ``queryShowMetadataV2`` response with sensible defaults."""

    podcast: dict[str, Any] = {
        "__typename": "Podcast",
        "name": "  The Daily Thing  ",
        "publisher": {"name": " Thing Media "},
        "description": "Daily news. Support us at https://patreon.com/thing or visit https://thing.example.com/about",
        "topics": {"items": [{"title": "News"}, {"title": " Politics "}, {"title": ""}]},
        "rating": {"averageRating": {"average": 4.567, "totalRatings": 1234}},
        "episodesV2": {
            "items": [
                {"entity": {"data": {"uri": "spotify:episode:ep1"}}},
                {"entity": {"data": {"uri": "  "}}},
                {"entity": {"data": {"uri": "spotify:episode:ep2"}}},
            ]
        },
    }
    podcast.update(podcast_overrides)
    return {"data": {"podcastUnionV2": podcast}}
