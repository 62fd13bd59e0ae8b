"""High-level Spotify operations built on a transport."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from ..config import Settings
from ..envelopes import (
    RequestEnvelope,
    build_episode_request,
    build_search_request,
    build_show_request,
)
from ..errors import AuthError, ScraperError
from ..headers import HeaderSet
from ..models import SearchResult, ShowProfile
from ..parsers import (
    extract_episode_uris,
    extract_search_results,
    parse_episode_description,
    parse_show_profile,
)
from .transport import Transport

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ShowLookup:
    """Parsed show profile plus the episode URIs listed in the same response."""

    profile: ShowProfile | None
    episode_uris: list[str] = field(default_factory=list)


class SpotifyClient:
    """Thin wrapper issuing pathfinder GraphQL operations."""

    def __init__(self, settings: Settings, transport: Transport, headers: HeaderSet):
        self._settings = settings
        self._transport = transport
        self._headers = headers

    async def _send(self, envelope: RequestEnvelope) -> dict[str, Any]:
        return await self._transport.send(self._headers, envelope)

    async def fetch_show(self, uri: str) -> ShowLookup:
        """Fetch show metadata for a ``spotify:`` URI or open.spotify.com URL."""

        envelope = build_show_request(uri, persisted_hash=self._settings.show_metadata_hash)
        payload = await self._send(envelope)
        profile = parse_show_profile(payload)
        if profile is None:
            return ShowLookup(profile=None)
        return ShowLookup(profile=profile, episode_uris=extract_episode_uris(payload))

    async def fetch_episode_description(self, uri: str) -> str:
        payload = await self._send(build_episode_request(uri))
        return parse_episode_description(payload)

    async def first_episode_description(self, episode_uris: Iterable[str]) -> str:
        """Return the first non-empty description among ``episode_uris``.

        Failures on individual episodes are logged and the next one is tried;
        auth failures propagate since every later call would fail the same way.
        """

        for episode_uri in episode_uris:
            try:
                description = await self.fetch_episode_description(episode_uri)
            except AuthError:
                raise
            except ScraperError as exc:
                logger.warning(
                    'Failed to fetch episode description for URI "%s": %s',
                    episode_uri,
                    exc,
                )
                continue
            if description:
                return description
        return ""

    async def search(self, term: str, *, offset: int = 0) -> list[SearchResult]:
        """Run a search and return the hits that map to a public URL."""

        envelope = build_search_request(
            term,
            limit=self._settings.search_limit,
            offset=offset,
            persisted_hash=self._settings.search_hash,
        )
        payload = await self._send(envelope)
        return extract_search_results(
            payload, envelope.variables["searchTerm"], base_url=str(self._settings.spotify_web_url)
        )
