"""Fetch-parse-persist pipeline shared by the profile and search runs."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from sqlalchemy.exc import SQLAlchemyError

from .config import Settings
from .errors import AuthError, ScraperError
from .identifiers import normalize_uri
from .links import extract_links
from .models import PendingItem
from .services.repository import Repository
from .services.spotify import SpotifyClient

logger = logging.getLogger(__name__)


class PipelineKind(str, Enum):
    PROFILES = "profiles"
    SEARCH = "search"


@dataclass(frozen=True, slots=True)
class PipelineSpec:
    """Repository loader, log wording and handler method for one kind of run."""

    kind: PipelineKind
    noun: str
    plural: str
    loader: str
    handler: str


PIPELINE_SPECS: dict[PipelineKind, PipelineSpec] = {
    PipelineKind.PROFILES: PipelineSpec(
        kind=PipelineKind.PROFILES,
        noun="profile",
        plural="profiles",
        loader="fetch_pending_profiles",
        handler="_process_profile",
    ),
    PipelineKind.SEARCH: PipelineSpec(
        kind=PipelineKind.SEARCH,
        noun="search query",
        plural="search queries",
        loader="fetch_pending_queries",
        handler="_process_query",
    ),
}


@dataclass(slots=True)
class RunSummary:
    total: int = 0
    saved: int = 0
    skipped: int = 0
    failed: int = 0


class Pipeline:
    """Process every pending item of a kind, isolating per-item failures."""

    def __init__(self, settings: Settings, client: SpotifyClient, repository: Repository):
        self._settings = settings
        self._client = client
        self._repository = repository

    async def run(self, kind: PipelineKind) -> RunSummary:
        spec = PIPELINE_SPECS[kind]
        items: list[PendingItem] = await getattr(self._repository, spec.loader)()
        summary = RunSummary(total=len(items))
        if not items:
            logger.warning("No %s found to process.", spec.plural)
            return summary

        logger.info(
            "Processing %s %s.", len(items), spec.noun if len(items) == 1 else spec.plural
        )
        handler: Callable[[PendingItem], Awaitable[bool]] = getattr(self, spec.handler)
        semaphore = asyncio.Semaphore(self._settings.pipeline_concurrency)
        abort = asyncio.Event()
        tasks = [
            asyncio.create_task(
                self._run_item(spec, handler, item, semaphore, abort, summary)
            )
            for item in items
        ]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        logger.info(
            "Finished %s run: %s saved, %s skipped, %s failed.",
            kind.value,
            summary.saved,
            summary.skipped,
            summary.failed,
        )
        return summary

    async def _run_item(
        self,
        spec: PipelineSpec,
        handler: Callable[[PendingItem], Awaitable[bool]],
        item: PendingItem,
        semaphore: asyncio.Semaphore,
        abort: asyncio.Event,
        summary: RunSummary,
    ) -> None:
        async with semaphore:
            if abort.is_set():
                return
            try:
                saved = await handler(item)
            except (AuthError, SQLAlchemyError, asyncio.CancelledError):
                abort.set()
                raise
            except ScraperError as exc:
                summary.failed += 1
                logger.error('Failed to process %s "%s": %s', spec.noun, item.value, exc)
                return
            except Exception:
                summary.failed += 1
                logger.exception('Unexpected error processing %s "%s"', spec.noun, item.value)
                return
        if saved:
            summary.saved += 1
        else:
            summary.skipped += 1

    async def _process_profile(self, item: PendingItem) -> bool:
        url = item.value
        uri = normalize_uri(url)
        if not uri:
            logger.warning("Could not build Spotify URI from URL: %s", url)
            return False

        lookup = await self._client.fetch_show(uri)
        if lookup.profile is None:
            logger.warning("No profile data returned for URL: %s", url)
            return False

        episode_description = await self._client.first_episode_description(
            lookup.episode_uris
        )
        profile = lookup.profile.model_copy(
            update={
                "url": url,
                "links": extract_links(lookup.profile.about),
                "search_id": item.aux_key,
                "episode_description": episode_description,
            }
        )
        await self._repository.save_profile(profile)
        logger.info('Saved profile for URL "%s".', url)
        return True

    async def _process_query(self, item: PendingItem) -> bool:
        results = await self._client.search(item.value)
        for result in results:
            await self._repository.save_search_result(
                result.model_copy(update={"search_id": item.aux_key})
            )
        if item.aux_key:
            await self._repository.mark_query_searched(item.aux_key)

        if not results:
            logger.warning('No search results returned for "%s".', item.value)
            return False
        logger.info('Saved %s search results for "%s".', len(results), item.value)
        return True
