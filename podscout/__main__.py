"""Module executed when running ``python -m podscout``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Sequence

import httpx

from .config import Settings, get_settings
from .database import Database
from .headers import build_request_headers, load_header_overrides, validate_auth_headers
from .pipeline import Pipeline, PipelineKind, RunSummary
from .services.repository import Repository
from .services.spotify import SpotifyClient
from .services.transport import build_transport

logger = logging.getLogger("podscout")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="podscout",
        description="Scrape Spotify podcast metadata into the configured database.",
    )
    parser.add_argument(
        "kind",
        nargs="?",
        choices=[kind.value for kind in PipelineKind],
        default=PipelineKind.PROFILES.value,
        help="which pending work to process (default: profiles)",
    )
    parser.add_argument(
        "--add-query",
        dest="queries",
        action="append",
        default=[],
        metavar="TERM",
        help="queue a search term before running; may be repeated",
    )
    return parser


async def run(
    kind: PipelineKind,
    settings: Settings,
    *,
    queries: Sequence[str] = (),
    http_client: httpx.AsyncClient | None = None,
) -> RunSummary:
    """Validate credentials, prepare the schema and process one kind of work."""

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    headers = build_request_headers(settings, load_header_overrides(settings.headers_path))
    validate_auth_headers(headers)

    database = Database(settings.database_dsn, schema=settings.db_schema)
    try:
        await database.create_all()
        repository = Repository.for_database(
            database, pending_profiles_sql=settings.pending_profiles_sql
        )
        if queries:
            await repository.add_search_queries(queries)

        async with http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.request_timeout_seconds, connect=10.0)
        ) as client:
            spotify = SpotifyClient(settings, build_transport(settings, client), headers)
            return await Pipeline(settings, spotify, repository).run(kind)
    finally:
        await database.dispose()


def main(argv: Sequence[str] | None = None, settings: Settings | None = None) -> int:
    """Run the scraper and return the process exit code."""

    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        resolved = settings or get_settings()
        logging.getLogger().setLevel(resolved.log_level.upper())
        asyncio.run(run(PipelineKind(args.kind), resolved, queries=args.queries))
    except Exception:
        logger.exception("Fatal error while running scraper")
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - runtime entrypoint
    sys.exit(main())
