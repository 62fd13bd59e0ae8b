"""Request envelopes for the Spotify pathfinder GraphQL endpoint."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from .errors import InvalidIdentifierError
from .identifiers import normalize_uri


class OperationKind(str, Enum):
    """Operations the scraper knows how to request and parse."""

    SHOW = "show"
    EPISODE = "episode"
    SEARCH = "search"


SHOW_METADATA_OPERATION = "queryShowMetadataV2"
SHOW_METADATA_HASH = "26d0c98fef216dad02d31c359075c07d605974af8d82834f26e90f917f32555a"

EPISODE_DESCRIPTION_OPERATION = "getEpisodeDescription"
EPISODE_DESCRIPTION_QUERY = (
    "query getEpisodeDescription($uri: ID!) { episodeUnionV2(uri: $uri) "
    "{ __typename ... on Episode { htmlDescription } "
    "... on UnknownEpisode { htmlDescription } } }"
)

SEARCH_OPERATION = "searchDesktop"
SEARCH_HASH = "d9f785900f0710b31c07818d617f4f7600c1e21217e80f5b043d1e78d74e6026"
SEARCH_DEFAULT_LIMIT = 10
SEARCH_TOP_RESULTS = 5

PERSISTED_QUERY_VERSION = 1


@dataclass(frozen=True, slots=True)
class RequestEnvelope:
    """A single GraphQL call, either by persisted hash or inline query text."""

    kind: OperationKind
    operation_name: str
    variables: Mapping[str, Any] = field(default_factory=dict)
    persisted_hash: str | None = None
    query: str | None = None

    def __post_init__(self) -> None:
        if (self.persisted_hash is None) == (self.query is None):
            raise ValueError("An envelope needs exactly one of persisted_hash or query")
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body posted to the pathfinder endpoint."""

        payload: dict[str, Any] = {
            "variables": dict(self.variables),
            "operationName": self.operation_name,
        }
        if self.persisted_hash is not None:
            payload["extensions"] = {
                "persistedQuery": {
                    "version": PERSISTED_QUERY_VERSION,
                    "sha256Hash": self.persisted_hash,
                }
            }
        else:
            payload["query"] = self.query
        return payload


def _require_uri(value: str | None, label: str) -> str:
    normalized = normalize_uri(value)
    if not normalized:
        raise InvalidIdentifierError(
            f"Invalid Spotify {label} identifier. "
            "Provide a spotify: URI or an open.spotify.com URL."
        )
    return normalized


def build_show_request(uri: str | None, *, persisted_hash: str | None = None) -> RequestEnvelope:
    return RequestEnvelope(
        kind=OperationKind.SHOW,
        operation_name=SHOW_METADATA_OPERATION,
        variables={"uri": _require_uri(uri, "show")},
        persisted_hash=persisted_hash or SHOW_METADATA_HASH,
    )


def build_episode_request(uri: str | None) -> RequestEnvelope:
    return RequestEnvelope(
        kind=OperationKind.EPISODE,
        operation_name=EPISODE_DESCRIPTION_OPERATION,
        variables={"uri": _require_uri(uri, "episode")},
        query=EPISODE_DESCRIPTION_QUERY,
    )


def build_search_request(
    term: str | None,
    *,
    limit: int = SEARCH_DEFAULT_LIMIT,
    offset: int = 0,
    persisted_hash: str | None = None,
) -> RequestEnvelope:
    """Build a ``searchDesktop`` call restricted to a page of results."""

    search_term = term.strip() if isinstance(term, str) else ""
    if not search_term:
        raise InvalidIdentifierError("Search term must be a non-empty string.")

    variables = {
        "searchTerm": search_term,
        "offset": max(0, int(offset)),
        "limit": max(1, int(limit)),
        "numberOfTopResults": SEARCH_TOP_RESULTS,
        "includeAudiobooks": True,
        "includeArtistHasConcertsField": False,
        "includePreReleases": True,
        "includeLocalConcertsField": False,
        "includeAuthors": False,
    }
    return RequestEnvelope(
        kind=OperationKind.SEARCH,
        operation_name=SEARCH_OPERATION,
        variables=variables,
        persisted_hash=persisted_hash or SEARCH_HASH,
    )


def build_request(
    kind: OperationKind, identifier: str | None, **options: Any
) -> RequestEnvelope:
    """Dispatch to the builder for ``kind``.

    For :attr:`OperationKind.SEARCH` the identifier is the search term.
    """

    if kind is OperationKind.SHOW:
        return build_show_request(identifier, **options)
    if kind is OperationKind.EPISODE:
        return build_episode_request(identifier)
    if kind is OperationKind.SEARCH:
        return build_search_request(identifier, **options)
    raise ValueError(f"Unsupported operation kind: {kind!r}")
