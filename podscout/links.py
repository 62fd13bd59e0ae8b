"""Outbound link extraction from show descriptions."""

from __future__ import annotations

import re

from .identifiers import is_excluded_domain

LINK_SEPARATOR = "◙"
URL_RE = re.compile(r"https?://[^\s\"'<>]+", re.IGNORECASE)


def extract_links(description: object) -> str:
    """Return the non-denylisted URLs found in ``description``, joined by ``◙``."""

    if not isinstance(description, str) or not description.strip():
        return ""

    links = [match.strip() for match in URL_RE.findall(description)]
    return LINK_SEPARATOR.join(
        link for link in links if link and not is_excluded_domain(link)
    )
