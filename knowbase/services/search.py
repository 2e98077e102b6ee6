"""Title search over stored pages, ranked by Jaro-Winkler similarity."""

import logging
from typing import List

import jellyfish

from knowbase.models.page import Page
from knowbase.models.search_response import SearchResult
from knowbase.services.links import MOUNT_PREFIX
from knowbase.services.store import PageStore

logger = logging.getLogger(__name__)

_GLOB_SPECIAL = set("*?[]\\")


def build_pattern(query: str) -> str:
    """Return a glob matching any key that contains *query*, ignoring case.

    ASCII letters become ``[xX]`` classes and glob metacharacters are
    escaped.  The store compares bytes, so a non-ASCII letter with case
    variants cannot be expressed as a class and becomes ``*``.  The pattern
    therefore only narrows the candidates; :func:`search` makes the final
    case-insensitive comparison.
    """
    parts = []
    for char in query.lower():
        if char in _GLOB_SPECIAL:
            parts.append("\\" + char)
        elif char.isascii() and char.isalpha():
            parts.append(f"[{char}{char.upper()}]")
        elif not char.isascii() and char.upper() != char.lower():
            parts.append("*")
        else:
            parts.append(char)
    return "*" + "".join(parts) + "*"


def title_from_key(key: str) -> str:
    """``docs/getting-started.md`` -> ``getting started``."""
    name = key.split("/")[-1]
    if name.endswith(".md"):
        name = name[: -len(".md")]
    return name.replace("-", " ")


def to_result(key: str, page: Page, mount_prefix: str = MOUNT_PREFIX) -> SearchResult:
    return SearchResult(
        title=title_from_key(key),
        url=f"{mount_prefix.rstrip('/')}/{key}",
        preview=page.preview,
    )


def rank_results(results: List[SearchResult], query: str) -> List[SearchResult]:
    """Order *results* by descending title similarity to *query*.

    Results with equal similarity keep their incoming order.
    """
    return sorted(
        results,
        key=lambda result: jellyfish.jaro_winkler_similarity(result.title, query),
        reverse=True,
    )


async def search(store: PageStore, query: str, mount_prefix: str = MOUNT_PREFIX) -> List[SearchResult]:
    """Find stored pages whose path contains *query* and rank them by title.

    Raises:
        StoreUnavailable: if the page store cannot be reached.
    """
    needle = query.lower()
    matches = await store.scan_keys_and_values(build_pattern(query))
    results = [
        to_result(key, page, mount_prefix) for key, page in matches if needle in key.lower()
    ]
    logger.info("Search completed", extra={"query": query, "results": len(results)})
    return rank_results(results, query)
