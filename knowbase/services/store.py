"""Redis persistence of rendered pages.

Every page lives as one field of a single hash, keyed by its path, so the
search scan can walk all pages with ``HSCAN`` and no secondary index.
"""

import logging
import secrets
from typing import List, Optional, Tuple

from redis import Redis as SyncRedis
from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from knowbase.errors import StoreUnavailable
from knowbase.models.page import Page

logger = logging.getLogger(__name__)

PAGE_KEY = "pages"
SESSION_KEY = "master_key"
DEFAULT_PATH = "index.md"

_UNAVAILABLE_ERRORS = (RedisConnectionError, RedisTimeoutError, OSError)


def normalize_path_key(path: str) -> str:
    """Strip a single leading ``/``; an empty path becomes ``index.md``."""
    if path.startswith("/"):
        path = path[1:]
    return path or DEFAULT_PATH


def load_session_key(client: SyncRedis, key: str = SESSION_KEY) -> str:
    """Return the session signing key kept in Redis, creating it on first use.

    ``SET NX`` makes concurrent first starts agree on one key.

    Raises:
        StoreUnavailable: if Redis cannot be reached.
    """
    try:
        client.set(key, secrets.token_urlsafe(32), nx=True)
        value = client.get(key)
    except _UNAVAILABLE_ERRORS as exc:
        logger.error("Page store unreachable while loading the session key: %s", exc)
        raise StoreUnavailable(str(exc)) from exc
    return value.decode() if isinstance(value, bytes) else value


class PageStore:
    """Key-value access to :class:`Page` records by path.

    Writes are full overwrites; concurrent writers to the same path race and
    the last write wins.
    """

    def __init__(self, client: Redis, key: str = PAGE_KEY) -> None:
        self._client = client
        self._key = key

    @classmethod
    def from_url(cls, url: str, key: str = PAGE_KEY) -> "PageStore":
        """Build a store for *url*.  No connection is opened until first use."""
        return cls(Redis.from_url(url, decode_responses=True), key=key)

    async def get(self, path: str) -> Optional[Page]:
        """Return the page stored at *path*, or None when there is none."""
        try:
            raw = await self._client.hget(self._key, path)
        except _UNAVAILABLE_ERRORS as exc:
            logger.error("Page store unreachable on get: %s", exc, extra={"path": path})
            raise StoreUnavailable(str(exc)) from exc
        if raw is None:
            return None
        return Page.model_validate_json(raw)

    async def upsert(self, path: str, page: Page) -> None:
        """Store *page* at *path*, replacing any previous page."""
        try:
            await self._client.hset(self._key, path, page.model_dump_json())
        except _UNAVAILABLE_ERRORS as exc:
            logger.error("Page store unreachable on upsert: %s", exc, extra={"path": path})
            raise StoreUnavailable(str(exc)) from exc

    async def scan_keys_and_values(self, pattern: str) -> List[Tuple[str, Page]]:
        """Return every ``(path, page)`` whose path matches the glob *pattern*.

        Order is whatever the store's cursor yields and is not stable.
        """
        matches: List[Tuple[str, Page]] = []
        try:
            async for path, raw in self._client.hscan_iter(self._key, match=pattern):
                matches.append((path, Page.model_validate_json(raw)))
        except _UNAVAILABLE_ERRORS as exc:
            logger.error("Page store unreachable on scan: %s", exc, extra={"pattern": pattern})
            raise StoreUnavailable(str(exc)) from exc
        return matches

    async def close(self) -> None:
        await self._client.aclose()
