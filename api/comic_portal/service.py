"""Read-through comic service.

Resolves comics by id or the "latest" pointer through a time-bounded cache and
derives the random and search views on top of that.
"""
import asyncio
import logging
import random
from dataclasses import dataclass
from typing import List, Optional

from .cache import LATEST_KEY, CacheStore, comic_key
from .errors import (
    ComicPortalError,
    InvalidIdError,
    InvalidQueryError,
    InvalidStateError,
    UpstreamError,
)
from .ingest.xkcd import XkcdClient
from .schemas import Comic, SearchResult
from .search import clamp_page, filter_comics, paginate, window_ids
from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


@dataclass
class FetchOutcome:
    comic_id: int
    comic: Optional[Comic] = None
    error: Optional[ComicPortalError] = None

    @property
    def ok(self) -> bool:
        return self.comic is not None


def _parse_id(comic_id) -> int:
    if isinstance(comic_id, bool):
        raise InvalidIdError(comic_id)
    if isinstance(comic_id, str):
        comic_id = comic_id.strip()
        if not comic_id.isdigit():
            raise InvalidIdError(comic_id)
        comic_id = int(comic_id)
    if not isinstance(comic_id, int) or comic_id < 1:
        raise InvalidIdError(comic_id)
    return comic_id


class ComicService:
    def __init__(
        self,
        client: XkcdClient,
        cache: Optional[CacheStore] = None,
        rng: Optional[random.Random] = None,
        search_window: int = 100,
        default_page_size: int = 10,
        max_page_size: Optional[int] = 50,
    ):
        self.client = client
        self.cache = cache if cache is not None else CacheStore()
        self._rng = rng or random.Random()
        self.search_window = search_window
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    @classmethod
    def from_settings(cls, s: Settings = default_settings) -> "ComicService":
        client = XkcdClient(
            base_url=s.XKCD_BASE_URL,
            timeout=s.UPSTREAM_TIMEOUT_SECONDS,
            max_connections=s.UPSTREAM_MAX_CONNECTIONS,
        )
        return cls(
            client,
            cache=CacheStore(ttl_seconds=s.CACHE_TTL_SECONDS),
            search_window=s.SEARCH_WINDOW,
            default_page_size=s.DEFAULT_PAGE_SIZE,
            max_page_size=s.MAX_PAGE_SIZE,
        )

    async def close(self) -> None:
        await self.client.close()

    async def resolve_latest(self) -> Comic:
        cached = self.cache.get(LATEST_KEY)
        if cached is not None:
            return cached

        logger.debug("Cache miss for %s", LATEST_KEY)
        try:
            comic = await self.client.fetch_latest()
        except UpstreamError as e:
            logger.warning("Latest comic fetch failed: %s", e.message)
            raise
        self.cache.put(LATEST_KEY, comic)
        return comic

    async def resolve_by_id(self, comic_id) -> Comic:
        comic_id = _parse_id(comic_id)
        key = comic_key(comic_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        logger.debug("Cache miss for %s", key)
        # NotFoundError is not cached; the next call asks upstream again
        comic = await self.client.fetch_comic(comic_id)
        self.cache.put(key, comic)
        return comic

    async def resolve_random(self) -> Comic:
        try:
            latest = await self.resolve_latest()
            max_id = latest.id
            if not isinstance(max_id, int) or max_id < 1:
                raise InvalidStateError(f"Invalid latest comic ID: {max_id!r}")

            comic_id = self._rng.randint(1, max_id)
            return await self.resolve_by_id(comic_id)
        except InvalidStateError:
            raise
        except ComicPortalError as e:
            logger.warning("Random comic fetch failed: %s", e.message)
            raise UpstreamError(
                f"Failed to fetch random comic: {e.message}",
                status=getattr(e, "status", None),
            ) from e

    async def _resolve_outcome(self, comic_id: int) -> FetchOutcome:
        try:
            return FetchOutcome(comic_id, comic=await self.resolve_by_id(comic_id))
        except ComicPortalError as e:
            return FetchOutcome(comic_id, error=e)

    async def search(self, query, page: int = 1, page_size: Optional[int] = None) -> SearchResult:
        if not isinstance(query, str) or not query.strip():
            raise InvalidQueryError()
        if page_size is None:
            page_size = self.default_page_size
        page, page_size = clamp_page(page, page_size, self.max_page_size)

        latest = await self.resolve_latest()
        ids = window_ids(latest.id, self.search_window)

        outcomes: List[FetchOutcome] = await asyncio.gather(
            *(self._resolve_outcome(i) for i in ids)
        )
        failed = [o for o in outcomes if not o.ok]
        if failed:
            logger.debug(
                "Search skipped %d of %d comics: %s",
                len(failed), len(ids), ", ".join(str(o.comic_id) for o in failed),
            )

        # gather keeps argument order, re-sort anyway so ordering never depends on it
        comics = sorted((o.comic for o in outcomes if o.ok), key=lambda c: c.id, reverse=True)
        matched = filter_comics(comics, query)
        items, offset, total_pages = paginate(matched, page, page_size)

        return SearchResult(
            query=query,
            items=items,
            total_matches=len(matched),
            page=page,
            page_size=page_size,
            offset=offset,
            total_pages=total_pages,
        )
