import logging
from typing import Any, Dict, Optional

import httpx

from ..errors import NotFoundError, UpstreamError
from ..schemas import Comic

logger = logging.getLogger(__name__)

API = "https://xkcd.com"

HEADERS = {
    "Accept": "application/json",
    "User-Agent": "comic-portal/0.1",
}

def _text(v: Any) -> str:
    if v is None:
        return ""
    return str(v)

def _int(v: Any) -> int:
    # xkcd serves dates as strings ("2024"); anything unparseable becomes 0
    try:
        return int(v)
    except (TypeError, ValueError):
        return 0

def normalize_comic(d: Dict[str, Any]) -> Comic:
    return Comic(
        id=d.get("num"),
        title=_text(d.get("title")),
        safe_title=_text(d.get("safe_title")),
        img=_text(d.get("img")),
        alt=_text(d.get("alt")),
        transcript=_text(d.get("transcript")),
        year=_int(d.get("year")),
        month=_int(d.get("month")),
        day=_int(d.get("day")),
    )

def build_http_client(base_url: str = API, timeout: float = 10.0, max_connections: int = 20) -> httpx.AsyncClient:
    # No pool timeout: a search fan-out queues for a free connection instead of failing
    return httpx.AsyncClient(
        base_url=base_url,
        headers=HEADERS,
        timeout=httpx.Timeout(timeout, pool=None),
        limits=httpx.Limits(max_connections=max_connections),
    )

class XkcdClient:
    """Thin async wrapper over the xkcd JSON endpoints."""

    def __init__(self, http: Optional[httpx.AsyncClient] = None, base_url: str = API,
                 timeout: float = 10.0, max_connections: int = 20):
        self._http = http or build_http_client(base_url, timeout, max_connections)

    async def close(self) -> None:
        await self._http.aclose()

    async def _get(self, path: str, what: str) -> Optional[Dict[str, Any]]:
        try:
            r = await self._http.get(path)
        except httpx.TimeoutException as e:
            raise UpstreamError(f"Timed out fetching {what}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Failed to fetch {what}: {e}") from e

        if r.status_code == 404:
            return None
        if not r.is_success:
            raise UpstreamError(f"Failed to fetch {what}: HTTP {r.status_code}", status=r.status_code)
        try:
            return r.json()
        except ValueError as e:
            raise UpstreamError(f"Failed to fetch {what}: malformed JSON", status=r.status_code) from e

    async def fetch_latest(self) -> Comic:
        js = await self._get("/info.0.json", "latest comic")
        if js is None:
            raise UpstreamError("Failed to fetch latest comic: HTTP 404", status=404)
        return self._normalize(js, "latest comic")

    async def fetch_comic(self, comic_id: int) -> Comic:
        js = await self._get(f"/{comic_id}/info.0.json", f"comic {comic_id}")
        if js is None:
            raise NotFoundError(comic_id)
        return self._normalize(js, f"comic {comic_id}")

    def _normalize(self, js: Any, what: str) -> Comic:
        if not isinstance(js, dict):
            raise UpstreamError(f"Failed to fetch {what}: unexpected payload")
        try:
            return normalize_comic(js)
        except ValueError as e:
            # pydantic.ValidationError is a ValueError; a missing or bad "num" lands here
            logger.warning("Rejected malformed payload for %s: %s", what, e)
            raise UpstreamError(f"Failed to fetch {what}: malformed comic") from e
