"""Shared fixtures: a fake xkcd upstream served through httpx.MockTransport."""

import random
import re

import httpx
import pytest

from comic_portal.cache import CacheStore
from comic_portal.ingest.xkcd import XkcdClient
from comic_portal.service import ComicService

BASE_URL = "https://xkcd.test"

_COMIC_PATH = re.compile(r"^/(\d+)/info\.0\.json$")


def make_payload(num: int, title: str | None = None, transcript: str = "") -> dict:
    """Build an upstream JSON payload shaped like xkcd's info.0.json."""
    return {
        "num": num,
        "title": title if title is not None else f"Comic {num}",
        "safe_title": title if title is not None else f"Comic {num}",
        "img": f"https://imgs.xkcd.test/comics/{num}.png",
        "alt": f"Alt text {num}",
        "transcript": transcript,
        "year": "2024",
        "month": "5",
        "day": "17",
        "link": "",
        "news": "",
    }


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUpstream:
    """In-memory xkcd: records every requested path and can inject failures."""

    def __init__(self, latest: int = 10):
        self.comics = {n: make_payload(n) for n in range(1, latest + 1)}
        self.failures: dict[int, int] = {}
        self.latest_status = 200
        self.calls: list[str] = []

    @property
    def latest(self) -> int:
        return max(self.comics)

    def set_latest(self, latest: int) -> None:
        self.comics = {n: make_payload(n) for n in range(1, latest + 1)}

    def calls_for(self, path: str) -> int:
        return self.calls.count(path)

    def fetched_ids(self) -> set[int]:
        ids = set()
        for path in self.calls:
            m = _COMIC_PATH.match(path)
            if m:
                ids.add(int(m.group(1)))
        return ids

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append(path)

        if path == "/info.0.json":
            if self.latest_status != 200:
                return httpx.Response(self.latest_status)
            return httpx.Response(200, json=self.comics[self.latest])

        m = _COMIC_PATH.match(path)
        if not m:
            return httpx.Response(404)
        num = int(m.group(1))
        if num in self.failures:
            return httpx.Response(self.failures[num])
        if num not in self.comics:
            return httpx.Response(404, text="Not Found")
        return httpx.Response(200, json=self.comics[num])


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def xkcd_client(upstream) -> XkcdClient:
    http = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(upstream.handler))
    return XkcdClient(http=http)


@pytest.fixture
def service(xkcd_client, clock) -> ComicService:
    return ComicService(
        xkcd_client,
        cache=CacheStore(ttl_seconds=300, clock=clock),
        rng=random.Random(1234),
    )
