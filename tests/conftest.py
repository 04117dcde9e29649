"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from urllib.parse import parse_qsl, quote, unquote

import httpx
import pytest

from replit_db import DatabaseClient

BASE_URL = "https://kv.replit.com/v0/test-token"
BASE_PATH = "/v0/test-token"


class FakeStore:
    """In-memory stand-in for the key-value store's HTTP API.

    Values are kept as the raw text the client posted.  Missing keys read
    back as 404 with an empty body, like the real service.
    """

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.requests: list[httpx.Request] = []
        self.hooks: list[Callable[[httpx.Request], None]] = []
        self._failures: dict[tuple[str, str], tuple[int, str]] = {}

    def fail(self, method: str, key: str, status: int = 500, body: str = "boom") -> None:
        self._failures[(method, key)] = (status, body)

    def attempted(self, method: str) -> list[str]:
        """Keys targeted by *method* requests, in order."""
        return [self._key_of(r) for r in self.requests if r.method == method]

    @staticmethod
    def _key_of(request: httpx.Request) -> str:
        raw_path = request.url.raw_path.split(b"?", 1)[0].decode("ascii")
        return unquote(raw_path[len(BASE_PATH) :].lstrip("/"))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for hook in self.hooks:
            hook(request)
        key = self._key_of(request)

        if request.method == "POST":
            [(key, value)] = parse_qsl(request.content.decode("utf-8"), keep_blank_values=True)
            if failure := self._failures.get(("POST", key)):
                return httpx.Response(failure[0], text=failure[1])
            self.data[key] = value
            return httpx.Response(200)

        if failure := self._failures.get((request.method, key)):
            return httpx.Response(failure[0], text=failure[1])

        if request.method == "GET" and not key:
            prefix = request.url.params.get("prefix", "")
            listing = sorted(k for k in self.data if k.startswith(prefix))
            return httpx.Response(200, text="\n".join(quote(k, safe="") for k in listing))
        if request.method == "GET":
            if key not in self.data:
                return httpx.Response(404)
            return httpx.Response(200, text=self.data[key])
        if request.method == "DELETE":
            if self.data.pop(key, None) is None:
                return httpx.Response(404)
            return httpx.Response(204)
        return httpx.Response(405)


@pytest.fixture
def kv():
    return FakeStore()


@pytest.fixture
async def db(kv):
    client = DatabaseClient(url=BASE_URL, transport=httpx.MockTransport(kv.handler))
    yield client
    await client.aclose()


@pytest.fixture
async def settled_db(kv):
    client = DatabaseClient(
        url=BASE_URL,
        all_settled=True,
        transport=httpx.MockTransport(kv.handler),
    )
    yield client
    await client.aclose()
