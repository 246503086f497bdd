"""Pytest configuration providing a fake blog server and shared fixtures."""

from __future__ import annotations

import asyncio
import re
from collections import Counter
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Awaitable, Callable, Iterable

import httpx
import pytest

from post_loader.config import ConfigLocator, ConfigRepository, LoaderConfig
from post_loader.engine import Aggregator, JsonFetcher

BASE_URL = "http://blog.test"

_COMMENTS_PATH = re.compile(r"/api/slow/posts/(\d+)/comments")
_AUTHOR_PATH = re.compile(r"/api/authors/(\d+)")


def post_payload(post_id: int, author_id: int, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": post_id,
        "authorId": author_id,
        "content": f"Post {post_id}",
        "published": 1_700_000_000 + post_id,
        "likes": 0,
        "likedByMe": False,
    }
    payload.update(extra)
    return payload


def comment_payload(comment_id: int, author_id: int, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": comment_id,
        "authorId": author_id,
        "content": f"Comment {comment_id}",
        "likes": 0,
        "likedByMe": False,
    }
    payload.update(extra)
    return payload


def author_payload(author_id: int, name: str) -> dict[str, Any]:
    return {"id": author_id, "name": name, "avatar": f"{name.lower()}.jpg"}


def gzip_garbage_response() -> httpx.Response:
    """A 200 that claims gzip encoding but whose body is not gzip.

    The body is passed as a stream so the client decodes it, not the constructor.
    """

    return httpx.Response(
        200,
        headers={"Content-Encoding": "gzip", "Content-Type": "application/json"},
        stream=httpx.ByteStream(b"not gzip"),
    )


class FakeBlogServer:
    """In-memory stand-in for the REST test server, served via MockTransport."""

    def __init__(
        self,
        posts: list[dict[str, Any]] | None = None,
        comments: dict[int, list[dict[str, Any]]] | None = None,
        authors: dict[int, dict[str, Any] | str] | None = None,
    ) -> None:
        self.posts = posts or []
        self.comments = comments or {}
        self.authors = authors or {}
        self.fail_posts = False
        self.failing_comments: set[int] = set()
        self.posts_delay = 0.0
        self.author_delay = 0.0
        self.comment_delays: dict[int, float] = {}
        # author id -> "connect" (refused) or "gzip" (undecodable body)
        self.broken_authors: dict[int, str] = {}
        self.author_requests: Counter[int] = Counter()
        self.paths: list[str] = []

    async def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.paths.append(path)
        if path == "/api/slow/posts":
            await asyncio.sleep(self.posts_delay)
            if self.fail_posts:
                return httpx.Response(500, json={"error": "posts unavailable"})
            return httpx.Response(200, json=self.posts)
        match = _COMMENTS_PATH.fullmatch(path)
        if match:
            post_id = int(match.group(1))
            await asyncio.sleep(self.comment_delays.get(post_id, 0.0))
            if post_id in self.failing_comments:
                return httpx.Response(500)
            return httpx.Response(200, json=self.comments.get(post_id, []))
        match = _AUTHOR_PATH.fullmatch(path)
        if match:
            author_id = int(match.group(1))
            self.author_requests[author_id] += 1
            await asyncio.sleep(self.author_delay)
            broken = self.broken_authors.get(author_id)
            if broken == "connect":
                raise httpx.ConnectError("connection refused", request=request)
            if broken == "gzip":
                return gzip_garbage_response()
            body = self.authors.get(author_id)
            if body is None:
                return httpx.Response(404)
            if isinstance(body, str):
                return httpx.Response(200, content=body.encode("utf-8"))
            return httpx.Response(200, json=body)
        return httpx.Response(404)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def fetcher_factory(self) -> Callable[[LoaderConfig], JsonFetcher]:
        return lambda config: JsonFetcher(config, transport=self.transport())

    def author_fetch_total(self) -> int:
        return sum(self.author_requests.values())


@pytest.fixture(autouse=True)
def loader_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("POST_LOADER_HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def loader_config() -> LoaderConfig:
    return LoaderConfig(base_url=BASE_URL, connect_timeout=5, read_timeout=5, wait_timeout=5)


@pytest.fixture
def payloads() -> SimpleNamespace:
    return SimpleNamespace(
        post=post_payload,
        comment=comment_payload,
        author=author_payload,
        gzip_garbage=gzip_garbage_response,
    )


@pytest.fixture
def make_server() -> type[FakeBlogServer]:
    return FakeBlogServer


@pytest.fixture
def blog_server() -> FakeBlogServer:
    return FakeBlogServer(
        posts=[post_payload(1, 10), post_payload(2, 20)],
        comments={
            1: [comment_payload(100, 10), comment_payload(101, 30)],
            2: [comment_payload(200, 30)],
        },
        authors={
            10: author_payload(10, "Alice"),
            20: author_payload(20, "Bob"),
            30: author_payload(30, "Carol"),
        },
    )


@pytest.fixture
def run_aggregator(
    loader_config: LoaderConfig,
) -> Callable[[FakeBlogServer, Callable[[Aggregator], Awaitable[Any]]], Any]:
    """Run ``action(aggregator)`` on a fresh event loop against ``server``."""

    def _runner(server: FakeBlogServer, action: Callable[[Aggregator], Awaitable[Any]]) -> Any:
        async def _main() -> Any:
            async with JsonFetcher(loader_config, transport=server.transport()) as fetcher:
                return await action(Aggregator(fetcher, loader_config))

        return asyncio.run(_main())

    return _runner


@pytest.fixture
def temp_config_repository(tmp_path: Path) -> Iterable[ConfigRepository]:
    locator = ConfigLocator(project_root=tmp_path)
    yield ConfigRepository(locator)
