"""Per-run author cache with single-flight fetching."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable

from .models import Author


@dataclass(slots=True, frozen=True)
class AuthorLookup:
    """Outcome of resolving one author id: the author, or an explicit absence."""

    author_id: int
    author: Author | None = None
    error: str | None = None

    @property
    def found(self) -> bool:
        return self.author is not None

    @classmethod
    def absent(cls, author_id: int, error: str | None = None) -> "AuthorLookup":
        return cls(author_id=author_id, author=None, error=error)


AuthorLoader = Callable[[int], Awaitable[AuthorLookup]]


class AuthorCache:
    """Map author ids to authors for the lifetime of a single run.

    All access happens on the event loop thread, so plain dicts are enough.
    Concurrent resolves of the same id share one in-flight task, and an id
    whose fetch failed stays absent until the cache is dropped.
    """

    def __init__(self) -> None:
        self._authors: dict[int, Author] = {}
        self._absent: dict[int, str | None] = {}
        self._inflight: dict[int, asyncio.Future[AuthorLookup]] = {}
        self.fetches = 0

    def __contains__(self, author_id: object) -> bool:
        return author_id in self._authors

    def __len__(self) -> int:
        return len(self._authors)

    def get(self, author_id: int) -> Author | None:
        return self._authors.get(author_id)

    def lookup(self, author_id: int) -> AuthorLookup:
        author = self._authors.get(author_id)
        if author is not None:
            return AuthorLookup(author_id=author_id, author=author)
        return AuthorLookup.absent(author_id, self._absent.get(author_id))

    def merge(self, author: Author, author_id: int | None = None) -> bool:
        """Store ``author`` under ``author_id`` (its own id by default).

        Returns False when the id was already cached.
        """

        key = author.id if author_id is None else author_id
        if key in self._authors:
            return False
        self._authors[key] = author
        self._absent.pop(key, None)
        return True

    def store(self, result: AuthorLookup) -> None:
        # Keyed on the id that was requested, whatever id the body reports
        if result.author is not None:
            self.merge(result.author, result.author_id)
        elif result.author_id not in self._authors:
            self._absent[result.author_id] = result.error

    def missing(self, author_ids: Iterable[int]) -> set[int]:
        """Ids that have neither been cached nor already failed."""

        return {
            author_id
            for author_id in author_ids
            if author_id not in self._authors and author_id not in self._absent
        }

    async def resolve(
        self, author_ids: Iterable[int], loader: AuthorLoader
    ) -> dict[int, AuthorLookup]:
        """Resolve every id, fetching only those not cached or in flight."""

        ids = list(dict.fromkeys(author_ids))
        waiters: list[asyncio.Future[AuthorLookup]] = []
        for author_id in self.missing(ids):
            pending = self._inflight.get(author_id)
            if pending is None:
                pending = asyncio.ensure_future(self._load(author_id, loader))
                self._inflight[author_id] = pending
            waiters.append(pending)
        if waiters:
            await asyncio.gather(*waiters)
        return {author_id: self.lookup(author_id) for author_id in ids}

    async def _load(self, author_id: int, loader: AuthorLoader) -> AuthorLookup:
        self.fetches += 1
        try:
            result = await loader(author_id)
        finally:
            self._inflight.pop(author_id, None)
        self.store(result)
        return result


__all__ = ["AuthorCache", "AuthorLoader", "AuthorLookup"]
