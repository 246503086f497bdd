"""Fan-out loading of posts, comments and their authors."""

from __future__ import annotations

import asyncio
from typing import Sequence

import structlog

from ..config import LoaderConfig
from .cache import AuthorCache, AuthorLookup
from .fetcher import FetchError, JsonFetcher
from .models import Author, Comment, CommentWithAuthor, Post, PostWithDetails


class Aggregator:
    """Resolve posts into :class:`PostWithDetails` with deduplicated author fetches.

    Author failures never escape: they are logged and the author is left
    ``None``. A failure loading the post list or any post's comments fails
    the whole run and cancels the sibling post tasks.
    """

    def __init__(
        self,
        fetcher: JsonFetcher,
        config: LoaderConfig | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.config = config or fetcher.config
        self.logger = logger or structlog.get_logger("post_loader.aggregator")

    async def run(self) -> list[PostWithDetails]:
        posts = await self.load_posts()
        self.logger.info("posts_loaded", count=len(posts))
        return await self.aggregate(posts)

    async def load_posts(self) -> list[Post]:
        return await self.fetcher.fetch_json(self.config.posts_url(), list[Post])

    async def load_comments(self, post_id: int) -> list[Comment]:
        comments = await self.fetcher.fetch_json(self.config.comments_url(post_id), list[Comment])
        return [
            comment if comment.post_id is not None else comment.model_copy(update={"post_id": post_id})
            for comment in comments
        ]

    async def load_author(self, author_id: int) -> AuthorLookup:
        try:
            author = await self.fetcher.fetch_json(self.config.author_url(author_id), Author)
        except FetchError as exc:
            self.logger.warning(
                "author_fetch_failed",
                author_id=author_id,
                url=exc.url,
                error=str(exc),
            )
            return AuthorLookup.absent(author_id, str(exc))
        return AuthorLookup(author_id=author_id, author=author)

    async def aggregate(
        self, posts: Sequence[Post], cache: AuthorCache | None = None
    ) -> list[PostWithDetails]:
        cache = cache if cache is not None else AuthorCache()
        post_author_ids = {post.author_id for post in posts}
        await cache.resolve(post_author_ids, self.load_author)

        tasks = [asyncio.ensure_future(self._load_details(post, cache)) for post in posts]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            # Let cancelled siblings unwind before the error leaves the run
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        self.logger.info(
            "aggregation_complete",
            posts=len(results),
            authors_cached=len(cache),
            author_fetches=cache.fetches,
        )
        return list(results)

    async def _load_details(self, post: Post, cache: AuthorCache) -> PostWithDetails:
        try:
            comments = await self.load_comments(post.id)
        except FetchError as exc:
            self.logger.error("comments_fetch_failed", post_id=post.id, error=str(exc))
            raise
        missing = cache.missing(comment.author_id for comment in comments)
        if missing:
            await cache.resolve(missing, self.load_author)
        return PostWithDetails(
            post=post,
            author=cache.get(post.author_id),
            comments=[
                CommentWithAuthor(comment=comment, author=cache.get(comment.author_id))
                for comment in comments
            ],
        )


__all__ = ["Aggregator"]
